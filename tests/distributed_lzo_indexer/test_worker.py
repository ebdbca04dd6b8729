from __future__ import annotations

import shlex
import sys
from pathlib import Path

import pytest

from distributed_lzo_indexer.errors import WorkerResolutionError
from distributed_lzo_indexer.worker import LZO_INDEXER_CLASS, indexer_command, resolve_worker, run_lzo_indexer


def test_resolve_worker() -> None:
    import os.path

    assert resolve_worker("os.path:exists") is os.path.exists
    assert resolve_worker("distributed_lzo_indexer.worker:run_lzo_indexer") is run_lzo_indexer


@pytest.mark.parametrize("ref", ["os.path.exists", ":exists", "os.path:", "no_such_module:x", "os.path:nope", "os:sep"])
def test_resolve_worker_errors(ref) -> None:
    with pytest.raises(WorkerResolutionError):
        resolve_worker(ref)


def test_default_command_uses_hadoop_lzo_jar() -> None:
    cmd = indexer_command("/data/a.lzo", {"HADOOP_LZO_JAR": "/opt/hadoop-lzo.jar"})
    assert cmd == ["hadoop", "jar", "/opt/hadoop-lzo.jar", LZO_INDEXER_CLASS, "/data/a.lzo"]


def test_command_template() -> None:
    env = {"LZO_INDEXER_COMMAND": "lzo-index --out {input}.index {input}"}
    assert indexer_command("/d/a.lzo", env) == ["lzo-index", "--out", "/d/a.lzo.index", "/d/a.lzo"]
    assert indexer_command("/d/a.lzo", {"LZO_INDEXER_COMMAND": "lzo-index -v"}) == ["lzo-index", "-v", "/d/a.lzo"]


def test_missing_command_configuration() -> None:
    with pytest.raises(WorkerResolutionError, match="HADOOP_LZO_JAR"):
        indexer_command("/d/a.lzo", {})


def _python_command(code: str) -> str:
    return f"{shlex.quote(sys.executable)} -c {shlex.quote(code)} {{input}}"


def test_run_lzo_indexer_success(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    lzo = tmp_path / "a.lzo"
    lzo.write_bytes(b"x" * 10)
    code = "import sys; open(sys.argv[1] + '.index', 'wb').write(b'\\x00' * 8)"
    monkeypatch.setenv("LZO_INDEXER_COMMAND", _python_command(code))

    assert run_lzo_indexer(str(lzo)) is True
    assert (tmp_path / "a.lzo.index").stat().st_size == 8


def test_run_lzo_indexer_empty_index_is_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    lzo = tmp_path / "a.lzo"
    lzo.write_bytes(b"x" * 10)
    code = "import sys; open(sys.argv[1] + '.index', 'wb').close()"
    monkeypatch.setenv("LZO_INDEXER_COMMAND", _python_command(code))

    assert run_lzo_indexer(str(lzo)) is False


def test_run_lzo_indexer_nonzero_exit(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, caplog) -> None:
    monkeypatch.setenv("LZO_INDEXER_COMMAND", _python_command("import sys; sys.exit('bad lzop header')"))

    assert run_lzo_indexer(str(tmp_path / "a.lzo")) is False
    assert "bad lzop header" in caplog.text


def test_run_lzo_indexer_missing_executable(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LZO_INDEXER_COMMAND", str(tmp_path / "no-such-binary"))
    assert run_lzo_indexer(str(tmp_path / "a.lzo")) is False
