from __future__ import annotations

import json
from pathlib import Path

import pytest

from distributed_lzo_indexer.config import (
    DEFAULT_BLOCK_SIZE,
    DEFAULT_WORKER,
    IndexerConfig,
    parse_bool,
    parse_property,
)
from distributed_lzo_indexer.errors import ConfigError


def test_defaults() -> None:
    config = IndexerConfig()
    assert config.skip_indexing_small_files is False
    assert config.recursive_indexing is True
    assert config.block_size == DEFAULT_BLOCK_SIZE == 134217728
    assert config.workers is None
    assert config.worker == DEFAULT_WORKER


def test_config_is_immutable() -> None:
    with pytest.raises(AttributeError):
        IndexerConfig().recursive_indexing = False  # type: ignore[misc]


@pytest.mark.parametrize("raw, expected", [("true", True), ("FALSE", False), ("1", True), ("no", False), (True, True)])
def test_parse_bool(raw, expected) -> None:
    assert parse_bool(raw, key="k") is expected


def test_parse_bool_rejects_garbage() -> None:
    with pytest.raises(ConfigError) as exc:
        parse_bool("maybe", key="recursive_indexing")
    assert exc.value.key == "recursive_indexing"


def test_parse_property() -> None:
    assert parse_property("recursive_indexing=false") == ("recursive_indexing", "false")
    assert parse_property(" block_size = 10 ") == ("block_size", "10")
    with pytest.raises(ConfigError):
        parse_property("recursive_indexing")


def test_unknown_keys_are_ignored(caplog) -> None:
    config = IndexerConfig().with_overrides({"mapred.reduce.tasks": "0"})
    assert config == IndexerConfig()
    assert "unknown configuration key" in caplog.text


def test_precedence_file_env_properties_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    conf = tmp_path / "conf.json"
    conf.write_text(
        json.dumps({"skip_indexing_small_files": True, "recursive_indexing": False, "block_size": 1024, "workers": 2}),
        encoding="utf-8",
    )
    env = {"LZO_INDEXER_RECURSIVE_INDEXING": "true", "LZO_INDEXER_BLOCK_SIZE": "2048"}

    config = IndexerConfig.load(
        config_file=conf,
        properties={"block_size": "4096"},
        overrides={"workers": 8, "worker": None},
        environ=env,
    )

    assert config.skip_indexing_small_files is True  # file
    assert config.recursive_indexing is True  # env beats file
    assert config.block_size == 4096  # -D beats env
    assert config.workers == 8  # flag beats file
    assert config.worker == DEFAULT_WORKER  # None overrides are ignored


def test_default_config_file_in_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "indexer_config.json").write_text('{"recursive_indexing": "false"}', encoding="utf-8")
    assert IndexerConfig.load(environ={}).recursive_indexing is False


def test_config_file_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    conf = tmp_path / "elsewhere.json"
    conf.write_text('{"heartbeat_seconds": 5}', encoding="utf-8")
    assert IndexerConfig.load(environ={"LZO_INDEXER_CONFIG": str(conf)}).heartbeat_seconds == 5

    with pytest.raises(ConfigError, match="not found"):
        IndexerConfig.load(environ={"LZO_INDEXER_CONFIG": str(tmp_path / "missing.json")})


def test_bad_config_file(tmp_path: Path) -> None:
    bad = tmp_path / "bad.json"
    bad.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConfigError, match="JSON object"):
        IndexerConfig.from_json(bad)


def test_invalid_values_raise() -> None:
    with pytest.raises(ConfigError):
        IndexerConfig().with_overrides({"block_size": "0"})
    with pytest.raises(ConfigError):
        IndexerConfig().with_overrides({"workers": "many"})
    assert IndexerConfig().with_overrides({"workers": "auto"}).workers is None
