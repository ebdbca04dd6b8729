"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

import pytest

from distributed_lzo_indexer.dispatch import READ_SUCCESS
from distributed_lzo_indexer.fs import FileSystems
from distributed_lzo_indexer.models import JobDescriptor


@pytest.fixture
def fs() -> FileSystems:
    return FileSystems(block_size=64)


def write_lzo(path: Path, size: int = 16, index_size: Optional[int] = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes((b"\x89LZO" + b"\x00" * size)[:size])
    if index_size is not None:
        Path(str(path) + ".index").write_bytes(b"\x00" * index_size)
    return path


@pytest.fixture
def lzo_tree(tmp_path: Path) -> Dict[str, Path]:
    """A small tree covering every eligibility branch.

    root/
      a.lzo            no index
      b.lzo            index, 10 bytes
      c.lzo            index, 0 bytes
      notes.txt
      sub/d.lzo        no index
      _temporary/e.lzo no index, never visited
    """

    root = tmp_path / "data"
    files = {
        "root": root,
        "a": write_lzo(root / "a.lzo"),
        "b": write_lzo(root / "b.lzo", index_size=10),
        "c": write_lzo(root / "c.lzo", index_size=0),
        "d": write_lzo(root / "sub" / "d.lzo"),
        "e": write_lzo(root / "_temporary" / "e.lzo"),
    }
    (root / "notes.txt").write_text("not an lzo file\n", encoding="utf-8")
    files["txt"] = root / "notes.txt"
    return files


class ScriptedBackend:
    """Execution backend that reports whatever the test tells it to."""

    def __init__(
        self,
        *,
        succeeded: Optional[int] = None,
        completed: bool = True,
        submit_error: Optional[Exception] = None,
    ):
        self.succeeded = succeeded
        self.completed = completed
        self.submit_error = submit_error
        self.submitted: List[JobDescriptor] = []
        self.waited: List[str] = []

    def submit(self, descriptor: JobDescriptor) -> str:
        if self.submit_error is not None:
            raise self.submit_error
        self.submitted.append(descriptor)
        return f"job_test_{len(self.submitted):04d}"

    def wait_for_completion(self, handle: str) -> bool:
        self.waited.append(handle)
        return self.completed

    def get_counter(self, handle: str, name: str) -> int:
        if name != READ_SUCCESS:
            return 0
        if self.succeeded is not None:
            return self.succeeded
        return self.submitted[-1].total


@pytest.fixture
def scripted_backend():
    return ScriptedBackend


@pytest.fixture
def make_lzo():
    return write_lzo
