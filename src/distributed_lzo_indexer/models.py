"""Value types shared by the selection and dispatch stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple


LZO_EXTENSION = ".lzo"
INDEX_SUFFIX = ".index"
TEMPORARY_DIR_NAME = "_temporary"


def index_path_for(path: str) -> str:
    """Side-car index path read by existing index consumers."""

    return str(path) + INDEX_SUFFIX


class IndexState(Enum):
    ABSENT = "absent"
    ZERO_LENGTH = "zero_length"
    NON_ZERO_LENGTH = "non_zero_length"


@dataclass(frozen=True)
class FileEntry:
    path: str
    is_directory: bool
    length: int
    block_size: int


@dataclass(frozen=True)
class WorkItem:
    input_path: str


@dataclass(frozen=True)
class JobOptions:
    speculative_execution_enabled: bool = False


@dataclass(frozen=True)
class JobDescriptor:
    name: str
    work_items: Tuple[WorkItem, ...]
    options: JobOptions = field(default_factory=JobOptions)

    @property
    def total(self) -> int:
        return len(self.work_items)


@dataclass(frozen=True)
class JobResult:
    handle: Optional[str]
    succeeded_count: int
    total_dispatched: int
    completed: bool = True


@dataclass(frozen=True)
class VerificationOutcome:
    succeeded: bool
    total_dispatched: int
    succeeded_count: int
    failed_count: int
