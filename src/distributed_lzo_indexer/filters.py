"""Path predicates used during traversal and eligibility checks.

Filters never raise for expected conditions: when an answer cannot be
determined they log and return False.
"""

from __future__ import annotations

import logging
from typing import Protocol

from .fs import FileSystems
from .models import TEMPORARY_DIR_NAME

logger = logging.getLogger(__name__)


class PathFilter(Protocol):
    def accept(self, path: str) -> bool:
        ...


class NonTemporaryFilter:
    """Accepts paths with no `_temporary` segment."""

    def accept(self, path: str) -> bool:
        return TEMPORARY_DIR_NAME not in str(path).rstrip("/").split("/")


class SizeThresholdFilter:
    """Accepts paths pointing to files at least one storage block long."""

    def __init__(self, fs: FileSystems):
        self.fs = fs

    def accept(self, path: str) -> bool:
        try:
            status = self.fs.stat(path)
        except OSError as e:
            logger.warning("Unable to get status of path %s: %s", path, e)
            return False
        return status.length >= status.block_size


class AllOf:
    def __init__(self, *filters: PathFilter):
        self.filters = filters

    def accept(self, path: str) -> bool:
        return all(f.accept(path) for f in self.filters)
