from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from .eligibility import EligibilityChecker
from .filters import PathFilter
from .fs import FileSystems

logger = logging.getLogger(__name__)


class TreeWalker:
    """Depth-first traversal collecting files the checker accepts.

    Uses an explicit stack instead of recursion; the visiting order is the
    same pre-order a recursive descent produces (children sorted by path).
    An I/O failure on one node drops that node and its subtree only. Each
    physical directory is listed at most once per traversal.
    """

    def __init__(self, fs: FileSystems, checker: EligibilityChecker):
        self.fs = fs
        self.checker = checker

    def walk(
        self,
        root: str,
        path_filter: PathFilter,
        recursive: bool,
        accumulator: List[str],
        visited: Optional[Dict[str, str]] = None,
    ) -> None:
        """Append eligible files under `root` to `accumulator`.

        `visited` maps the physical identity of each directory listed so far
        to the path it was first reached by; a directory reached again (a
        symlink loop or alias) is not listed twice.
        """

        if visited is None:
            visited = {}
        root = self.fs.qualify(root)
        if not path_filter.accept(root):
            logger.info("[SKIP] Path %s is excluded by the traversal filter", root)
            return

        stack = [root]
        while stack:
            path = stack.pop()
            try:
                status = self.fs.stat(path)
                if status.is_directory:
                    if not recursive:
                        logger.info("[SKIP] Path %s is a directory and recursion is not enabled.", path)
                        continue
                    key = self.fs.identity(path)
                    if key in visited:
                        logger.info("[SKIP] Directory %s was already visited as %s", path, visited[key])
                        continue
                    visited[key] = path
                    children = self.fs.list_status(path, path_filter)
                    stack.extend(child.path for child in reversed(children))
                elif self.checker.should_index(path):
                    accumulator.append(path)
            except OSError as e:
                logger.warning("Error walking path: %s (%s)", path, e)

    def collect(self, roots: Iterable[str], path_filter: PathFilter, recursive: bool) -> List[str]:
        """Walk each root in order and return the concatenated matches."""

        found: List[str] = []
        visited: Dict[str, str] = {}
        for root in roots:
            self.walk(root, path_filter, recursive, found, visited)
        return found
