from __future__ import annotations

import logging

from .config import IndexerConfig
from .filters import SizeThresholdFilter
from .fs import FileSystems
from .models import LZO_EXTENSION, IndexState, index_path_for

logger = logging.getLogger(__name__)


class EligibilityChecker:
    """Decides whether an .lzo file needs its block index (re)built.

    Every decision is logged with its cause. A zero-length index is treated as
    a failed earlier attempt: any non-empty input yields at least one index
    entry, so an empty index can never be valid for it.
    """

    def __init__(self, fs: FileSystems, config: IndexerConfig):
        self.fs = fs
        self.config = config
        self.size_filter = SizeThresholdFilter(fs)

    def index_state(self, path: str) -> IndexState:
        index_path = index_path_for(path)
        if not self.fs.exists(index_path):
            return IndexState.ABSENT
        if self.fs.stat(index_path).length == 0:
            return IndexState.ZERO_LENGTH
        return IndexState.NON_ZERO_LENGTH

    def should_index(self, path: str) -> bool:
        if not str(path).endswith(LZO_EXTENSION):
            logger.debug("[SKIP] %s is not an %s file", path, LZO_EXTENSION)
            return False

        if self.config.skip_indexing_small_files and not self.size_filter.accept(path):
            logger.info("[SKIP] Skip indexing small files enabled and %s is too small", path)
            return False

        try:
            state = self.index_state(path)
        except OSError as e:
            logger.warning("[SKIP] Unable to check LZO index state for %s: %s", path, e)
            return False

        if state is IndexState.NON_ZERO_LENGTH:
            logger.info("[SKIP] LZO index file already exists for %s", path)
            return False
        if state is IndexState.ZERO_LENGTH:
            logger.info("Adding LZO file %s to indexing list (index file exists but is zero length)", path)
            return True
        logger.info("Adding LZO file %s to indexing list (no index currently exists)", path)
        return True
