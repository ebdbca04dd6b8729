"""Selection + dispatch + verification for one invocation.

    paths -> TreeWalker(NonTemporaryFilter) -> EligibilityChecker -> WorkItems
          -> JobDispatcher(backend) -> JobResult -> CompletionVerifier -> exit code
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .backends import LocalPoolBackend
from .config import IndexerConfig
from .dispatch import ExecutionBackend, JobDispatcher, job_name
from .eligibility import EligibilityChecker
from .errors import SubmissionError
from .filters import NonTemporaryFilter
from .fs import FileSystems
from .models import WorkItem
from .verify import CompletionVerifier
from .walker import TreeWalker

logger = logging.getLogger(__name__)


EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = -1


class DistributedIndexer:
    def __init__(
        self,
        config: IndexerConfig,
        *,
        backend: Optional[ExecutionBackend] = None,
        fs: Optional[FileSystems] = None,
    ):
        self.config = config
        self.fs = fs if fs is not None else FileSystems(block_size=config.block_size)
        self.checker = EligibilityChecker(self.fs, config)
        self.walker = TreeWalker(self.fs, self.checker)
        self.path_filter = NonTemporaryFilter()
        self.verifier = CompletionVerifier()
        self._backend = backend

    @property
    def backend(self) -> ExecutionBackend:
        if self._backend is None:
            self._backend = LocalPoolBackend(
                self.config.worker,
                workers=self.config.workers,
                heartbeat_seconds=self.config.heartbeat_seconds,
            )
        return self._backend

    def select(self, paths: Sequence[str]) -> List[WorkItem]:
        """WorkItems for every eligible file under `paths`, first occurrence wins."""

        found = self.walker.collect(paths, self.path_filter, self.config.recursive_indexing)
        seen = set()
        items: List[WorkItem] = []
        for path in found:
            if path in seen:
                logger.debug("Dropping duplicate input path %s", path)
                continue
            seen.add(path)
            items.append(WorkItem(input_path=path))
        return items

    def run(self, paths: Sequence[str]) -> int:
        work_items = self.select(paths)
        if not work_items:
            logger.info("No input paths found - perhaps all .lzo files have already been indexed.")
            return EXIT_OK

        dispatcher = JobDispatcher(self.backend)
        try:
            result = dispatcher.dispatch(work_items, job_name(paths))
        except SubmissionError as e:
            logger.error("DistributedIndexer job submission failed: %s", e)
            return EXIT_FAILURE

        if not result.completed:
            logger.error("DistributedIndexer job %s failed.", result.handle)
            return EXIT_FAILURE

        outcome = self.verifier.verify(result.total_dispatched, result.succeeded_count)
        if outcome.succeeded:
            logger.info("DistributedIndexer %s indexed %d files", result.handle, outcome.succeeded_count)
            return EXIT_OK

        logger.error(
            "DistributedIndexer %s failed. %d out of %d mappers failed.",
            result.handle,
            outcome.failed_count,
            outcome.total_dispatched,
        )
        return EXIT_FAILURE


def run_indexer(
    paths: Sequence[str],
    config: Optional[IndexerConfig] = None,
    backend: Optional[ExecutionBackend] = None,
) -> int:
    """Convenience wrapper: select, dispatch and verify in one call."""

    return DistributedIndexer(config or IndexerConfig(), backend=backend).run(paths)
