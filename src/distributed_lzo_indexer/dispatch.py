"""Job construction and submission.

The dispatcher talks to an execution backend through three calls:

    handle = backend.submit(descriptor)           # non-blocking
    ok = backend.wait_for_completion(handle)      # blocking, no timeout
    n = backend.get_counter(handle, READ_SUCCESS)

Speculative execution is always disabled on the descriptor. Every WorkItem
writes to `<input>.index`, so two concurrent attempts of the same item would
race on that file.
"""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from .errors import SubmissionError
from .models import JobDescriptor, JobOptions, JobResult, WorkItem

logger = logging.getLogger(__name__)


READ_SUCCESS = "READ_SUCCESS"
READ_FAILURE = "READ_FAILURE"

JOB_NAME_PREFIX = "Distributed Lzo Indexer"


class ExecutionBackend(Protocol):
    def submit(self, descriptor: JobDescriptor) -> str:
        ...

    def wait_for_completion(self, handle: str) -> bool:
        ...

    def get_counter(self, handle: str, name: str) -> int:
        ...


def job_name(args: Sequence[str]) -> str:
    return f"{JOB_NAME_PREFIX} [{', '.join(str(a) for a in args)}]"


def build_descriptor(work_items: Sequence[WorkItem], name: str) -> JobDescriptor:
    return JobDescriptor(
        name=name,
        work_items=tuple(work_items),
        options=JobOptions(speculative_execution_enabled=False),
    )


class JobDispatcher:
    def __init__(self, backend: ExecutionBackend):
        self.backend = backend

    def dispatch(self, work_items: Sequence[WorkItem], name: str = JOB_NAME_PREFIX) -> JobResult:
        """Submit `work_items` as one job and block until it finishes.

        Raises SubmissionError when the backend cannot create the job. A job
        that does not complete, or whose status cannot be read back, is
        returned with `completed=False`.
        """

        if not work_items:
            logger.info("No work items to dispatch; skipping job submission")
            return JobResult(handle=None, succeeded_count=0, total_dispatched=0, completed=True)

        descriptor = build_descriptor(work_items, name)
        try:
            handle = self.backend.submit(descriptor)
        except SubmissionError:
            raise
        except Exception as e:
            raise SubmissionError(f"Failed to submit job {descriptor.name!r}: {e}") from e

        logger.info("Started %s %s with %d splits", descriptor.name, handle, descriptor.total)

        try:
            completed = bool(self.backend.wait_for_completion(handle))
            succeeded = int(self.backend.get_counter(handle, READ_SUCCESS)) if completed else 0
        except Exception as e:
            logger.error("Lost track of job %s: %s", handle, e)
            completed, succeeded = False, 0

        return JobResult(
            handle=handle,
            succeeded_count=succeeded,
            total_dispatched=descriptor.total,
            completed=completed,
        )
