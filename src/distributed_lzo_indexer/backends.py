"""Local execution backend.

Runs each WorkItem in a `multiprocessing.Pool` worker and keeps per-job
counters (`READ_SUCCESS`, `READ_FAILURE`). With a single worker the items run
in-process, one after another, during `wait_for_completion`.
"""

from __future__ import annotations

import itertools
import logging
import multiprocessing
import os
import pickle
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Optional, Tuple, Union

import psutil

from .config import DEFAULT_HEARTBEAT_SECONDS, DEFAULT_WORKER
from .dispatch import READ_FAILURE, READ_SUCCESS
from .errors import SubmissionError, WorkerResolutionError
from .models import JobDescriptor
from .worker import WorkerFn, resolve_worker

logger = logging.getLogger(__name__)


_job_seq = itertools.count(1)


def _run_one(item: Tuple[Union[str, WorkerFn], str]) -> Tuple[bool, str, str]:
    worker, input_path = item
    try:
        fn = resolve_worker(worker) if isinstance(worker, str) else worker
        result = fn(input_path)
    except Exception as e:
        return False, input_path, f"{type(e).__name__}: {e}"
    if result is None or bool(result):
        return True, input_path, ""
    return False, input_path, "worker reported failure"


def default_worker_count() -> int:
    return psutil.cpu_count(logical=False) or os.cpu_count() or 1


@dataclass
class _LocalJob:
    handle: str
    descriptor: JobDescriptor
    results: Iterator[Tuple[bool, str, str]]
    pool: Optional[Any] = None
    counters: Dict[str, int] = field(default_factory=dict)
    completed: Optional[bool] = None


class LocalPoolBackend:
    def __init__(
        self,
        worker: Union[str, WorkerFn] = DEFAULT_WORKER,
        *,
        workers: Optional[int] = None,
        heartbeat_seconds: int = DEFAULT_HEARTBEAT_SECONDS,
    ):
        self.worker = worker
        self.workers = workers
        self.heartbeat_seconds = heartbeat_seconds
        self._jobs: Dict[str, _LocalJob] = {}

    def _pool_size(self, total: int) -> int:
        n = self.workers if self.workers is not None else default_worker_count()
        return max(1, min(int(n), total))

    def _job(self, handle: str) -> _LocalJob:
        try:
            return self._jobs[handle]
        except KeyError:
            raise ValueError(f"Unknown job handle: {handle}") from None

    def submit(self, descriptor: JobDescriptor) -> str:
        if descriptor.options.speculative_execution_enabled:
            raise SubmissionError("LocalPoolBackend runs one attempt per work item; speculative execution is not supported")
        if isinstance(self.worker, str):
            try:
                resolve_worker(self.worker)
            except WorkerResolutionError as e:
                raise SubmissionError(str(e)) from e

        handle = f"job_local_{time.strftime('%Y%m%d%H%M%S')}_{next(_job_seq):04d}"
        items = [(self.worker, w.input_path) for w in descriptor.work_items]
        n = self._pool_size(descriptor.total)

        pool = None
        if n > 1:
            if not isinstance(self.worker, str):
                try:
                    pickle.dumps(self.worker)
                except (pickle.PicklingError, AttributeError, TypeError) as e:
                    raise SubmissionError(
                        f"Worker {self.worker!r} cannot be sent to pool processes; "
                        f"pass a module-level function or a 'module:function' reference ({e})"
                    ) from e
            try:
                pool = multiprocessing.Pool(n)
            except OSError as e:
                raise SubmissionError(f"Unable to start {n} local workers: {e}") from e
            results = pool.imap_unordered(_run_one, items, chunksize=1)
        else:
            results = map(_run_one, items)

        logger.info("Submitted %s (%s) with %d workers", handle, descriptor.name, n)
        self._jobs[handle] = _LocalJob(handle=handle, descriptor=descriptor, results=results, pool=pool)
        return handle

    def wait_for_completion(self, handle: str) -> bool:
        job = self._job(handle)
        if job.completed is not None:
            return job.completed

        counters = job.counters
        counters.setdefault(READ_SUCCESS, 0)
        counters.setdefault(READ_FAILURE, 0)

        done = 0
        total_work = job.descriptor.total
        start = time.monotonic()
        last_heartbeat = start
        try:
            for ok, input_path, reason in job.results:
                done += 1
                if ok:
                    counters[READ_SUCCESS] += 1
                else:
                    counters[READ_FAILURE] += 1
                    logger.error("Indexing failed for %s: %s", input_path, reason)

                now = time.monotonic()
                if now - last_heartbeat >= max(1, int(self.heartbeat_seconds)):
                    elapsed = now - start
                    rate = done / elapsed if elapsed > 0 else 0.0
                    remaining = total_work - done
                    eta_s = (remaining / rate) if rate > 0 else 0.0
                    logger.info(
                        "Heartbeat: %d/%d done (ok=%d, fail=%d), rate=%.2f files/s, eta=%.1f min, mem=%.0f%% (last=%s)",
                        done,
                        total_work,
                        counters[READ_SUCCESS],
                        counters[READ_FAILURE],
                        rate,
                        eta_s / 60.0,
                        psutil.virtual_memory().percent,
                        input_path,
                    )
                    last_heartbeat = now
            job.completed = True
        except Exception as e:
            logger.error("Local job %s aborted after %d/%d items: %s", handle, done, total_work, e)
            job.completed = False
        finally:
            if job.pool is not None:
                if job.completed:
                    job.pool.close()
                else:
                    job.pool.terminate()
                job.pool.join()
                job.pool = None

        return job.completed

    def get_counter(self, handle: str, name: str) -> int:
        return int(self._job(handle).counters.get(name, 0))
