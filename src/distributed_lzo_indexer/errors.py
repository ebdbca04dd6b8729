from __future__ import annotations


class IndexerError(RuntimeError):
    """Base class for job-level failures of the indexer."""


class ConfigError(IndexerError):
    def __init__(self, message: str, *, key: str | None = None):
        super().__init__(message)
        self.key = key


class SubmissionError(IndexerError):
    """The execution backend rejected the job or could not create it."""


class WorkerResolutionError(IndexerError):
    pass
