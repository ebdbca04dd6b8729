"""Distributed LZO indexer.

Finds .lzo files under one or more paths whose block index (`<file>.lzo.index`)
is missing or empty, builds those indexes as one batch job, and checks that
every dispatched file was indexed.
"""

from .config import IndexerConfig
from .indexer import DistributedIndexer, run_indexer

__all__ = ["DistributedIndexer", "IndexerConfig", "run_indexer"]
