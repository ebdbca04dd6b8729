"""Per-file index workers.

A worker is any callable taking one input path. It reports success by
returning a truthy value (or None) and failure by returning a falsy value or
raising. Workers are referenced as `module:function` so that they can be
resolved inside pool processes.

The default worker delegates index construction to the hadoop-lzo
single-file indexer:

    hadoop jar $HADOOP_LZO_JAR com.hadoop.compression.lzo.LzoIndexer <path>

or to any command set in $LZO_INDEXER_COMMAND, where `{input}` is replaced by
the input path (appended when the placeholder is absent).
"""

from __future__ import annotations

import importlib
import logging
import os
import shlex
import subprocess
from typing import Any, Callable, List, Mapping, Optional

from .errors import WorkerResolutionError
from .fs import FileSystems
from .models import index_path_for

logger = logging.getLogger(__name__)


LZO_INDEXER_CLASS = "com.hadoop.compression.lzo.LzoIndexer"

WorkerFn = Callable[[str], Any]


def resolve_worker(ref: str) -> WorkerFn:
    module_path, sep, attr_path = str(ref).partition(":")
    if not sep or not module_path or not attr_path:
        raise WorkerResolutionError(f"Worker reference must look like 'module:function', got {ref!r}")

    try:
        obj: Any = importlib.import_module(module_path)
    except ImportError as e:
        raise WorkerResolutionError(f"Cannot import worker module {module_path}: {e}") from e

    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError:
            raise WorkerResolutionError(f"Module {module_path} has no attribute {attr_path}") from None

    if not callable(obj):
        raise WorkerResolutionError(f"Worker {ref} is not callable")
    return obj


def indexer_command(input_path: str, environ: Optional[Mapping[str, str]] = None) -> List[str]:
    env = os.environ if environ is None else environ

    template = env.get("LZO_INDEXER_COMMAND")
    if template:
        parts = shlex.split(template)
        if not any("{input}" in p for p in parts):
            return parts + [input_path]
        return [p.replace("{input}", input_path) for p in parts]

    jar = env.get("HADOOP_LZO_JAR")
    if not jar:
        raise WorkerResolutionError("Set $HADOOP_LZO_JAR or $LZO_INDEXER_COMMAND to run the default indexer worker")
    return [env.get("HADOOP_CMD") or "hadoop", "jar", jar, LZO_INDEXER_CLASS, input_path]


def run_lzo_indexer(input_path: str) -> bool:
    """Index one file with the external indexer; True when a non-empty index exists afterwards."""

    cmd = indexer_command(input_path)
    logger.debug("Running: %s", " ".join(cmd))
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as e:
        logger.error("Failed to start indexer for %s: %s", input_path, e)
        return False

    if proc.returncode != 0:
        tail = (proc.stderr or proc.stdout or "").strip().splitlines()[-5:]
        logger.error("Indexer exited with %d for %s: %s", proc.returncode, input_path, " | ".join(tail))
        return False

    index_path = index_path_for(input_path)
    try:
        length = FileSystems().stat(index_path).length
    except OSError as e:
        logger.error("Indexer finished but %s is missing: %s", index_path, e)
        return False
    if length == 0:
        logger.error("Indexer produced a zero-length index %s", index_path)
        return False
    return True
