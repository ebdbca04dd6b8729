"""Command line entry point.

Examples:
  distributed-lzo-indexer hdfs://namenode:8020/logs/2024
  distributed-lzo-indexer -D skip_indexing_small_files=true /data/a.lzo /data/dir
  python -m distributed_lzo_indexer --workers 8 --worker mypkg.index:build /data
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, TextIO

from .config import (
    DEFAULT_BLOCK_SIZE,
    RECURSIVE_INDEXING_DEFAULT,
    RECURSIVE_INDEXING_KEY,
    SKIP_INDEXING_SMALL_FILES_DEFAULT,
    SKIP_INDEXING_SMALL_FILES_KEY,
    IndexerConfig,
    parse_property,
)
from .errors import ConfigError
from .indexer import EXIT_USAGE, DistributedIndexer

logger = logging.getLogger(__name__)


PROG = "distributed-lzo-indexer"


def usage_text() -> str:
    return (
        f"Command: {PROG} [options] <file.lzo | directory> [file2.lzo directory3 ...]"
        "\nOptions:"
        "\n  -D key=value            Set a configuration option (repeatable)"
        "\n  --conf FILE             JSON configuration file"
        "\n  --workers N             Local worker processes (default: physical CPU count)"
        "\n  --worker MODULE:FUNC    Per-file index worker"
        "\n  --heartbeat-seconds N   Progress heartbeat interval"
        "\n  -v, --verbose           Debug logging"
        "\nConfiguration options: [values] <default> description"
        f"\n{SKIP_INDEXING_SMALL_FILES_KEY} [true,false] <{str(SKIP_INDEXING_SMALL_FILES_DEFAULT).lower()}>"
        " When indexing, skip files smaller than block_size bytes"
        " (the configured size, not each file's own storage block size)."
        f"\n{RECURSIVE_INDEXING_KEY} [true,false] <{str(RECURSIVE_INDEXING_DEFAULT).lower()}>"
        " Look for files to index recursively from paths on command line."
        f"\nblock_size [bytes] <{DEFAULT_BLOCK_SIZE}> Storage block size used by {SKIP_INDEXING_SMALL_FILES_KEY}."
    )


def print_usage(stream: Optional[TextIO] = None) -> None:
    print(usage_text(), file=stream or sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog=PROG, add_help=False, description="Build missing LZO block indexes")
    ap.add_argument("paths", nargs="*", help="Files or directories to index")
    ap.add_argument("-h", "--help", action="store_true", default=False)
    ap.add_argument("-D", dest="properties", action="append", default=[], metavar="KEY=VALUE")
    ap.add_argument("--conf", type=Path, default=None)
    ap.add_argument("--workers", type=int, default=None)
    ap.add_argument("--worker", type=str, default=None)
    ap.add_argument("--heartbeat-seconds", type=int, default=None)
    ap.add_argument("-v", "--verbose", action="store_true", default=False)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    try:
        ns = parser.parse_args(argv)
    except SystemExit:
        print_usage()
        return EXIT_USAGE

    if ns.help or not ns.paths:
        print_usage()
        return EXIT_USAGE

    logging.basicConfig(
        level=logging.DEBUG if ns.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        properties = dict(parse_property(p) for p in ns.properties)
        config = IndexerConfig.load(
            config_file=ns.conf,
            properties=properties,
            overrides={
                "workers": ns.workers,
                "worker": ns.worker,
                "heartbeat_seconds": ns.heartbeat_seconds,
            },
        )
    except ConfigError as e:
        logger.error("%s", e)
        print_usage()
        return EXIT_USAGE

    return DistributedIndexer(config).run(ns.paths)


if __name__ == "__main__":
    raise SystemExit(main())
