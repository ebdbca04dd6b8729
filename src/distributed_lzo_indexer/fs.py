"""Filesystem access through `pyarrow.fs`.

Paths are handled as qualified strings: URIs keep their `scheme://authority`
prefix (e.g. `hdfs://namenode:8020/logs/a.lzo`), plain local paths are made
absolute. Each distinct prefix is resolved once to a pyarrow filesystem.
"""

from __future__ import annotations

import logging
import os
import urllib.parse
from typing import Dict, List, Optional, Tuple

import pyarrow as pa
import pyarrow.fs as pafs

from .config import DEFAULT_BLOCK_SIZE
from .models import FileEntry

logger = logging.getLogger(__name__)


def split_uri(path: str) -> Tuple[str, str]:
    """Return (prefix, inner_path) for a path or URI.

    >>> split_uri("hdfs://nn:8020/logs/a.lzo")
    ('hdfs://nn:8020', '/logs/a.lzo')
    >>> split_uri("/tmp/a.lzo")
    ('', '/tmp/a.lzo')
    """

    s = str(path)
    if "://" not in s:
        return "", os.path.abspath(os.path.expanduser(s))
    parsed = urllib.parse.urlparse(s)
    prefix = f"{parsed.scheme}://{parsed.netloc}"
    inner = s[len(prefix):] or "/"
    return prefix, inner


def uri_base(uri: str, fs_path: str) -> str:
    """The part of `uri` that precedes the path pyarrow resolved it to.

    Object stores keep the bucket in the pyarrow path, so only the scheme is
    left over; HDFS keeps the authority.

    >>> uri_base("gs://bucket/logs/a.lzo", "bucket/logs/a.lzo")
    'gs://'
    >>> uri_base("hdfs://nn:8020/logs/a.lzo", "/logs/a.lzo")
    'hdfs://nn:8020'
    """

    if fs_path and uri.endswith(fs_path):
        return uri[: len(uri) - len(fs_path)]
    return split_uri(uri)[0]


class FileSystem:
    """One pyarrow filesystem plus the prefix used to qualify its paths.

    Every pyarrow failure leaves this class as an `OSError`.
    """

    def __init__(self, fs: pafs.FileSystem, *, prefix: str = "", block_size: int = DEFAULT_BLOCK_SIZE):
        self.fs = fs
        self.prefix = prefix
        self.block_size = int(block_size)

    def qualify(self, inner: str) -> str:
        if "://" in inner:
            return inner
        return f"{self.prefix}{inner}"

    def inner(self, path: str) -> str:
        if self.prefix and path.startswith(self.prefix):
            return path[len(self.prefix):] or "/"
        return split_uri(path)[1]

    def _file_info(self, target, path: str):
        try:
            return self.fs.get_file_info(target)
        except OSError:
            raise
        except pa.ArrowException as e:
            raise OSError(f"{type(e).__name__} for {path}: {e}") from e

    def _entry(self, info: pafs.FileInfo, path: Optional[str] = None) -> FileEntry:
        is_dir = info.type == pafs.FileType.Directory
        return FileEntry(
            path=path if path is not None else self.qualify(info.path),
            is_directory=is_dir,
            length=0 if is_dir else int(info.size or 0),
            block_size=self.block_size,
        )

    def stat(self, path: str) -> FileEntry:
        """Fresh status of `path`; raises FileNotFoundError when missing."""

        info = self._file_info(self.inner(path), path)
        if info.type == pafs.FileType.NotFound:
            raise FileNotFoundError(f"File does not exist: {path}")
        return self._entry(info, path)

    def exists(self, path: str) -> bool:
        return self._file_info(self.inner(path), path).type != pafs.FileType.NotFound

    def list_status(self, path: str, path_filter=None) -> List[FileEntry]:
        """Immediate children of a directory accepted by `path_filter`, sorted by path."""

        infos = self._file_info(pafs.FileSelector(self.inner(path), recursive=False), path)
        children = [self._entry(info) for info in infos]
        if path_filter is not None:
            children = [c for c in children if path_filter.accept(c.path)]
        return sorted(children, key=lambda c: c.path)

    def identity(self, path: str) -> str:
        """Key naming the physical directory behind `path`.

        Local paths resolve symlinks; remote stores have none to follow.
        """

        if isinstance(self.fs, pafs.LocalFileSystem):
            return os.path.realpath(self.inner(path))
        return path


class FileSystems:
    """Resolves qualified paths to cached `FileSystem` instances.

    `stat`, `exists` and `list_status` raise `OSError` subclasses on failure,
    including for URIs that pyarrow cannot open.
    """

    def __init__(self, *, block_size: int = DEFAULT_BLOCK_SIZE):
        self.block_size = int(block_size)
        self._cache: Dict[str, FileSystem] = {}

    def qualify(self, path: str) -> str:
        prefix, inner = split_uri(path)
        return f"{prefix}{inner}"

    def get(self, path: str) -> FileSystem:
        prefix, _inner = split_uri(path)
        fs = self._cache.get(prefix)
        if fs is not None:
            return fs
        if not prefix:
            fs = FileSystem(pafs.LocalFileSystem(), block_size=self.block_size)
        else:
            try:
                pa_fs, fs_path = pafs.FileSystem.from_uri(str(path))
            except (ValueError, pa.ArrowException) as e:
                raise OSError(f"Unable to resolve filesystem for {path}: {e}") from e
            fs = FileSystem(pa_fs, prefix=uri_base(str(path), fs_path), block_size=self.block_size)
        logger.debug("Resolved filesystem %s for prefix %r", type(fs.fs).__name__, prefix)
        self._cache[prefix] = fs
        return fs

    def stat(self, path: str) -> FileEntry:
        return self.get(path).stat(path)

    def exists(self, path: str) -> bool:
        return self.get(path).exists(path)

    def list_status(self, path: str, path_filter=None) -> List[FileEntry]:
        return self.get(path).list_status(path, path_filter)

    def identity(self, path: str) -> str:
        return self.get(path).identity(path)
