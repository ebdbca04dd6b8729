"""Indexer configuration.

One immutable `IndexerConfig` is built per invocation and handed to the
walker, the eligibility checker and the dispatcher.

Sources, lowest precedence first:
  1. built-in defaults
  2. JSON file (--conf, $LZO_INDEXER_CONFIG, or ./indexer_config.json)
  3. environment ($LZO_INDEXER_<KEY>)
  4. -D key=value options
  5. dedicated CLI flags (--workers, --worker, --heartbeat-seconds)
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigError

logger = logging.getLogger(__name__)


SKIP_INDEXING_SMALL_FILES_KEY = "skip_indexing_small_files"
RECURSIVE_INDEXING_KEY = "recursive_indexing"
BLOCK_SIZE_KEY = "block_size"
WORKERS_KEY = "workers"
WORKER_KEY = "worker"
HEARTBEAT_SECONDS_KEY = "heartbeat_seconds"

SKIP_INDEXING_SMALL_FILES_DEFAULT = False
RECURSIVE_INDEXING_DEFAULT = True
# HDFS dfs.blocksize default.
DEFAULT_BLOCK_SIZE = 128 * 1024 * 1024
DEFAULT_WORKER = "distributed_lzo_indexer.worker:run_lzo_indexer"
DEFAULT_HEARTBEAT_SECONDS = 30

DEFAULT_CONFIG_FILE = "indexer_config.json"
ENV_PREFIX = "LZO_INDEXER_"

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


def parse_bool(value: Any, *, key: str) -> bool:
    if isinstance(value, bool):
        return value
    s = str(value).strip().lower()
    if s in _TRUE:
        return True
    if s in _FALSE:
        return False
    raise ConfigError(f"Invalid boolean for {key}: {value!r} (expected true/false)", key=key)


def parse_int(value: Any, *, key: str, minimum: int = 0) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"Invalid integer for {key}: {value!r}", key=key)
    try:
        n = int(str(value).strip())
    except ValueError:
        raise ConfigError(f"Invalid integer for {key}: {value!r}", key=key) from None
    if n < minimum:
        raise ConfigError(f"{key} must be >= {minimum}, got {n}", key=key)
    return n


@dataclass(frozen=True)
class IndexerConfig:
    skip_indexing_small_files: bool = SKIP_INDEXING_SMALL_FILES_DEFAULT
    recursive_indexing: bool = RECURSIVE_INDEXING_DEFAULT
    block_size: int = DEFAULT_BLOCK_SIZE
    workers: Optional[int] = None
    worker: str = DEFAULT_WORKER
    heartbeat_seconds: int = DEFAULT_HEARTBEAT_SECONDS

    def with_overrides(self, values: Mapping[str, Any]) -> "IndexerConfig":
        """Return a copy with `values` applied; unknown keys are logged and ignored."""

        known = {f.name for f in fields(self)}
        changes: Dict[str, Any] = {}
        for key, raw in values.items():
            if key not in known:
                logger.warning("Ignoring unknown configuration key: %s", key)
                continue
            changes[key] = _coerce(key, raw)
        return replace(self, **changes) if changes else self

    @classmethod
    def from_json(cls, path: Path) -> "IndexerConfig":
        """Load configuration from a JSON object file on top of the defaults."""

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Unable to read config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a JSON object")
        return cls().with_overrides(data)

    @classmethod
    def load(
        cls,
        *,
        config_file: Optional[Path] = None,
        properties: Optional[Mapping[str, Any]] = None,
        overrides: Optional[Mapping[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "IndexerConfig":
        env = os.environ if environ is None else environ

        if config_file is None and env.get(ENV_PREFIX + "CONFIG"):
            config_file = Path(env[ENV_PREFIX + "CONFIG"]).expanduser()
            if not config_file.exists():
                raise ConfigError(f"Config file {config_file} not found")
        elif config_file is None and Path(DEFAULT_CONFIG_FILE).exists():
            config_file = Path(DEFAULT_CONFIG_FILE)

        if config_file is not None:
            logger.info("Loading configuration from %s", config_file)
            config = cls.from_json(config_file)
        else:
            config = cls()

        config = config.with_overrides(_env_values(env))
        if properties:
            config = config.with_overrides(properties)
        if overrides:
            config = config.with_overrides({k: v for k, v in overrides.items() if v is not None})
        return config


def _coerce(key: str, raw: Any) -> Any:
    if key in (SKIP_INDEXING_SMALL_FILES_KEY, RECURSIVE_INDEXING_KEY):
        return parse_bool(raw, key=key)
    if key == BLOCK_SIZE_KEY:
        return parse_int(raw, key=key, minimum=1)
    if key == WORKERS_KEY:
        if raw is None or str(raw).strip().lower() in {"", "auto", "none"}:
            return None
        return parse_int(raw, key=key, minimum=1)
    if key == HEARTBEAT_SECONDS_KEY:
        return parse_int(raw, key=key, minimum=1)
    if key == WORKER_KEY:
        s = str(raw).strip()
        if not s:
            raise ConfigError("worker must not be empty", key=key)
        return s
    return raw


def _env_values(env: Mapping[str, str]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for f in fields(IndexerConfig):
        v = env.get(ENV_PREFIX + f.name.upper())
        if v is not None:
            out[f.name] = v
    return out


def parse_property(text: str) -> tuple[str, str]:
    """Split a `key=value` generic option."""

    key, sep, value = str(text).partition("=")
    key = key.strip()
    if not sep or not key:
        raise ConfigError(f"Expected key=value, got {text!r}")
    return key, value.strip()
