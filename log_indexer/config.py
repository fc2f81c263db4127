"""Configuration loading from an optional YAML file and env vars."""

import os
import logging
from dataclasses import dataclass, field

import yaml

from log_indexer.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_PATTERN = "*.log"
DEFAULT_LOG_DIR = "logs"
DEFAULT_EXCLUDED_PATTERNS = ("/health", "/metrics", "/ping")


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes")


@dataclass(frozen=True)
class LogSource:
    path: str
    pattern: str = DEFAULT_PATTERN
    recursive: bool = True


@dataclass(frozen=True)
class IndexingConfig:
    auto_index: bool = True
    batch_size: int = 100
    excluded_patterns: tuple[str, ...] = DEFAULT_EXCLUDED_PATTERNS
    tail_lines: int = 50
    state_file: str | None = None   # enables the per-file watermark when set


@dataclass(frozen=True)
class Config:
    log_sources: tuple[LogSource, ...] = field(default_factory=tuple)
    indexing: IndexingConfig = field(default_factory=IndexingConfig)


def load_yaml_config(path: str | None) -> dict:
    """Load the YAML config file. Returns an empty dict if no path is given.

    An explicitly named file that does not exist or does not parse is a
    ConfigurationError.
    """
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise ConfigurationError(f"Config file {path} not found")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    logger.info("Loaded YAML config from %s", path)
    return data


def _positive_int(name: str, value) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if number < 1:
        raise ConfigurationError(f"{name} must be >= 1, got {number}")
    return number


def _parse_sources(raw, log_dir: str) -> tuple[LogSource, ...]:
    if raw is None:
        return (LogSource(log_dir),)
    if not isinstance(raw, list):
        raise ConfigurationError("log_sources must be a list")

    sources = []
    for i, item in enumerate(raw):
        if isinstance(item, str):
            item = {"path": item}
        if not isinstance(item, dict) or not item.get("path"):
            raise ConfigurationError(f"log_sources[{i}] requires a 'path'")
        sources.append(LogSource(
            path=str(item["path"]),
            pattern=str(item.get("pattern") or DEFAULT_PATTERN),
            recursive=_parse_bool(item.get("recursive", True)),
        ))
    return tuple(sources)


def _parse_indexing(raw: dict) -> IndexingConfig:
    excluded = raw.get("excluded_patterns", list(DEFAULT_EXCLUDED_PATTERNS))
    if excluded is None:
        excluded = []
    if not isinstance(excluded, list) or not all(isinstance(p, str) for p in excluded):
        raise ConfigurationError("indexing.excluded_patterns must be a list of strings")

    state_file = raw.get("state_file")
    return IndexingConfig(
        auto_index=_parse_bool(raw.get("auto_index", IndexingConfig.auto_index)),
        batch_size=_positive_int("indexing.batch_size", raw.get("batch_size", IndexingConfig.batch_size)),
        excluded_patterns=tuple(excluded),
        tail_lines=_positive_int("indexing.tail_lines", raw.get("tail_lines", IndexingConfig.tail_lines)),
        state_file=str(state_file) if state_file else None,
    )


def load_config(yaml_data: dict | None = None, env=None) -> Config:
    """Build Config from parsed YAML data, then apply env var overrides."""
    data = yaml_data or {}
    env = os.environ if env is None else env

    indexing = data.get("indexing") or {}
    if not isinstance(indexing, dict):
        raise ConfigurationError("indexing must be a mapping")
    indexing = dict(indexing)
    if "BATCH_SIZE" in env:
        indexing["batch_size"] = env["BATCH_SIZE"]
    if "AUTO_INDEX" in env:
        indexing["auto_index"] = env["AUTO_INDEX"]
    if "TAIL_LINES" in env:
        indexing["tail_lines"] = env["TAIL_LINES"]
    if "STATE_FILE" in env:
        indexing["state_file"] = env["STATE_FILE"]

    return Config(
        log_sources=_parse_sources(data.get("log_sources"), env.get("LOG_DIR") or DEFAULT_LOG_DIR),
        indexing=_parse_indexing(indexing),
    )


def load_config_file(path: str | None = None) -> Config:
    """Load config from *path*, falling back to the CONFIG_PATH env var."""
    path = path or os.environ.get("CONFIG_PATH")
    return load_config(load_yaml_config(path))
