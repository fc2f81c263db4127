"""SourceResolver: expands configured log sources into readable file paths."""

import glob
import os
import logging
from typing import Callable, Iterable, Iterator

from log_indexer.config import LogSource
from log_indexer.errors import DISCOVERY
from log_indexer.models import RunWarning

logger = logging.getLogger(__name__)


def is_readable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.R_OK)


def expand_source(source: LogSource, pattern: str | None = None) -> list[str]:
    """Return the files matched by one source, sorted.

    A file path is returned as-is regardless of pattern. A directory is
    searched for *pattern* (or the source's own pattern), including
    subdirectories only when ``source.recursive`` is set.
    """
    path = source.path
    if os.path.isfile(path):
        return [path]
    if not os.path.isdir(path):
        logger.info("Log source %s does not exist, skipping", path)
        return []

    pattern = pattern or source.pattern
    if source.recursive:
        expr = os.path.join(glob.escape(path), "**", pattern)
        matches = glob.glob(expr, recursive=True)
    else:
        matches = glob.glob(os.path.join(glob.escape(path), pattern))
    return sorted(m for m in matches if os.path.isfile(m))


class SourceResolver:
    def __init__(self, sources: Iterable[LogSource],
                 on_warning: Callable[[RunWarning], None] | None = None):
        self._sources = tuple(sources)
        self._on_warning = on_warning

    def resolve(self, pattern: str | None = None) -> Iterator[str]:
        """Lazily yield existing, readable files, each at most once.

        *pattern* replaces every source's configured pattern.
        """
        seen: set[str] = set()
        for source in self._sources:
            try:
                matches = expand_source(source, pattern)
            except OSError as e:
                logger.warning("Failed to expand log source %s: %s", source.path, e)
                if self._on_warning:
                    self._on_warning(RunWarning(DISCOVERY, source.path, str(e)))
                continue

            for match in matches:
                key = os.path.realpath(match)
                if key in seen:
                    continue
                seen.add(key)
                if not is_readable(match):
                    logger.debug("Skipping unreadable file %s", match)
                    continue
                yield match
