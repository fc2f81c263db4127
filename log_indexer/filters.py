"""ExclusionFilter: drops entries whose message contains an excluded substring."""

import logging
from typing import Iterable, Iterator

from log_indexer.models import ClassifiedEntry

logger = logging.getLogger(__name__)


class ExclusionFilter:
    def __init__(self, excluded_patterns: Iterable[str]):
        # an empty pattern would match every line
        self._patterns = tuple(p for p in excluded_patterns if p)
        self._dropped = 0

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._patterns

    @property
    def dropped(self) -> int:
        return self._dropped

    def should_include(self, entry: ClassifiedEntry) -> bool:
        """Case-sensitive substring check against the full message."""
        for pattern in self._patterns:
            if pattern in entry.message:
                self._dropped += 1
                logger.debug("Excluded line matching %r: %s", pattern, entry.message[:100])
                return False
        return True

    def apply(self, entries: Iterable[ClassifiedEntry]) -> Iterator[ClassifiedEntry]:
        """Yield the entries that pass, in their original order."""
        return (e for e in entries if self.should_include(e))
