"""Heuristic line classifier: timestamp, level and category from raw text.

Level and category use ordered (predicate, result) tables evaluated top to
bottom, first match wins. Anything that matches nothing falls back to
"unknown" / "general", so classification never fails.
"""

import re
import uuid
import logging
from datetime import datetime, timezone
from typing import Callable

from log_indexer.models import ClassifiedEntry, RawLine

logger = logging.getLogger(__name__)

UNKNOWN_LEVEL = "unknown"
GENERAL_CATEGORY = "general"

Rule = tuple[Callable[[str], bool], str]


def _words(*keywords: str) -> Callable[[str], bool]:
    """Case-insensitive whole-word match on any of *keywords*."""
    pattern = re.compile(r"\b(?:%s)\b" % "|".join(map(re.escape, keywords)), re.IGNORECASE)
    return lambda text: pattern.search(text) is not None


def _substrings(*keywords: str) -> Callable[[str], bool]:
    """Case-insensitive substring match on any of *keywords*."""
    lowered = tuple(k.lower() for k in keywords)

    def match(text: str) -> bool:
        text = text.lower()
        return any(k in text for k in lowered)
    return match


LEVEL_RULES: list[Rule] = [
    (_words("error", "critical"), "error"),
    (_words("warning", "warn"), "warning"),
    (_words("info"), "info"),
    (_words("debug"), "debug"),
]

CATEGORY_RULES: list[Rule] = [
    (_substrings("database", "db", "sql"), "database"),
    (_substrings("payment", "billing"), "payment"),
    (_substrings("auth", "login"), "authentication"),
    (_substrings("api", "endpoint", "request"), "api"),
    (_substrings("security", "breach"), "security"),
]


def first_match(rules: list[Rule], text: str, default: str) -> str:
    for predicate, result in rules:
        if predicate(text):
            return result
    return default


# --- timestamps -------------------------------------------------------------

_ISO_RE = re.compile(
    r"(\d{4}-\d{2}-\d{2})"
    r"(?:[T ](\d{2}:\d{2}(?::\d{2}(?:[.,]\d{1,6})?)?)(Z|[+-]\d{2}:?\d{2})?)?"
)
_CLF_RE = re.compile(r"(\d{2}/[A-Za-z]{3}/\d{4}:\d{2}:\d{2}:\d{2} [+-]\d{4})")
_SYSLOG_RE = re.compile(r"\b([A-Z][a-z]{2} [ \d]\d \d{2}:\d{2}:\d{2})\b")


def _parse_iso(match: re.Match) -> datetime:
    date, clock, zone = match.groups()
    text = date
    if clock:
        clock, _, fraction = clock.replace(",", ".").partition(".")
        if clock.count(":") == 1:
            clock += ":00"
        if fraction:
            clock += "." + fraction.ljust(6, "0")
        text += "T" + clock
    if zone:
        if zone == "Z":
            zone = "+00:00"
        elif ":" not in zone:
            zone = zone[:3] + ":" + zone[3:]
        text += zone
    return datetime.fromisoformat(text)


def _parse_clf(match: re.Match) -> datetime:
    return datetime.strptime(match.group(1), "%d/%b/%Y:%H:%M:%S %z")


def _parse_syslog(match: re.Match) -> datetime:
    # syslog stamps carry no year
    year = datetime.now(timezone.utc).year
    return datetime.strptime(f"{year} {match.group(1)}", "%Y %b %d %H:%M:%S")


TIMESTAMP_RULES = [
    (_ISO_RE, _parse_iso),
    (_CLF_RE, _parse_clf),
    (_SYSLOG_RE, _parse_syslog),
]


def extract_timestamp(text: str) -> datetime | None:
    """Return the first recognizable timestamp in *text*, or None.

    Naive stamps are taken as UTC. Shapes that match but are not valid dates
    (e.g. month 13) are skipped.
    """
    for pattern, parse in TIMESTAMP_RULES:
        for match in pattern.finditer(text):
            try:
                ts = parse(match)
            except ValueError:
                continue
            if ts.tzinfo is None:
                ts = ts.replace(tzinfo=timezone.utc)
            return ts
    return None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LineClassifier:
    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self._clock = clock

    def level_of(self, text: str) -> str:
        return first_match(LEVEL_RULES, text, UNKNOWN_LEVEL)

    def category_of(self, text: str) -> str:
        return first_match(CATEGORY_RULES, text, GENERAL_CATEGORY)

    def classify(self, raw: RawLine, auto_indexed: bool = False) -> ClassifiedEntry:
        """Turn one RawLine into a ClassifiedEntry. Never raises on odd input."""
        timestamp = extract_timestamp(raw.text)
        if timestamp is None:
            logger.debug("No timestamp in %s:%d, using current time", raw.file_path, raw.line_number)
            timestamp = self._clock()

        return ClassifiedEntry(
            id=str(uuid.uuid4()),
            message=raw.text,
            level=self.level_of(raw.text),
            category=self.category_of(raw.text),
            timestamp=timestamp,
            context={
                "source_file": raw.file_path,
                "line_number": raw.line_number,
                "auto_indexed": auto_indexed,
            },
        )
