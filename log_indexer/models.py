"""Data model shared by the pipeline stages."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

LEVELS = ("error", "warning", "info", "debug", "unknown")

HTTP = "http"
CONSOLE = "console"


@dataclass(frozen=True)
class RawLine:
    file_path: str
    line_number: int
    text: str
    offset: int | None = None   # byte position just past the line (tail reads only)


@dataclass
class ClassifiedEntry:
    id: str
    message: str
    level: str
    category: str
    timestamp: datetime
    context: dict[str, Any] = field(default_factory=dict)


def entry_to_dict(entry: ClassifiedEntry) -> dict[str, Any]:
    """Convert a ClassifiedEntry to a JSON-ready dict."""
    return {
        "id": entry.id,
        "message": entry.message,
        "level": entry.level,
        "category": entry.category,
        "timestamp": entry.timestamp.isoformat(),
        "context": dict(entry.context),
    }


@dataclass(frozen=True)
class UnitOfWorkEvent:
    """A finished HTTP request or console command reported by the host."""

    kind: str               # "http" or "console"
    name: str               # endpoint / command name
    status: int | None = None


@dataclass(frozen=True)
class RunWarning:
    kind: str               # errors.DISCOVERY, errors.READ or errors.FORWARDING
    source_file: str
    error: str


@dataclass
class RunSummary:
    auto: bool = False
    forced: bool = False
    state: str = "done"     # "done" or "empty"
    files_found: int = 0
    files_processed: int = 0
    files_skipped: int = 0
    entries_indexed: int = 0
    entries_excluded: int = 0
    batches_forwarded: int = 0
    warnings: list[RunWarning] = field(default_factory=list)

    @property
    def failed_files(self) -> list[str]:
        seen: list[str] = []
        for w in self.warnings:
            if w.source_file not in seen:
                seen.append(w.source_file)
        return seen
