"""Exception taxonomy and per-file error kinds for the indexing pipeline."""

# Kinds recorded on RunWarning. None of these abort a run.
DISCOVERY = "discovery"
READ = "read"
FORWARDING = "forwarding"


class LogIndexerError(Exception):
    """Base class for log-indexer errors."""


class ConfigurationError(LogIndexerError):
    """Missing or invalid settings. Fatal: no partial run is attempted."""


class ReadError(LogIndexerError):
    """A log file vanished or became unreadable while it was being read."""

    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot read {path}: {reason}")
        self.path = path
        self.reason = reason
