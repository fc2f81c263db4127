import pytest

from log_indexer.config import Config, IndexingConfig, LogSource


class RecordingProcessor:
    """Processor double that keeps every batch it receives."""

    def __init__(self, fail_with: Exception | None = None):
        self.batches = []
        self._fail_with = fail_with

    def process(self, batch):
        self.batches.append(list(batch))
        if self._fail_with is not None:
            raise self._fail_with

    @property
    def entries(self):
        return [e for batch in self.batches for e in batch]


class RecordingLogger:
    """Optional logger collaborator double."""

    def __init__(self):
        self.warnings = []

    def warning(self, message, context):
        self.warnings.append((message, context))


@pytest.fixture
def processor():
    return RecordingProcessor()


@pytest.fixture
def log_dir(tmp_path):
    d = tmp_path / "logs"
    d.mkdir()
    return d


@pytest.fixture
def write_log(log_dir):
    def _write(name: str, lines) -> str:
        path = log_dir / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(lines, str):
            path.write_text(lines)
        else:
            path.write_text("".join(line + "\n" for line in lines))
        return str(path)
    return _write


@pytest.fixture
def make_config(log_dir):
    def _make(**indexing) -> Config:
        indexing.setdefault("batch_size", 10)
        indexing.setdefault("excluded_patterns", ("/health", "/metrics"))
        return Config(
            log_sources=(LogSource(path=str(log_dir), pattern="*.log"),),
            indexing=IndexingConfig(**indexing),
        )
    return _make
