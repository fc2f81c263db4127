"""IndexingOrchestrator: Resolve -> Read -> Classify -> Filter -> Batch -> Forward.

Two entry points share one flow:

- ``run()``: explicit runs (CLI). Full reads, optional single-file or pattern
  override, summary returned to the caller.
- ``handle_event()``: automatic runs after a request or command finished.
  Bounded tail reads, skips its own command, never raises.

Per-file and per-batch failures become RunWarning values on the summary; a
single bad file or failing batch never aborts the run.
"""

import os
import logging

from log_indexer.batcher import BatchAccumulator
from log_indexer.classifier import LineClassifier
from log_indexer.config import Config
from log_indexer.errors import FORWARDING, READ, ReadError
from log_indexer.filters import ExclusionFilter
from log_indexer.models import RunSummary, RunWarning, UnitOfWorkEvent
from log_indexer.reader import LogTailer
from log_indexer.registry import WatermarkRegistry
from log_indexer.resolver import SourceResolver, is_readable

logger = logging.getLogger(__name__)

INDEX_COMMAND_NAME = "logs:index"

AUTO_FAILURE_MESSAGE = "Failed to process log file for auto-indexing"
MANUAL_FAILURE_MESSAGE = "Failed to process log file"


class IndexingOrchestrator:
    def __init__(self, processor, config: Config, logger=None,
                 classifier: LineClassifier | None = None,
                 skip_names=()):
        """
        Args:
            processor: downstream collaborator with ``process(batch)``.
            config: loaded Config (sources + indexing settings).
            logger: optional collaborator with ``warning(message, context)``.
            classifier: LineClassifier override, mainly for tests.
            skip_names: extra unit-of-work names that never trigger a run.
        """
        self._processor = processor
        self._config = config
        self._logger = logger
        self._classifier = classifier or LineClassifier()
        self._skip_names = frozenset({INDEX_COMMAND_NAME, *skip_names})

    @property
    def config(self) -> Config:
        return self._config

    # --- entry points -------------------------------------------------------

    def run(self, path: str | None = None, pattern: str | None = None,
            force: bool = False) -> RunSummary:
        """Explicit run over all configured sources, or over *path* alone.

        *force* is recorded on the summary; explicit runs never skip
        previously indexed content, so it changes nothing else.
        """
        summary = RunSummary(auto=False, forced=force)
        logger.debug("Discovering (path=%s, pattern=%s, force=%s)", path, pattern, force)

        if path:
            if is_readable(path):
                files = [path]
            else:
                logger.info("Log file %s is missing or unreadable", path)
                files = []
        else:
            resolver = SourceResolver(self._config.log_sources, on_warning=summary.warnings.append)
            files = resolver.resolve(pattern)

        self._execute(files, summary, tail=False)
        return summary

    def handle_event(self, event: UnitOfWorkEvent) -> RunSummary | None:
        """Automatic run after a finished unit of work. Returns None when skipped."""
        indexing = self._config.indexing
        if not indexing.auto_index:
            return None
        if event.name in self._skip_names:
            logger.debug("Skipping auto-indexing after %s %s", event.kind, event.name)
            return None

        try:
            registry = WatermarkRegistry(indexing.state_file) if indexing.state_file else None
            summary = RunSummary(auto=True)
            resolver = SourceResolver(self._config.log_sources, on_warning=summary.warnings.append)
            self._execute(resolver.resolve(), summary, tail=True, registry=registry)
            if registry is not None:
                registry.save()
        except Exception:
            logger.exception("Auto-indexing after %s %s failed", event.kind, event.name)
            return None

        logger.debug("Auto-indexed %d entries from %d files after %s %s",
                     summary.entries_indexed, summary.files_found, event.kind, event.name)
        return summary

    # --- pipeline -----------------------------------------------------------

    def _execute(self, files, summary: RunSummary, tail: bool,
                 registry: WatermarkRegistry | None = None):
        indexing = self._config.indexing
        tailer = LogTailer(tail_lines=indexing.tail_lines)
        exclusion = ExclusionFilter(indexing.excluded_patterns)

        for path in files:
            summary.files_found += 1
            if self._index_file(path, summary, tailer, exclusion, tail, registry):
                summary.files_processed += 1
            else:
                summary.files_skipped += 1

        summary.entries_excluded = exclusion.dropped
        if summary.files_found == 0:
            summary.state = "empty"
            logger.info("No log files found to index")
        else:
            logger.info("Indexed %d entries from %d/%d files (%d excluded, %d skipped)",
                        summary.entries_indexed, summary.files_processed, summary.files_found,
                        summary.entries_excluded, summary.files_skipped)

    def _index_file(self, path: str, summary: RunSummary, tailer: LogTailer,
                    exclusion: ExclusionFilter, tail: bool,
                    registry: WatermarkRegistry | None) -> bool:
        """Index one file. Returns False if any read or forwarding failure occurred."""
        failed = False

        def forward(batch):
            nonlocal failed
            try:
                self._processor.process(batch)
            except Exception as e:
                failed = True
                self._warn(summary, FORWARDING, path, e, auto=tail)
                return
            summary.batches_forwarded += 1
            summary.entries_indexed += len(batch)

        accumulator = BatchAccumulator(self._config.indexing.batch_size, forward)
        logger.debug("Reading %s (%s mode)", path, "tail" if tail else "full")
        try:
            inode, watermark, last_offset = None, 0, None
            if registry is not None:
                stat = os.stat(path)
                inode = stat.st_ino
                watermark = registry.watermark(path, stat.st_size, inode)

            for raw in tailer.read(path, tail=tail):
                if raw.offset is not None:
                    if raw.offset <= watermark:
                        continue
                    last_offset = raw.offset
                entry = self._classifier.classify(raw, auto_indexed=tail)
                if exclusion.should_include(entry):
                    accumulator.add(entry)
            accumulator.flush()
        except (ReadError, OSError) as e:
            self._warn(summary, READ, path, e, auto=tail)
            return False
        except Exception as e:
            logger.exception("Unexpected error while indexing %s", path)
            self._warn(summary, READ, path, e, auto=tail)
            return False

        if failed:
            return False
        if registry is not None and last_offset is not None:
            registry.update(path, last_offset, inode)
        return True

    def _warn(self, summary: RunSummary, kind: str, path: str, error: Exception, auto: bool):
        summary.warnings.append(RunWarning(kind, path, str(error)))
        logger.warning("%s failure for %s: %s", kind.capitalize(), path, error)
        if self._logger is not None:
            message = AUTO_FAILURE_MESSAGE if auto else MANUAL_FAILURE_MESSAGE
            self._logger.warning(message, {"error": str(error), "source_file": path, "kind": kind})
