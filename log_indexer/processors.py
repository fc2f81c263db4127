"""Downstream Processor interface and the processors shipped with the CLI."""

import json
import logging
from collections import Counter
from typing import TextIO

from log_indexer.models import ClassifiedEntry, entry_to_dict

logger = logging.getLogger(__name__)


class Processor:
    """Receives each batch. Raising from ``process`` marks the batch failed."""

    def process(self, batch: list[ClassifiedEntry]) -> None:
        raise NotImplementedError


class LoggingProcessor(Processor):
    """Logs a one-line summary per batch. Default when nothing else is wired."""

    def process(self, batch: list[ClassifiedEntry]) -> None:
        levels = Counter(e.level for e in batch)
        logger.info("Batch of %d entries (%s)", len(batch),
                    ", ".join(f"{k}={v}" for k, v in sorted(levels.items())))


class NdjsonProcessor(Processor):
    """Writes one JSON object per entry to *stream*."""

    def __init__(self, stream: TextIO):
        self._stream = stream

    def process(self, batch: list[ClassifiedEntry]) -> None:
        for entry in batch:
            self._stream.write(json.dumps(entry_to_dict(entry)) + "\n")
        self._stream.flush()
