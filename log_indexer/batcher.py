"""BatchAccumulator: groups entries into fixed-size, order-preserving batches."""

import logging
from typing import Callable

from log_indexer.models import ClassifiedEntry

logger = logging.getLogger(__name__)


class BatchAccumulator:
    """Collects entries and hands full batches to *on_flush*.

    Every added entry is handed over exactly once, in order, in batches of at
    most ``batch_size``. Call ``flush()`` at end of stream for the remainder.
    """

    def __init__(self, batch_size: int, on_flush: Callable[[list[ClassifiedEntry]], None]):
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        self._batch_size = batch_size
        self._on_flush = on_flush
        self._buffer: list[ClassifiedEntry] = []
        self._batches_emitted = 0
        self._entries_emitted = 0

    @property
    def batch_size(self) -> int:
        return self._batch_size

    @property
    def pending_count(self) -> int:
        return len(self._buffer)

    @property
    def batches_emitted(self) -> int:
        return self._batches_emitted

    @property
    def entries_emitted(self) -> int:
        return self._entries_emitted

    def add(self, entry: ClassifiedEntry):
        self._buffer.append(entry)
        if len(self._buffer) >= self._batch_size:
            self._emit()

    def flush(self):
        """Hand over any non-empty partial batch."""
        if self._buffer:
            self._emit()

    def _emit(self):
        # detach first so a failing sink never gets the same entries again
        batch, self._buffer = self._buffer, []
        self._batches_emitted += 1
        self._entries_emitted += len(batch)
        logger.debug("Emitting batch #%d (%d entries)", self._batches_emitted, len(batch))
        self._on_flush(batch)
