"""LogTailer: full streaming reads and bounded backward tail reads."""

import os
import logging
from typing import Iterator

from log_indexer.errors import ReadError
from log_indexer.models import RawLine

logger = logging.getLogger(__name__)

DEFAULT_TAIL_LINES = 50
DEFAULT_CHUNK_SIZE = 4096


def _clean(line: str) -> str:
    return line.rstrip("\r\n")


def read_lines(path: str) -> Iterator[RawLine]:
    """Yield every non-blank line of *path* with its 1-based line number."""
    try:
        with open(path, "r", encoding="utf-8", errors="replace", newline="") as f:
            for number, line in enumerate(f, start=1):
                text = _clean(line)
                if text.strip():
                    yield RawLine(path, number, text)
    except OSError as e:
        raise ReadError(path, e.strerror or str(e)) from e


def tail_lines(path: str, max_lines: int = DEFAULT_TAIL_LINES,
               chunk_size: int = DEFAULT_CHUNK_SIZE) -> list[RawLine]:
    """Return the last *max_lines* lines of *path* without reading the whole file.

    Reads backward from EOF in *chunk_size* steps until more than *max_lines*
    newlines are buffered (so the first buffered line may be dropped as
    partial) or the start of the file is reached. Line numbers are positions
    within the returned window; ``offset`` is the byte position just past
    each line.
    """
    if max_lines < 1:
        return []
    try:
        with open(path, "rb") as f:
            f.seek(0, os.SEEK_END)
            pos = f.tell()
            data = b""
            newlines = 0
            while pos > 0 and newlines <= max_lines:
                step = min(chunk_size, pos)
                pos -= step
                f.seek(pos)
                chunk = f.read(step)
                newlines += chunk.count(b"\n")
                data = chunk + data
    except OSError as e:
        raise ReadError(path, e.strerror or str(e)) from e

    pieces = data.split(b"\n")
    start = pos
    if pos > 0:
        # first piece may begin mid-line
        start += len(pieces[0]) + 1
        pieces = pieces[1:]
    if pieces and pieces[-1] == b"":
        pieces.pop()

    spans = []
    for piece in pieces:
        end = start + len(piece) + 1
        spans.append((piece, end))
        start = end
    spans = spans[-max_lines:]

    file_size = pos + len(data)
    lines = []
    for number, (piece, end) in enumerate(spans, start=1):
        text = _clean(piece.decode("utf-8", errors="replace"))
        if text.strip():
            lines.append(RawLine(path, number, text, offset=min(end, file_size)))
    return lines


class LogTailer:
    """Selects between full reads (explicit runs) and tail reads (automatic runs)."""

    def __init__(self, tail_lines: int = DEFAULT_TAIL_LINES, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self._tail_lines = tail_lines
        self._chunk_size = chunk_size

    @property
    def tail_size(self) -> int:
        return self._tail_lines

    def read_all(self, path: str) -> Iterator[RawLine]:
        return read_lines(path)

    def read_tail(self, path: str) -> list[RawLine]:
        lines = tail_lines(path, self._tail_lines, self._chunk_size)
        logger.debug("Tailed %d lines from %s", len(lines), path)
        return lines

    def read(self, path: str, tail: bool = False):
        return self.read_tail(path) if tail else self.read_all(path)
