"""Watermark registry: how far automatic runs have already indexed each file.

The state file maps a log path to ``{"offset": int, "inode": int}``. Anything
else in it is treated like a corrupt file: the registry starts empty and the
next save overwrites it.
"""

import json
import os
import logging
from dataclasses import asdict, dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Watermark:
    offset: int
    inode: int | None = None


def _parse_entries(data) -> dict[str, Watermark]:
    if not isinstance(data, dict):
        raise ValueError(f"expected a mapping, got {type(data).__name__}")

    entries = {}
    for path, raw in data.items():
        if not isinstance(raw, dict):
            raise ValueError(f"entry for {path} is not a mapping")
        offset, inode = raw.get("offset", 0), raw.get("inode")
        if not isinstance(offset, int) or offset < 0:
            raise ValueError(f"entry for {path} has invalid offset {offset!r}")
        if inode is not None and not isinstance(inode, int):
            raise ValueError(f"entry for {path} has invalid inode {inode!r}")
        entries[path] = Watermark(offset, inode)
    return entries


class WatermarkRegistry:
    def __init__(self, registry_file: str):
        self._path = registry_file
        self._marks: dict[str, Watermark] = {}
        self._dirty = False
        self._load()

    def __len__(self) -> int:
        return len(self._marks)

    def _load(self):
        if not os.path.exists(self._path):
            return
        try:
            with open(self._path, "r", encoding="utf-8") as f:
                self._marks = _parse_entries(json.load(f))
        except (ValueError, OSError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning("Ignoring unusable watermark registry %s: %s", self._path, e)
            self._marks = {}
            return
        logger.debug("Loaded %d watermarks from %s", len(self._marks), self._path)

    def get(self, path: str) -> Watermark | None:
        return self._marks.get(path)

    def watermark(self, path: str, size: int, inode: int) -> int:
        """Byte offset already indexed in *path*, or 0 after rotation or truncation."""
        mark = self._marks.get(path)
        if mark is None:
            return 0
        if mark.inode is not None and mark.inode != inode:
            logger.info("File rotated (inode changed): %s", path)
            return 0
        if size < mark.offset:
            logger.info("File truncated: %s", path)
            return 0
        return mark.offset

    def update(self, path: str, offset: int, inode: int):
        mark = Watermark(offset, inode)
        if self._marks.get(path) != mark:
            self._marks[path] = mark
            self._dirty = True

    def save(self):
        """Write the registry if anything changed, via tmp file and rename."""
        if not self._dirty:
            return
        os.makedirs(os.path.dirname(self._path) or ".", exist_ok=True)
        tmp_path = self._path + ".tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump({path: asdict(mark) for path, mark in self._marks.items()}, f, indent=2)
        os.replace(tmp_path, self._path)
        self._dirty = False
