"""Sequential traversal of an index file in stored (ascending key) order."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from ..core.errors import IndexIOError
from ..core.types import IndexEntry
from .layout import count_entries, entry_size, unpack_entry

logger = logging.getLogger(__name__)


class SimpleIndexScanner:
    """Iterate (key, offset) entries from the start of an index file.

    Args:
        index_path: Path to the index file
        key_length: Key length the index was built with
        has_header: Whether the index uses the headered layout

    The file is validated when iteration starts, before any entry is yielded.
    """

    def __init__(self, index_path: str | Path, key_length: int, has_header: bool = True):
        if key_length <= 0:
            raise ValueError(f"key_length must be positive, got {key_length}")
        self.index_path = Path(index_path)
        self.key_length = key_length
        self.has_header = has_header

    def __iter__(self) -> Iterator[IndexEntry]:
        try:
            fd = open(self.index_path, "rb")
        except OSError as e:
            raise IndexIOError(f"Cannot open index file {self.index_path}: {e}") from e

        with fd:
            data_start, count = count_entries(fd, self.key_length, self.has_header)
            fd.seek(data_start)
            width = entry_size(self.key_length)

            emitted = 0
            while True:
                buf = fd.read(width)
                if len(buf) < width:
                    break
                yield unpack_entry(buf, self.key_length)
                emitted += 1

        logger.debug(f"Scanned {emitted} of {count} entries from {self.index_path}")
