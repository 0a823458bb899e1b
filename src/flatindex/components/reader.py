"""Binary search over an index file on disk.

Every probe is an independent seek + read of one key, so memory use stays
bounded by the key length no matter how large the index is.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from ..core.errors import CorruptIndexError, IndexIOError
from ..core.types import Key, Offset
from .layout import OFFSET, OFFSET_SIZE, count_entries, entry_size

logger = logging.getLogger(__name__)


class SimpleIndexReader:
    """Resolve keys to data-file offsets via on-disk binary search.

    Args:
        index_path: Path to the index file
        key_length: Key length the index was built with
        has_header: Whether the index uses the headered layout

    Invariants:
        - The index is validated (header, size) before any search
        - lookup() returns the leftmost entry among duplicate keys
    """

    def __init__(self, index_path: str | Path, key_length: int, has_header: bool = True):
        if key_length <= 0:
            raise ValueError(f"key_length must be positive, got {key_length}")
        self.index_path = Path(index_path)
        self.key_length = key_length
        self.has_header = has_header
        self._entry_size = entry_size(key_length)

        try:
            self._fd = open(self.index_path, "rb")
        except OSError as e:
            raise IndexIOError(f"Cannot open index file {self.index_path}: {e}") from e

        try:
            self._data_start, self._count = count_entries(self._fd, key_length, has_header)
        except BaseException:
            self.close()
            raise

        logger.debug(f"Opened index {self.index_path}: {self._count} entries")

    def __len__(self) -> int:
        return self._count

    def _key_at(self, position: int) -> Key:
        self._fd.seek(self._data_start + position * self._entry_size)
        key = self._fd.read(self.key_length)
        if len(key) < self.key_length:
            raise CorruptIndexError(f"Short read at entry {position} of {self.index_path}")
        return key

    def _offset_at(self, position: int) -> Offset:
        self._fd.seek(self._data_start + position * self._entry_size + self.key_length)
        raw = self._fd.read(OFFSET_SIZE)
        if len(raw) < OFFSET_SIZE:
            raise CorruptIndexError(f"Short read at entry {position} of {self.index_path}")
        return OFFSET.unpack(raw)[0]

    def _leftmost(self, key: Key) -> int | None:
        """Return the position of the first entry equal to ``key``, or None."""
        if self._fd is None:
            raise RuntimeError("Index reader is closed")
        if len(key) != self.key_length:
            logger.debug(f"Search key of {len(key)} bytes cannot match key_length={self.key_length}")
            return None

        low, high = 0, self._count
        found = None
        probes = 0

        while low < high:
            mid = low + (high - low) // 2
            current = self._key_at(mid)
            probes += 1

            if current < key:
                low = mid + 1
            elif current > key:
                high = mid
            else:
                # Keep narrowing left so duplicates resolve to the first entry
                found = mid
                high = mid

        logger.debug(f"Binary search for {key!r}: {probes} probes, position={found}")
        return found

    def lookup(self, key: Key) -> Offset | None:
        """Return the data-file offset for ``key``, or None if absent."""
        position = self._leftmost(key)
        if position is None:
            return None
        return self._offset_at(position)

    def lookup_all(self, key: Key) -> Iterator[Offset]:
        """Yield offsets of every entry equal to ``key`` in index order."""
        position = self._leftmost(key)
        if position is None:
            return
        while position < self._count and self._key_at(position) == key:
            yield self._offset_at(position)
            position += 1

    def close(self) -> None:
        """Release file descriptors."""
        if self._fd:
            self._fd.close()
            self._fd = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
