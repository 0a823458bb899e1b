"""Sequential and random access to records in a data file.

A record is the bytes of one line, excluding its b"\\n" terminator. Offsets
are byte positions of the first content byte, so for consecutive records
``offset[i + 1] == offset[i] + len(content[i]) + 1``. A b"\\r" before the
terminator is content on both the scan and the read path.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

from ..core.errors import CorruptIndexError, IndexIOError
from ..core.types import Offset, Record

logger = logging.getLogger(__name__)

TERMINATOR = b"\n"


def _strip_terminator(line: bytes) -> Record:
    if line.endswith(TERMINATOR):
        return line[:-1]
    return line


class SimpleRecordScanner:
    """One-pass scan of a data file yielding (content, start_offset).

    Args:
        data_path: Path to the newline-delimited data file

    Invariants:
        - Records are yielded in file order
        - A final record without terminator is still yielded
        - Nothing is yielded for the empty fragment after a trailing terminator
    """

    def __init__(self, data_path: str | Path):
        self.data_path = Path(data_path)

    def __iter__(self) -> Iterator[tuple[Record, Offset]]:
        try:
            fd = open(self.data_path, "rb")
        except OSError as e:
            raise IndexIOError(f"Cannot open data file {self.data_path}: {e}") from e

        with fd:
            offset = 0
            for line in fd:
                content = _strip_terminator(line)
                yield content, offset
                offset += len(content) + len(TERMINATOR)

        logger.debug(f"Scanned {self.data_path} up to offset {offset}")


class SimpleRecordAccessor:
    """Random access to single records by byte offset.

    Args:
        data_path: Path to the newline-delimited data file

    Invariants:
        - read_at(offset) returns exactly what the scanner yielded at offset
    """

    def __init__(self, data_path: str | Path):
        self.data_path = Path(data_path)
        try:
            self._fd = open(self.data_path, "rb")
        except OSError as e:
            raise IndexIOError(f"Cannot open data file {self.data_path}: {e}") from e
        self._size = os.fstat(self._fd.fileno()).st_size

    def read_at(self, offset: Offset) -> Record:
        """Return the record starting at ``offset``.

        Raises:
            CorruptIndexError: Offset lies outside the data file
        """
        if self._fd is None:
            raise RuntimeError("Record accessor is closed")
        if offset < 0 or offset >= self._size:
            raise CorruptIndexError(
                f"Offset {offset} is outside data file {self.data_path} ({self._size} bytes)"
            )

        self._fd.seek(offset)
        return _strip_terminator(self._fd.readline())

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
