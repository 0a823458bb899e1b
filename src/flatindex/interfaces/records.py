"""Protocol definitions for data-file access."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ..core.types import Offset, Record


class RecordScanner(Protocol):
    """Sequential, one-pass view of a data file."""

    def __iter__(self) -> Iterator[tuple[Record, Offset]]:
        """Yield (content, start_offset) for each record in file order."""
        ...


class RecordAccessor(Protocol):
    """Random access to records by byte offset."""

    def read_at(self, offset: Offset) -> Record:
        """Return the record whose content starts at offset."""
        ...

    def close(self) -> None:
        """Release file descriptors."""
        ...

    def __enter__(self) -> RecordAccessor: ...

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool: ...
