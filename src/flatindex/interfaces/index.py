"""Protocol definitions for index construction and queries."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from ..core.types import BuildResult, IndexEntry, Key, Offset


class IndexBuilder(Protocol):
    """Full rebuild of an index file from a data file."""

    def build(self, data_path: str | Path, index_path: str | Path) -> BuildResult:
        """Replace index_path with a sorted index over data_path."""
        ...


class IndexReader(Protocol):
    """Point lookups against a sorted index file."""

    def lookup(self, key: Key) -> Offset | None:
        """Return the offset of the first entry equal to key, or None."""
        ...

    def lookup_all(self, key: Key) -> Iterator[Offset]:
        """Yield offsets of all entries equal to key."""
        ...

    def close(self) -> None:
        """Release file descriptors."""
        ...

    def __enter__(self) -> IndexReader: ...

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool: ...


class IndexScanner(Protocol):
    """Ordered sequential traversal of an index file."""

    def __iter__(self) -> Iterator[IndexEntry]:
        """Yield (key, offset) entries in stored order."""
        ...
