"""Common type definitions for flatindex.

Defines fundamental types used across all components.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

# Core primitive types
Key = bytes
Offset = int
Record = bytes
IndexEntry = tuple[Key, Offset]


class BuildStrategy(Enum):
    """How the builder orders entries before writing them."""

    MEMORY = "memory"
    STAGED = "staged"


@dataclass(frozen=True)
class BuildResult:
    """Summary of a completed index build."""

    index_path: Path
    key_length: int
    strategy: BuildStrategy
    records_scanned: int
    entries_written: int
    runs: int
    index_size: int

    @property
    def records_skipped(self) -> int:
        """Records too short to carry a key."""
        return self.records_scanned - self.entries_written


@dataclass(frozen=True)
class IndexInfo:
    """Shape of an index file as seen by a reader."""

    index_path: Path
    key_length: int
    has_header: bool
    entry_count: int
    file_size: int
