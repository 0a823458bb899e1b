"""Exception hierarchy for flatindex.

Defines all custom exceptions used throughout the implementation.
"""

from __future__ import annotations


class FlatIndexError(Exception):
    """Base exception for all flatindex errors."""
    pass


class IndexIOError(FlatIndexError):
    """Raised when a data or index file cannot be opened, read or written."""
    pass


class CorruptIndexError(FlatIndexError):
    """Raised when an index file is structurally invalid."""
    pass


class SchemaMismatchError(CorruptIndexError):
    """Raised when the caller's key length differs from the one the index was built with."""

    def __init__(self, expected: int, found: int):
        super().__init__(f"Index was built with key_length={found}, caller supplied {expected}")
        self.expected = expected
        self.found = found
