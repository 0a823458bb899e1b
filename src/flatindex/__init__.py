"""flatindex - sorted fixed-width secondary indexes over flat record files."""

from .core.config import IndexConfig
from .core.engine import build_index, inspect_index, list_all, lookup, lookup_all
from .core.errors import (
    FlatIndexError,
    IndexIOError,
    CorruptIndexError,
    SchemaMismatchError,
)
from .core.types import BuildResult, BuildStrategy, IndexEntry, IndexInfo, Key, Offset, Record

__all__ = [
    "IndexConfig",
    "FlatIndexError",
    "IndexIOError",
    "CorruptIndexError",
    "SchemaMismatchError",
    "build_index",
    "inspect_index",
    "list_all",
    "lookup",
    "lookup_all",
    "BuildResult",
    "BuildStrategy",
    "IndexEntry",
    "IndexInfo",
    "Key",
    "Offset",
    "Record",
]
