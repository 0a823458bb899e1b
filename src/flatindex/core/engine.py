"""Engine entry points - main public API.

Orchestrates the record scanner, builder, reader, index scanner and record
accessor behind three operations: build, search and list.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

from ..components.builder import SimpleIndexBuilder
from ..components.reader import SimpleIndexReader
from ..components.records import SimpleRecordAccessor
from ..components.scanner import SimpleIndexScanner
from ..interfaces.index import IndexBuilder, IndexReader, IndexScanner
from ..interfaces.records import RecordAccessor
from .config import IndexConfig
from .types import BuildResult, IndexInfo, Record

logger = logging.getLogger(__name__)


def resolve_config(key_length: int | None = None, config: IndexConfig | None = None) -> IndexConfig:
    """Combine an explicit key length with an optional config.

    An explicit key_length wins over the one carried by config.
    """
    if config is None:
        if key_length is None:
            raise ValueError("Either key_length or config is required")
        return IndexConfig(key_length=key_length)
    if key_length is not None and key_length != config.key_length:
        return config.with_overrides(key_length=key_length)
    return config


def _open_reader(index_path: str | Path, cfg: IndexConfig) -> IndexReader:
    return SimpleIndexReader(index_path, cfg.key_length, has_header=cfg.header)


def _open_accessor(data_path: str | Path) -> RecordAccessor:
    return SimpleRecordAccessor(data_path)


def build_index(
    data_path: str | Path,
    index_path: str | Path,
    key_length: int | None = None,
    *,
    config: IndexConfig | None = None,
) -> BuildResult:
    """Rebuild the index at index_path from the records in data_path."""
    cfg = resolve_config(key_length, config)
    builder: IndexBuilder = SimpleIndexBuilder(cfg)
    return builder.build(data_path, index_path)


def lookup(
    index_path: str | Path,
    data_path: str | Path,
    key: bytes | str,
    key_length: int | None = None,
    *,
    config: IndexConfig | None = None,
) -> Record | None:
    """Return the first record whose key equals ``key``, or None if not found."""
    cfg = resolve_config(key_length, config)
    search_key = cfg.encode_key(key)

    with _open_reader(index_path, cfg) as reader, _open_accessor(data_path) as accessor:
        offset = reader.lookup(search_key)
        if offset is None:
            logger.debug(f"Key {search_key!r} not found in {index_path}")
            return None
        return accessor.read_at(offset)


def lookup_all(
    index_path: str | Path,
    data_path: str | Path,
    key: bytes | str,
    key_length: int | None = None,
    *,
    config: IndexConfig | None = None,
) -> Iterator[Record]:
    """Yield every record whose key equals ``key``, in data-file order."""
    cfg = resolve_config(key_length, config)
    search_key = cfg.encode_key(key)

    with _open_reader(index_path, cfg) as reader, _open_accessor(data_path) as accessor:
        for offset in reader.lookup_all(search_key):
            yield accessor.read_at(offset)


def list_all(
    index_path: str | Path,
    data_path: str | Path,
    key_length: int | None = None,
    *,
    config: IndexConfig | None = None,
) -> Iterator[Record]:
    """Yield every indexed record in ascending key order."""
    cfg = resolve_config(key_length, config)
    scanner: IndexScanner = SimpleIndexScanner(index_path, cfg.key_length, has_header=cfg.header)

    with _open_accessor(data_path) as accessor:
        count = 0
        for _key, offset in scanner:
            yield accessor.read_at(offset)
            count += 1
    logger.debug(f"Listed {count} records via {index_path}")


def inspect_index(
    index_path: str | Path,
    key_length: int | None = None,
    *,
    config: IndexConfig | None = None,
) -> IndexInfo:
    """Validate an index file and describe its shape."""
    cfg = resolve_config(key_length, config)
    index_path = Path(index_path)

    with SimpleIndexReader(index_path, cfg.key_length, has_header=cfg.header) as reader:
        entry_count = len(reader)

    return IndexInfo(
        index_path=index_path,
        key_length=cfg.key_length,
        has_header=cfg.header,
        entry_count=entry_count,
        file_size=index_path.stat().st_size,
    )
