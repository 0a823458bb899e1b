"""On-disk layout of index files.

Index format:
    [header (12B, optional)] [entry]* with
    header = [magic "FIDX" (4B)] [version (1B)] [reserved (3B)] [key_length (4B)]
    entry  = [key (key_length B)] [offset (8B, signed, little-endian)]

Legacy indexes carry no header; the key length is agreed out of band.
"""

from __future__ import annotations

import os
import struct
from typing import BinaryIO

from ..core.errors import CorruptIndexError, SchemaMismatchError
from ..core.types import IndexEntry, Key, Offset

MAGIC = b"FIDX"
VERSION = 1
HEADER = struct.Struct("<4sB3xI")
HEADER_SIZE = HEADER.size
OFFSET = struct.Struct("<q")
OFFSET_SIZE = OFFSET.size


def entry_size(key_length: int) -> int:
    """Return the width of one packed entry."""
    return key_length + OFFSET_SIZE


def pack_header(key_length: int) -> bytes:
    return HEADER.pack(MAGIC, VERSION, key_length)


def pack_entry(key: Key, offset: Offset) -> bytes:
    return key + OFFSET.pack(offset)


def unpack_entry(buf: bytes, key_length: int) -> IndexEntry:
    """Split a packed entry into (key, offset)."""
    return buf[:key_length], OFFSET.unpack_from(buf, key_length)[0]


def read_header(fd: BinaryIO, key_length: int) -> None:
    """Validate the header at the start of ``fd``.

    Raises:
        CorruptIndexError: Magic or version is wrong, or the header is truncated
        SchemaMismatchError: Stored key length differs from ``key_length``
    """
    fd.seek(0)
    raw = fd.read(HEADER_SIZE)
    if len(raw) < HEADER_SIZE:
        raise CorruptIndexError(f"Truncated header: {len(raw)} of {HEADER_SIZE} bytes")

    magic, version, stored_key_length = HEADER.unpack(raw)
    if magic != MAGIC:
        raise CorruptIndexError(f"Invalid magic: {magic!r}")
    if version != VERSION:
        raise CorruptIndexError(f"Unsupported index version: {version}")
    if stored_key_length != key_length:
        raise SchemaMismatchError(expected=key_length, found=stored_key_length)


def count_entries(fd: BinaryIO, key_length: int, has_header: bool) -> tuple[int, int]:
    """Validate an open index file and return (data_start, entry_count).

    An empty file is an empty index in either layout.
    """
    fd.seek(0, os.SEEK_END)
    file_size = fd.tell()
    if file_size == 0:
        return 0, 0

    data_start = 0
    if has_header:
        read_header(fd, key_length)
        data_start = HEADER_SIZE

    payload = file_size - data_start
    width = entry_size(key_length)
    if payload % width != 0:
        raise CorruptIndexError(
            f"Index size {file_size} leaves {payload % width} trailing bytes "
            f"for entry size {width}"
        )
    return data_start, payload // width
