"""Key extraction from record content."""

from __future__ import annotations

from ..core.types import Key, Record


def extract_key(content: Record, key_length: int) -> Key | None:
    """Return the first ``key_length`` bytes of ``content``.

    Records shorter than ``key_length`` have no key and yield None; they are
    never padded.
    """
    if key_length <= 0:
        raise ValueError(f"key_length must be positive, got {key_length}")
    if len(content) < key_length:
        return None
    return content[:key_length]
