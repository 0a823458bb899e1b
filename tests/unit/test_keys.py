"""Unit tests for key extraction."""

import pytest

from flatindex.components.keys import extract_key


@pytest.mark.parametrize(
    "content, key_length, expected",
    [
        (b"AAA:1", 3, b"AAA"),  # longer than key
        (b"AAA", 3, b"AAA"),  # exactly key length
        (b"X:9", 5, None),  # too short, no key
        (b"", 1, None),  # empty record
        (b"\x00\xff\x10rest", 3, b"\x00\xff\x10"),  # binary bytes
    ],
)
def test_extract_key(content, key_length, expected):
    assert extract_key(content, key_length) == expected


@pytest.mark.parametrize("key_length", [0, -3])
def test_extract_key_rejects_non_positive_length(key_length):
    with pytest.raises(ValueError, match="key_length must be positive"):
        extract_key(b"abc", key_length)
