"""Unit tests for the index builder."""

import os
import shutil
import tempfile
from pathlib import Path

import pytest

from flatindex.components.builder import SimpleIndexBuilder
from flatindex.components.layout import HEADER_SIZE, entry_size, pack_entry, pack_header
from flatindex.core.config import IndexConfig
from flatindex.core.errors import IndexIOError
from flatindex.core.types import BuildStrategy


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    yield tmpdir
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def data_path(temp_dir):
    """Create the three-record example data file."""
    path = Path(temp_dir) / "data.txt"
    path.write_bytes(b"AAA:1\nBBB:2\nAAC:3\n")
    return path


@pytest.fixture
def index_path(temp_dir):
    """Index file path."""
    return Path(temp_dir) / "out" / "data.idx"


def _builder(key_length=3, **kwargs):
    return SimpleIndexBuilder(IndexConfig(key_length=key_length, fsync=False, **kwargs))


@pytest.mark.parametrize("strategy", list(BuildStrategy))
def test_build_writes_sorted_entries(data_path, index_path, strategy):
    """Test entries are written in key order with their data offsets."""
    result = _builder(build_strategy=strategy).build(data_path, index_path)

    expected = pack_header(3) + pack_entry(b"AAA", 0) + pack_entry(b"AAC", 12) + pack_entry(b"BBB", 6)
    assert index_path.read_bytes() == expected
    assert result.entries_written == 3
    assert result.records_scanned == 3
    assert result.records_skipped == 0
    assert result.strategy is strategy
    assert result.index_size == len(expected)


def test_build_skips_short_records(temp_dir, index_path):
    """Test records shorter than the key length are left out."""
    data = Path(temp_dir) / "data.txt"
    data.write_bytes(b"AAA:1\nX:9\nBBB:2\n")

    result = _builder(key_length=5).build(data, index_path)

    assert result.records_scanned == 3
    assert result.entries_written == 2
    assert result.records_skipped == 1
    assert index_path.stat().st_size == HEADER_SIZE + 2 * entry_size(5)


def test_build_orders_duplicates_by_offset(temp_dir, index_path):
    """Test duplicate keys keep data-file order."""
    data = Path(temp_dir) / "data.txt"
    data.write_bytes(b"K01:c\nK02:b\nK01:a\n")

    _builder().build(data, index_path)

    expected = pack_header(3) + pack_entry(b"K01", 0) + pack_entry(b"K01", 12) + pack_entry(b"K02", 6)
    assert index_path.read_bytes() == expected


def test_build_empty_data_file(temp_dir, index_path):
    """Test an empty data file produces a header-only index."""
    data = Path(temp_dir) / "data.txt"
    data.write_bytes(b"")

    result = _builder().build(data, index_path)

    assert result.entries_written == 0
    assert index_path.read_bytes() == pack_header(3)


def test_build_legacy_layout(data_path, index_path):
    """Test the headerless layout contains entries only."""
    _builder(header=False).build(data_path, index_path)

    assert index_path.stat().st_size == 3 * entry_size(3)
    assert index_path.read_bytes()[:3] == b"AAA"


def test_build_is_idempotent(data_path, index_path):
    """Test rebuilding unchanged data gives a byte-identical index."""
    builder = _builder()
    builder.build(data_path, index_path)
    first = index_path.read_bytes()

    builder.build(data_path, index_path)

    assert index_path.read_bytes() == first


def test_staged_build_matches_memory_build(temp_dir):
    """Test the sort-merge strategy produces the same bytes as the in-memory one."""
    data = Path(temp_dir) / "data.txt"
    lines = [f"{(i * 7919) % 13:02d}-record-{i}" for i in range(50)] + ["z"]
    data.write_bytes("\n".join(lines).encode() + b"\n")

    memory_idx = Path(temp_dir) / "memory.idx"
    staged_idx = Path(temp_dir) / "staged.idx"
    _builder(key_length=2).build(data, memory_idx)
    result = _builder(key_length=2, build_strategy="staged", run_max_entries=7).build(data, staged_idx)

    assert staged_idx.read_bytes() == memory_idx.read_bytes()
    assert result.entries_written == 50
    assert result.records_skipped == 1
    assert result.runs == 7  # 50 entries in runs of 7, tail of 1 merged from memory


def test_staged_build_removes_run_files(data_path, index_path):
    """Test spill runs and their directory are deleted after the build."""
    _builder(build_strategy=BuildStrategy.STAGED, run_max_entries=1).build(data_path, index_path)

    assert os.listdir(index_path.parent) == ["data.idx"]


def test_build_missing_data_file(temp_dir, index_path):
    """Test an unreadable data file raises and creates no index."""
    with pytest.raises(IndexIOError, match="Cannot open data file"):
        _builder().build(Path(temp_dir) / "missing.txt", index_path)

    assert not index_path.exists()
    assert os.listdir(index_path.parent) == []


def test_staged_build_missing_data_file_cleans_up(temp_dir, index_path):
    """Test a failed staged build leaves no temporary files behind."""
    with pytest.raises(IndexIOError):
        _builder(build_strategy=BuildStrategy.STAGED).build(Path(temp_dir) / "missing.txt", index_path)

    assert os.listdir(index_path.parent) == []


def test_failed_rebuild_keeps_previous_index(temp_dir, data_path, index_path):
    """Test a failed rebuild leaves the earlier index untouched."""
    builder = _builder()
    builder.build(data_path, index_path)
    before = index_path.read_bytes()

    with pytest.raises(IndexIOError):
        builder.build(Path(temp_dir) / "missing.txt", index_path)

    assert index_path.read_bytes() == before
    assert os.listdir(index_path.parent) == ["data.idx"]


def test_build_leaves_unrelated_tmp_file_alone(data_path, index_path):
    """Test a user file named like a temp sibling is neither overwritten nor removed."""
    index_path.parent.mkdir(parents=True)
    user_file = index_path.with_name("data.idx.tmp")
    user_file.write_bytes(b"keep me")

    _builder().build(data_path, index_path)

    assert user_file.read_bytes() == b"keep me"
    assert sorted(os.listdir(index_path.parent)) == ["data.idx", "data.idx.tmp"]


def test_build_unwritable_index_location(temp_dir, data_path):
    """Test an index path under a regular file raises IndexIOError."""
    blocker = Path(temp_dir) / "blocker"
    blocker.write_bytes(b"not a directory")

    with pytest.raises(IndexIOError, match="Failed to build index"):
        _builder().build(data_path, blocker / "data.idx")


def test_build_replaces_stale_index(temp_dir, data_path, index_path):
    """Test a rebuild fully replaces longer previous contents."""
    index_path.parent.mkdir(parents=True)
    index_path.write_bytes(b"\xff" * 500)

    _builder().build(data_path, index_path)

    assert index_path.stat().st_size == HEADER_SIZE + 3 * entry_size(3)


def test_built_index_follows_umask(data_path, index_path):
    """Test the index gets the usual umask-derived mode, not the temp file's 0600."""
    umask = os.umask(0o022)
    try:
        _builder().build(data_path, index_path)
    finally:
        os.umask(umask)

    assert index_path.stat().st_mode & 0o777 == 0o644
