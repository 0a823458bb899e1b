"""Index builder.

Scans a data file, keys every record long enough to carry a key, and writes
the sorted (key, offset) entries to a fresh index file that atomically
replaces any previous one.
"""

from __future__ import annotations

import heapq
import logging
import os
import tempfile
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import BinaryIO

from sortedcontainers import SortedList

from ..core.config import IndexConfig
from ..core.errors import IndexIOError
from ..core.types import BuildResult, BuildStrategy, IndexEntry
from ..interfaces.records import RecordScanner
from .keys import extract_key
from .layout import entry_size, pack_entry, pack_header, unpack_entry
from .records import SimpleRecordScanner

logger = logging.getLogger(__name__)


class SimpleIndexBuilder:
    """Build a sorted fixed-width index over a data file.

    Args:
        config: Index configuration (key length, strategy, layout)

    Invariants:
        - Entries are written in ascending (key, offset) order
        - Records shorter than key_length are never indexed
        - The target index is replaced atomically; a failed build leaves it untouched
        - Collected entries belong to a single build() call
    """

    def __init__(self, config: IndexConfig):
        self.config = config
        self.key_length = config.key_length

    def build(self, data_path: str | Path, index_path: str | Path) -> BuildResult:
        """Rebuild ``index_path`` from ``data_path``."""
        data_path = Path(data_path)
        index_path = Path(index_path)
        strategy = self.config.build_strategy

        logger.info(
            f"Building index {index_path} from {data_path} "
            f"(key_length={self.key_length}, strategy={strategy.value})"
        )
        try:
            index_path.parent.mkdir(parents=True, exist_ok=True)
            if strategy is BuildStrategy.STAGED:
                scanned, written, runs = self._build_staged(data_path, index_path)
            else:
                scanned, written, runs = self._build_in_memory(data_path, index_path)
            index_size = index_path.stat().st_size
        except OSError as e:
            raise IndexIOError(f"Failed to build index {index_path}: {e}") from e

        result = BuildResult(
            index_path=index_path,
            key_length=self.key_length,
            strategy=strategy,
            records_scanned=scanned,
            entries_written=written,
            runs=runs,
            index_size=index_size,
        )
        if result.records_skipped:
            logger.info(f"Skipped {result.records_skipped} records shorter than {self.key_length} bytes")
        logger.info(f"Finalized index: {written} entries, {index_size} bytes")
        return result

    def _scan(self, data_path: Path) -> Iterator[tuple[bytes | None, int]]:
        """Yield (key_or_none, offset) for every record in file order."""
        scanner: RecordScanner = SimpleRecordScanner(data_path)
        for content, offset in scanner:
            yield extract_key(content, self.key_length), offset

    def _build_in_memory(self, data_path: Path, index_path: Path) -> tuple[int, int, int]:
        entries = SortedList()
        scanned = 0
        for key, offset in self._scan(data_path):
            scanned += 1
            if key is not None:
                entries.add((key, offset))

        written = self._write_index(index_path, entries)
        return scanned, written, 0

    def _build_staged(self, data_path: Path, index_path: Path) -> tuple[int, int, int]:
        """Sort-merge build holding at most run_max_entries entries in memory."""
        run_dir = Path(tempfile.mkdtemp(prefix=f"{index_path.name}.runs-", dir=index_path.parent))
        try:
            runs: list[Path] = []
            buffer: list[IndexEntry] = []
            scanned = 0
            for key, offset in self._scan(data_path):
                scanned += 1
                if key is None:
                    continue
                buffer.append((key, offset))
                if len(buffer) >= self.config.run_max_entries:
                    runs.append(self._spill_run(buffer, run_dir / f"run-{len(runs):06d}"))
                    buffer = []

            # The tail stays in memory as one more sorted input to the merge
            buffer.sort()
            fds: list[BinaryIO] = []
            try:
                for run in runs:
                    fds.append(open(run, "rb"))
                merged = heapq.merge(*(self._iter_run(fd) for fd in fds), buffer)
                written = self._write_index(index_path, merged)
            finally:
                for fd in fds:
                    fd.close()
            return scanned, written, len(runs)
        finally:
            for run in run_dir.iterdir():
                run.unlink(missing_ok=True)
            run_dir.rmdir()

    def _spill_run(self, buffer: list[IndexEntry], run_path: Path) -> Path:
        buffer.sort()
        with open(run_path, "wb") as f:
            for key, offset in buffer:
                f.write(pack_entry(key, offset))
        logger.debug(f"Spilled run {run_path.name}: {len(buffer)} entries")
        return run_path

    def _iter_run(self, fd: BinaryIO) -> Iterator[IndexEntry]:
        width = entry_size(self.key_length)
        while True:
            buf = fd.read(width)
            if len(buf) < width:
                break
            yield unpack_entry(buf, self.key_length)

    def _write_index(self, index_path: Path, entries: Iterable[IndexEntry]) -> int:
        """Write entries to a temporary sibling, then replace the index atomically."""
        fd, temp_name = tempfile.mkstemp(prefix=f"{index_path.name}.", suffix=".tmp", dir=index_path.parent)
        temp_path = Path(temp_name)
        count = 0
        try:
            with open(fd, "wb") as f:
                # mkstemp creates 0600; give the index the mode a plain open() would
                umask = os.umask(0)
                os.umask(umask)
                os.fchmod(f.fileno(), 0o666 & ~umask)
                if self.config.header:
                    f.write(pack_header(self.key_length))
                for key, offset in entries:
                    f.write(pack_entry(key, offset))
                    count += 1
                f.flush()
                if self.config.fsync:
                    os.fsync(f.fileno())

            os.replace(temp_path, index_path)
            logger.debug(f"Replaced {index_path} with {temp_path.name}")
        finally:
            temp_path.unlink(missing_ok=True)
        return count
