"""Configuration for flatindex.

Defines all tunable parameters for building and querying an index.
"""

from __future__ import annotations

import codecs
import logging
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from .types import BuildStrategy

logger = logging.getLogger(__name__)

CONFIG_TABLE = "flatindex"


@dataclass
class IndexConfig:
    """Configuration parameters for the index engine.

    Attributes:
        key_length: Number of leading record bytes used as the key
        build_strategy: In-memory sort or staged sort-merge
        run_max_entries: Entries buffered per spill run (staged builds only)
        header: Whether index files carry the magic + key_length header
        fsync: Whether to fsync the index before atomically replacing it
        encoding: Encoding applied to search keys given as str
    """

    key_length: int
    build_strategy: BuildStrategy = BuildStrategy.MEMORY
    run_max_entries: int = 1_000_000
    header: bool = True
    fsync: bool = True
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        if isinstance(self.key_length, bool) or not isinstance(self.key_length, int):
            raise ValueError(f"key_length must be an integer, got {self.key_length!r}")
        if self.key_length <= 0:
            raise ValueError(f"key_length must be positive, got {self.key_length}")
        if not isinstance(self.build_strategy, BuildStrategy):
            try:
                self.build_strategy = BuildStrategy(self.build_strategy)
            except ValueError:
                choices = ", ".join(s.value for s in BuildStrategy)
                raise ValueError(
                    f"Unknown build strategy {self.build_strategy!r} (expected one of: {choices})"
                ) from None
        if isinstance(self.run_max_entries, bool) or not isinstance(self.run_max_entries, int):
            raise ValueError(f"run_max_entries must be an integer, got {self.run_max_entries!r}")
        for name in ("header", "fsync"):
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"{name} must be true or false, got {getattr(self, name)!r}")
        if self.run_max_entries <= 0:
            raise ValueError(f"run_max_entries must be positive, got {self.run_max_entries}")
        try:
            codecs.lookup(self.encoding)
        except (LookupError, TypeError) as e:
            raise ValueError(f"Unknown encoding {self.encoding!r}") from e

    def encode_key(self, key: bytes | str) -> bytes:
        """Return the search key as bytes."""
        if isinstance(key, str):
            return key.encode(self.encoding)
        return bytes(key)

    def with_overrides(self, **overrides: Any) -> IndexConfig:
        """Return a copy with the given non-None fields replaced."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes)

    @classmethod
    def from_toml(cls, path: str | Path, **overrides: Any) -> IndexConfig:
        """Load configuration from the ``[flatindex]`` table of a TOML file.

        Keyword overrides that are not None take precedence over file values.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        data = tomllib.loads(path.read_text(encoding="utf-8"))
        table = data.get(CONFIG_TABLE, {})

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(table) - known)
        if unknown:
            raise ValueError(f"Unknown keys in [{CONFIG_TABLE}] of {path}: {', '.join(unknown)}")

        values = dict(table)
        values.update({k: v for k, v in overrides.items() if v is not None})
        if "key_length" not in values:
            raise ValueError(f"key_length is not set in {path} or on the command line")
        logger.debug(f"Loaded config from {path}: {values}")
        return cls(**values)
