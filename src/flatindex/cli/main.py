# Command dispatcher: parses arguments, runs one engine operation, maps errors to exit codes.
from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from flatindex.core.config import IndexConfig
from flatindex.core.engine import build_index, inspect_index, list_all, lookup, lookup_all
from flatindex.core.errors import CorruptIndexError, IndexIOError
from flatindex.core.types import BuildStrategy

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_USAGE = 2
EXIT_IO = 3
EXIT_CORRUPT = 4

# Short mode flags: -c build, -l list, -s search
LEGACY_MODES = {"-c": "build", "-l": "list", "-s": "search"}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="flatindex", description="Build and query sorted key indexes over flat record files"
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", type=Path, help="TOML file with a [flatindex] table")
    common.add_argument(
        "--legacy", action="store_true", help="Headerless index layout (key length not stored)"
    )

    b = sub.add_parser("build", parents=[common], help="Create or rebuild an index")
    b.add_argument("data", type=Path, help="Data file")
    b.add_argument("index", type=Path, help="Index file to write")
    b.add_argument("key_length", type=int, help="Key length in bytes")
    b.add_argument(
        "--strategy",
        choices=[s.value for s in BuildStrategy],
        help="Sort strategy (default: memory)",
    )
    b.add_argument("--run-max-entries", type=int, help="Entries per spill run for staged builds")
    b.add_argument("--no-fsync", action="store_true", help="Skip fsync before replacing the index")

    ls = sub.add_parser("list", parents=[common], help="Print all records in key order")
    ls.add_argument("data", type=Path, help="Data file")
    ls.add_argument("index", type=Path, help="Index file")
    ls.add_argument("key_length", type=int, help="Key length in bytes")

    s = sub.add_parser("search", parents=[common], help="Print the record for a key")
    s.add_argument("data", type=Path, help="Data file")
    s.add_argument("index", type=Path, help="Index file")
    s.add_argument("key_length", type=int, help="Key length in bytes")
    s.add_argument("key", type=str, help="Key to search for")
    s.add_argument("--all", action="store_true", help="Print every record with this key")

    i = sub.add_parser("info", parents=[common], help="Validate an index and describe it")
    i.add_argument("index", type=Path, help="Index file")
    i.add_argument("key_length", type=int, help="Key length in bytes")

    return p


def load_config(args: argparse.Namespace) -> IndexConfig:
    overrides = {
        "key_length": args.key_length,
        "build_strategy": getattr(args, "strategy", None),
        "run_max_entries": getattr(args, "run_max_entries", None),
        "header": False if args.legacy else None,
        "fsync": False if getattr(args, "no_fsync", False) else None,
    }
    if args.config is not None:
        return IndexConfig.from_toml(args.config, **overrides)
    return IndexConfig(**{k: v for k, v in overrides.items() if v is not None})


def _emit(line: bytes) -> None:
    out = sys.stdout.buffer
    out.write(line)
    out.write(b"\n")


def _message(text: str) -> None:
    _emit(text.encode("utf-8"))


def _silence_stdout() -> None:
    # Point fd 1 at /dev/null so the interpreter's final flush does not fail again
    try:
        fd = sys.stdout.fileno()
    except (OSError, ValueError, AttributeError):
        return
    devnull = os.open(os.devnull, os.O_WRONLY)
    try:
        os.dup2(devnull, fd)
    finally:
        os.close(devnull)


def run(args: argparse.Namespace, cfg: IndexConfig) -> int:
    if args.command == "build":
        result = build_index(args.data, args.index, config=cfg)
        _message(
            f"Indexed {result.entries_written} of {result.records_scanned} records "
            f"into {result.index_path} ({result.records_skipped} skipped)"
        )
        return EXIT_OK

    if args.command == "list":
        for record in list_all(args.index, args.data, config=cfg):
            _emit(record)
        return EXIT_OK

    if args.command == "search":
        # Raw argv bytes, as the data file is compared byte-wise
        key = os.fsencode(args.key)
        if args.all:
            records = list(lookup_all(args.index, args.data, key, config=cfg))
        else:
            record = lookup(args.index, args.data, key, config=cfg)
            records = [] if record is None else [record]
        if not records:
            _message("Record not found")
            return EXIT_NOT_FOUND
        for record in records:
            _emit(record)
        return EXIT_OK

    info = inspect_index(args.index, config=cfg)
    _message(f"index: {info.index_path}")
    _message(f"layout: {'header' if info.has_header else 'legacy'}")
    _message(f"key_length: {info.key_length}")
    _message(f"entries: {info.entry_count}")
    _message(f"size: {info.file_size} bytes")
    return EXIT_OK


def main(argv: list[str] | None = None) -> int:
    argv = list(argv if argv is not None else sys.argv[1:])
    if argv and argv[0] in LEGACY_MODES:
        argv[0] = LEGACY_MODES[argv[0]]

    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        cfg = load_config(args)
    except (ValueError, FileNotFoundError) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_USAGE

    try:
        code = run(args, cfg)
        sys.stdout.flush()
    except BrokenPipeError:
        # Reader went away early (e.g. piped into head)
        _silence_stdout()
        return EXIT_OK
    except CorruptIndexError as e:
        print(f"Corrupt index: {e}", file=sys.stderr)
        return EXIT_CORRUPT
    except IndexIOError as e:
        print(f"I/O error: {e}", file=sys.stderr)
        return EXIT_IO

    return code


if __name__ == "__main__":
    raise SystemExit(main())
