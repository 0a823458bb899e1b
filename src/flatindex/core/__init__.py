"""flatindex core package."""

from .engine import build_index, inspect_index, list_all, lookup, lookup_all

__all__ = ["build_index", "inspect_index", "list_all", "lookup", "lookup_all"]
