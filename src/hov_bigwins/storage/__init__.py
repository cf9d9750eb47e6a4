"""Cursor persistence backends."""

from hov_bigwins.storage.sqlite import SQLiteCursorStore

__all__ = ["SQLiteCursorStore"]
