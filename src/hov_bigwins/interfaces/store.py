"""CursorStore protocol - persists the last processed (round, intra) position."""

from __future__ import annotations

from typing import Protocol

from hov_bigwins.models.events import Cursor


class CursorStore(Protocol):
    """Durable cursor storage shared by every poll cycle.

    Backend failures must raise CursorStoreError. Reporting a missing
    cursor for an unreachable backend would replay the whole event history.
    """

    async def initialize(self) -> None:
        """Open the backend and create tables if needed."""
        ...

    async def close(self) -> None:
        ...

    async def get(self) -> Cursor:
        """Stored cursor, or Cursor(0, 0) when nothing has been stored."""
        ...

    async def set(self, cursor: Cursor) -> None:
        """Write both fields in a single atomic operation."""
        ...

    async def compare_and_set(self, expected: Cursor, new: Cursor) -> bool:
        """Write ``new`` only if the stored cursor still equals ``expected``."""
        ...
