"""Publisher protocol - delivers formatted lines to the notification sink."""

from __future__ import annotations

from typing import Protocol, Sequence


class Publisher(Protocol):
    """Sends lines to a chat webhook in ordered, paced batches."""

    async def publish(self, lines: Sequence[str]) -> None:
        """Deliver every line or raise. No-op for an empty sequence."""
        ...
