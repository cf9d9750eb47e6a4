"""EventFetcher protocol - paginates the upstream events API."""

from __future__ import annotations

from typing import Protocol

from hov_bigwins.models.events import Cursor, FetchResult


class EventFetcher(Protocol):
    """Collects win events at or after the cursor's round."""

    async def fetch_since(
        self,
        cursor: Cursor,
        hard_limit: int,
        threshold_raw: int | None = None,
        requested: list[str] | None = None,
    ) -> FetchResult:
        """Walk pages until exhausted or ``hard_limit`` events are collected.

        Page URLs are appended to ``requested`` as they are sent.
        """
        ...
