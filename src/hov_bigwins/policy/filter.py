"""Event filter - drops already-processed events and caps each batch."""

from __future__ import annotations

import logging
from typing import Iterable

from hov_bigwins.models.events import Cursor, WinEvent

log = logging.getLogger(__name__)


def newer_than(events: Iterable[WinEvent], cursor: Cursor) -> list[WinEvent]:
    """Keep events strictly after ``cursor`` in (round, intra) order.

    The upstream ``roundGte`` filter still returns events at the cursor's
    round with a smaller or equal intra; those are dropped here.
    """
    return [e for e in events if e.position > cursor]


def take_oldest(events: Iterable[WinEvent], limit: int) -> list[WinEvent]:
    """Oldest ``limit`` events, ascending.

    Truncating from the oldest end lets the next cycle resume right after
    the last event kept instead of skipping over a gap.
    """
    ordered = sorted(events, key=lambda e: e.position)
    if len(ordered) > limit:
        log.info("Capping batch at %d of %d newer events", limit, len(ordered))
    return ordered[:max(0, limit)]
