"""Protocol interfaces for all hov_bigwins components."""

from hov_bigwins.interfaces.store import CursorStore
from hov_bigwins.interfaces.fetcher import EventFetcher
from hov_bigwins.interfaces.publisher import Publisher

__all__ = [
    "CursorStore",
    "EventFetcher",
    "Publisher",
]
