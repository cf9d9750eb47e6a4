"""Data models for the hov_bigwins notifier."""

from hov_bigwins.models.events import Cursor, FetchResult, WinEvent
from hov_bigwins.models.config import BigWinsConfig, MetricKey
from hov_bigwins.models.records import CycleResult, CycleState, DebugTrace

__all__ = [
    "Cursor", "FetchResult", "WinEvent",
    "BigWinsConfig", "MetricKey",
    "CycleResult", "CycleState", "DebugTrace",
]
