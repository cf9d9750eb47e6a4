"""hov_bigwins - republish HoV big-win events to a chat webhook."""

from hov_bigwins.models import BigWinsConfig, Cursor, CycleResult, WinEvent
from hov_bigwins.orchestrator import PollOrchestrator

__version__ = "0.1.0"

__all__ = [
    "BigWinsConfig",
    "Cursor",
    "CycleResult",
    "PollOrchestrator",
    "WinEvent",
]
