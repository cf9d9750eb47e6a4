"""Cycle trace and result records."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from hov_bigwins.models.events import Cursor, WinEvent


class CycleState(str, Enum):
    """Poll cycle states, in execution order."""

    LOAD_CONFIG = "load_config"
    READ_CURSOR = "read_cursor"
    FETCH = "fetch"
    FILTER_AND_CAP = "filter_and_cap"
    PUBLISH = "publish"
    ADVANCE_CURSOR = "advance_cursor"
    DONE = "done"
    FAILED = "failed"


@dataclass
class DebugTrace:
    """Write-only record of what one cycle did.

    Unset fields are omitted from the JSON body so a failed cycle only
    reports the steps it reached.
    """

    steps: list[str] = field(default_factory=list)
    state: CycleState = CycleState.LOAD_CONFIG
    config: dict[str, Any] | None = None
    cursor_before: Cursor | None = None
    requested: list[str] | None = None
    api_count: int | None = None
    api_sample: list[WinEvent] | None = None
    newer_count: int | None = None
    to_post_count: int | None = None
    lines_preview: list[str] | None = None
    discord_posted: int | None = None
    cursor_advanced_to: Cursor | None = None
    cursor_advance_checked: bool = False
    note: str | None = None
    error: str | None = None

    def step(self, state: CycleState, detail: str = "") -> None:
        self.state = state
        self.steps.append(f"{state.value}: {detail}" if detail else state.value)

    def to_json_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"steps": list(self.steps), "state": self.state.value}
        if self.config is not None:
            out["config"] = self.config
        if self.cursor_before is not None:
            out["cursorBefore"] = self.cursor_before.to_json_dict()
        if self.requested is not None:
            out["requested"] = list(self.requested)
        if self.api_count is not None:
            out["apiResponse"] = {
                "count": self.api_count,
                "sample": [e.to_json_dict() for e in self.api_sample or []],
            }
        if self.newer_count is not None:
            out["newerCount"] = self.newer_count
        if self.to_post_count is not None:
            out["toPostCount"] = self.to_post_count
        if self.lines_preview is not None:
            out["linesPreview"] = list(self.lines_preview)
        if self.discord_posted is not None:
            out["discordPosted"] = self.discord_posted
        if self.cursor_advance_checked:
            out["cursorAdvancedTo"] = (
                self.cursor_advanced_to.to_json_dict() if self.cursor_advanced_to else None
            )
        if self.note is not None:
            out["note"] = self.note
        if self.error is not None:
            out["error"] = self.error
        return out


@dataclass
class CycleResult:
    """Outcome of PollOrchestrator.run_cycle()."""

    ok: bool
    trace: DebugTrace
    status: int = 200  # HTTP status for the trigger response

    def to_json_dict(self) -> dict[str, Any]:
        body = self.trace.to_json_dict()
        if self.ok:
            return {"ok": True, **body}
        return body
