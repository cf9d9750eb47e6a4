"""Poll orchestrator - runs one read/fetch/filter/publish/advance cycle."""

from __future__ import annotations

import logging
from typing import Callable

from hov_bigwins.errors import CursorConflictError
from hov_bigwins.interfaces.fetcher import EventFetcher
from hov_bigwins.interfaces.publisher import Publisher
from hov_bigwins.interfaces.store import CursorStore
from hov_bigwins.models.config import BigWinsConfig
from hov_bigwins.models.events import Cursor
from hov_bigwins.models.records import CycleResult, CycleState, DebugTrace
from hov_bigwins.notify.formatter import format_line
from hov_bigwins.notify.webhook import WebhookPublisher
from hov_bigwins.policy.filter import newer_than, take_oldest
from hov_bigwins.upstream.fetcher import HttpEventFetcher

log = logging.getLogger(__name__)

SAMPLE_SIZE = 3
PREVIEW_SIZE = 5


class PollOrchestrator:
    """Drives a single notification cycle end to end.

    Each cycle:
    1. Resolves and validates configuration
    2. Reads the stored cursor
    3. Fetches win events from the cursor's round onward
    4. Keeps events strictly newer than the cursor, oldest first, capped
    5. Formats and publishes them (skipped in dry-run mode)
    6. Advances the cursor if the new position is strictly greater

    Any failure ends the cycle without touching the cursor. No state is
    kept between cycles other than what the CursorStore holds.
    """

    def __init__(
        self,
        store: CursorStore,
        config_loader: Callable[[], BigWinsConfig],
        fetcher_factory: Callable[[BigWinsConfig], EventFetcher] = HttpEventFetcher.from_config,
        publisher_factory: Callable[[BigWinsConfig], Publisher] = WebhookPublisher.from_config,
    ) -> None:
        self._store = store
        self._config_loader = config_loader
        self._fetcher_factory = fetcher_factory
        self._publisher_factory = publisher_factory

    async def run_cycle(self) -> CycleResult:
        trace = DebugTrace()
        try:
            await self._run(trace)
        except Exception as exc:
            failed_at = trace.state
            trace.error = str(exc) or type(exc).__name__
            trace.step(CycleState.FAILED, f"{failed_at.value}: {trace.error}")
            log.error("Cycle failed during %s: %s", failed_at.value, exc, exc_info=True)
            return CycleResult(ok=False, trace=trace, status=500)
        return CycleResult(ok=True, trace=trace)

    async def _run(self, trace: DebugTrace) -> None:
        trace.state = CycleState.LOAD_CONFIG
        cfg = self._config_loader().validate()
        trace.config = cfg.summary()
        trace.step(CycleState.LOAD_CONFIG, f"metric={cfg.metric.value} dry_run={cfg.dry_run}")

        # 1. Current cursor
        trace.state = CycleState.READ_CURSOR
        before = await self._store.get()
        trace.cursor_before = before
        trace.step(CycleState.READ_CURSOR, f"({before.round}, {before.intra})")
        log.info("Cycle start: cursor (%d, %d)", before.round, before.intra)

        # 2. Fetch with server-side threshold filter
        trace.state = CycleState.FETCH
        fetcher = self._fetcher_factory(cfg)
        trace.requested = []
        fetched = await fetcher.fetch_since(
            before, cfg.hard_limit, cfg.threshold_raw, requested=trace.requested
        )
        trace.api_count = len(fetched.events)
        trace.api_sample = fetched.events[:SAMPLE_SIZE]
        trace.step(CycleState.FETCH, f"{len(fetched.events)} events")

        # 3. Only strictly newer, oldest first, capped
        trace.state = CycleState.FILTER_AND_CAP
        newer = newer_than(fetched.events, before)
        to_post = take_oldest(newer, cfg.max_posts_per_run)
        trace.newer_count = len(newer)
        trace.to_post_count = len(to_post)
        trace.step(CycleState.FILTER_AND_CAP, f"{len(newer)} newer, {len(to_post)} to post")

        # A capped batch resumes after its last event, not after max observed
        if len(to_post) < len(newer):
            target = to_post[-1].position
        else:
            target = fetched.max_position

        # 4. Format and publish
        trace.state = CycleState.PUBLISH
        lines = [format_line(e, cfg) for e in to_post]
        trace.lines_preview = lines[:PREVIEW_SIZE]
        if cfg.dry_run:
            trace.discord_posted = 0
            trace.note = "DRY_RUN=true; skipped posting"
            trace.step(CycleState.PUBLISH, "skipped (dry run)")
        elif lines:
            await self._publisher_factory(cfg).publish(lines)
            trace.discord_posted = len(lines)
            trace.step(CycleState.PUBLISH, f"{len(lines)} lines")
        else:
            trace.discord_posted = 0
            trace.step(CycleState.PUBLISH, "nothing to post")

        # 5. Advance cursor
        trace.state = CycleState.ADVANCE_CURSOR
        await self._advance(cfg, trace, before, target)

        trace.step(CycleState.DONE)
        log.info(
            "Cycle done: fetched=%d newer=%d posted=%d",
            trace.api_count, trace.newer_count, trace.discord_posted,
        )

    async def _advance(
        self, cfg: BigWinsConfig, trace: DebugTrace, before: Cursor, target: Cursor
    ) -> None:
        trace.cursor_advance_checked = True
        if not target > before:
            trace.cursor_advanced_to = None
            trace.step(CycleState.ADVANCE_CURSOR, "unchanged")
            return

        if cfg.cursor_cas:
            if not await self._store.compare_and_set(before, target):
                raise CursorConflictError(
                    f"cursor changed since ({before.round}, {before.intra}) was read; "
                    "another cycle is running"
                )
        else:
            await self._store.set(target)

        trace.cursor_advanced_to = target
        trace.step(CycleState.ADVANCE_CURSOR, f"({target.round}, {target.intra})")
        log.info("Cursor advanced to (%d, %d)", target.round, target.intra)
