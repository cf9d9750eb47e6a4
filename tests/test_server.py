"""HTTP trigger and debug routes served by create_app()."""

from __future__ import annotations

import httpx
import pytest

from hov_bigwins.models.events import Cursor
from hov_bigwins.orchestrator import PollOrchestrator
from hov_bigwins.server import create_app
from hov_bigwins.storage.sqlite import SQLiteCursorStore
from tests.factories import make_event, make_test_config
from tests.mocks import FailingCursorStore, MockFetcher, MockPublisher


@pytest.fixture
def feed():
    return MockFetcher([make_event(100, 0), make_event(100, 1), make_event(101, 0)])


@pytest.fixture
def sink():
    return MockPublisher()


@pytest.fixture
async def client(serve_app, feed, sink):
    store = SQLiteCursorStore(":memory:")
    cfg = make_test_config()
    orchestrator = PollOrchestrator(
        store,
        lambda: cfg,
        fetcher_factory=lambda _cfg: feed,
        publisher_factory=lambda _cfg: sink,
    )
    base = await serve_app(create_app(store, lambda: cfg, orchestrator=orchestrator))
    async with httpx.AsyncClient(base_url=base) as c:
        yield c


async def test_healthz(client):
    resp = await client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


async def test_cron_runs_cycle_and_returns_trace(client, sink):
    await client.post("/api/debug/set-cursor", json={"round": 100, "intra": 0})

    resp = await client.get("/api/cron/hov-bigwins")

    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["discordPosted"] == 2
    assert body["cursorAdvancedTo"] == {"round": 101, "intra": 0}
    assert len(sink.lines) == 2

    cursor = (await client.get("/api/debug/cursor")).json()
    assert cursor == {"cursor": {"round": 101, "intra": 0}}


async def test_second_trigger_posts_nothing(client, sink):
    await client.get("/api/cron/hov-bigwins")
    posted = len(sink.lines)

    body = (await client.get("/api/cron/hov-bigwins")).json()

    assert body["discordPosted"] == 0
    assert len(sink.lines) == posted


async def test_cron_failure_returns_500(client, feed):
    feed.error = "HoV events API error: 503"

    resp = await client.get("/api/cron/hov-bigwins")

    assert resp.status_code == 500
    body = resp.json()
    assert "ok" not in body
    assert body["error"] == "HoV events API error: 503"
    assert (await client.get("/api/debug/cursor")).json()["cursor"] == {"round": 0, "intra": 0}


# ── Debug cursor routes ───────────────────────────────────────────


async def test_fresh_cursor_is_zero(client):
    resp = await client.get("/api/debug/cursor")
    assert resp.json() == {"cursor": {"round": 0, "intra": 0}}


async def test_set_cursor(client):
    resp = await client.post("/api/debug/set-cursor", json={"round": 5000, "intra": 2})

    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "round": 5000, "intra": 2}
    assert (await client.get("/api/debug/cursor")).json()["cursor"] == {
        "round": 5000, "intra": 2,
    }


async def test_set_cursor_missing_fields_default_to_zero(client):
    await client.post("/api/debug/set-cursor", json={"round": 9, "intra": 9})

    resp = await client.post("/api/debug/set-cursor", content=b"not json")

    assert resp.json() == {"ok": True, "round": 0, "intra": 0}


@pytest.mark.parametrize(
    "body",
    [
        {"round": "abc"},
        {"round": 1, "intra": None},
        {"round": -1},
        {"intra": -3},
        {"round": 1.9, "intra": True},
        {"round": 5, "intra": 1.0},
        {"round": "12.5"},
    ],
)
async def test_set_cursor_rejects_invalid_values(client, body):
    await client.post("/api/debug/set-cursor", json={"round": 500, "intra": 2})

    resp = await client.post("/api/debug/set-cursor", json=body)

    assert resp.status_code == 400
    assert resp.json()["ok"] is False
    # Rejected body leaves the stored cursor alone
    assert (await client.get("/api/debug/cursor")).json()["cursor"] == {
        "round": 500, "intra": 2,
    }


async def test_set_cursor_accepts_decimal_strings(client):
    resp = await client.post("/api/debug/set-cursor", json={"round": "4200", "intra": "7"})

    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "round": 4200, "intra": 7}


async def test_cursor_routes_report_store_failure(serve_app):
    store = FailingCursorStore()
    base = await serve_app(create_app(store, make_test_config))

    async with httpx.AsyncClient(base_url=base) as c:
        read = await c.get("/api/debug/cursor")
        write = await c.post("/api/debug/set-cursor", json={"round": 1, "intra": 1})

    assert read.status_code == 500
    assert "cursor read failed" in read.json()["error"]
    assert write.status_code == 500
    assert write.json()["ok"] is False


async def test_store_opened_with_app(serve_app, tmp_path):
    db_path = str(tmp_path / "state.db")
    store = SQLiteCursorStore(db_path)
    base = await serve_app(create_app(store, make_test_config))

    async with httpx.AsyncClient(base_url=base) as c:
        await c.post("/api/debug/set-cursor", json={"round": 77, "intra": 1})

    reopened = SQLiteCursorStore(db_path)
    await reopened.initialize()
    try:
        assert await reopened.get() == Cursor(77, 1)
    finally:
        await reopened.close()
