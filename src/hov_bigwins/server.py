"""HTTP trigger surface - cron endpoint plus cursor inspection routes."""

from __future__ import annotations

import json
import logging
from typing import Callable

from aiohttp import web

from hov_bigwins.errors import CursorStoreError
from hov_bigwins.interfaces.store import CursorStore
from hov_bigwins.models.config import BigWinsConfig
from hov_bigwins.models.events import Cursor
from hov_bigwins.orchestrator import PollOrchestrator

log = logging.getLogger(__name__)

STORE_KEY = web.AppKey("store", CursorStore)
ORCHESTRATOR_KEY = web.AppKey("orchestrator", PollOrchestrator)

routes = web.RouteTableDef()


def _cursor_field(body: dict, key: str) -> int:
    # JSON ints or decimal strings only; floats and booleans would truncate
    value = body.get(key, 0)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value)
    raise ValueError(f"{key} is not an integer: {value!r}")


@routes.get("/api/cron/hov-bigwins")
async def run_bigwins(request: web.Request) -> web.Response:
    result = await request.app[ORCHESTRATOR_KEY].run_cycle()
    return web.json_response(result.to_json_dict(), status=result.status)


@routes.get("/api/debug/cursor")
async def get_cursor(request: web.Request) -> web.Response:
    try:
        cursor = await request.app[STORE_KEY].get()
    except CursorStoreError as exc:
        log.error("Cursor read failed: %s", exc)
        return web.json_response({"error": str(exc)}, status=500)
    return web.json_response({"cursor": cursor.to_json_dict()})


@routes.post("/api/debug/set-cursor")
async def set_cursor(request: web.Request) -> web.Response:
    try:
        body = await request.json()
    except json.JSONDecodeError:
        body = {}
    if not isinstance(body, dict):
        body = {}
    try:
        cursor = Cursor(round=_cursor_field(body, "round"), intra=_cursor_field(body, "intra"))
    except ValueError:
        return web.json_response({"ok": False, "error": "round and intra must be integers"}, status=400)
    if cursor.round < 0 or cursor.intra < 0:
        return web.json_response({"ok": False, "error": "round and intra must be >= 0"}, status=400)

    try:
        await request.app[STORE_KEY].set(cursor)
    except CursorStoreError as exc:
        log.error("Cursor write failed: %s", exc)
        return web.json_response({"ok": False, "error": str(exc)}, status=500)
    log.info("Cursor set manually to (%d, %d)", cursor.round, cursor.intra)
    return web.json_response({"ok": True, **cursor.to_json_dict()})


@routes.get("/healthz")
async def healthz(request: web.Request) -> web.Response:
    return web.json_response({"ok": True})


def create_app(
    store: CursorStore,
    config_loader: Callable[[], BigWinsConfig],
    orchestrator: PollOrchestrator | None = None,
) -> web.Application:
    """Build the aiohttp application.

    The store is opened on startup and closed on cleanup; configuration is
    re-read by the orchestrator on every trigger.
    """
    app = web.Application()
    app[STORE_KEY] = store
    app[ORCHESTRATOR_KEY] = orchestrator or PollOrchestrator(store, config_loader)
    app.add_routes(routes)

    async def _open_store(app: web.Application) -> None:
        await app[STORE_KEY].initialize()

    async def _close_store(app: web.Application) -> None:
        await app[STORE_KEY].close()

    app.on_startup.append(_open_store)
    app.on_cleanup.append(_close_store)
    return app
