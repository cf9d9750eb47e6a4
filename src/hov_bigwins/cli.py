"""CLI entry point for the hov_bigwins notifier."""

from __future__ import annotations

import asyncio
import json
import logging
import sys

import click
from aiohttp import web

from hov_bigwins.config import load_config
from hov_bigwins.errors import BigWinsError
from hov_bigwins.models.config import BigWinsConfig
from hov_bigwins.models.events import Cursor
from hov_bigwins.orchestrator import PollOrchestrator
from hov_bigwins.server import create_app
from hov_bigwins.storage.sqlite import SQLiteCursorStore


def _load(ctx: click.Context) -> BigWinsConfig:
    try:
        return load_config(ctx.obj["config_path"])
    except BigWinsError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


def _mask(url: str) -> str:
    if not url:
        return "(not set)"
    return f"{url[:32]}..." if len(url) > 32 else url


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """hov-bigwins - Post HoV big wins to a chat webhook."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    if not verbose:
        cfg = _load(ctx)
        level = logging.getLevelName(cfg.log_level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Cycle ──────────────────────────────────────────────


@cli.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Run one poll cycle and print its trace as JSON."""
    config_path = ctx.obj["config_path"]
    cfg = _load(ctx)

    async def _run():
        store = SQLiteCursorStore(cfg.db_path)
        await store.initialize()
        try:
            orchestrator = PollOrchestrator(store, lambda: load_config(config_path))
            return await orchestrator.run_cycle()
        finally:
            await store.close()

    try:
        result = asyncio.run(_run())
    except BigWinsError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(json.dumps(result.to_json_dict(), indent=2))
    if not result.ok:
        sys.exit(1)


@cli.command()
@click.option("--host", default=None, help="Bind address (default from config)")
@click.option("--port", type=int, default=None, help="Bind port (default from config)")
@click.pass_context
def serve(ctx: click.Context, host: str | None, port: int | None) -> None:
    """Serve the cron trigger and debug endpoints over HTTP."""
    config_path = ctx.obj["config_path"]
    cfg = _load(ctx)
    app = create_app(SQLiteCursorStore(cfg.db_path), lambda: load_config(config_path))
    click.echo(f"Serving on {host or cfg.host}:{port or cfg.port}")
    web.run_app(app, host=host or cfg.host, port=port or cfg.port, print=None)


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show resolved configuration."""
    cfg = _load(ctx)
    click.echo(f"Events API:  {cfg.api_url or '(not set)'}")
    click.echo(f"Webhook:     {_mask(cfg.webhook_url)}")
    click.echo(f"Metric:      {cfg.metric.value} >= {cfg.threshold_raw} raw")
    click.echo(f"Display:     / {cfg.display_divisor:g} {cfg.display_unit}")
    click.echo(f"Max posts:   {cfg.max_posts_per_run} per run, {cfg.batch_size} per message")
    click.echo(f"Dry run:     {cfg.dry_run}")
    click.echo(f"DB path:     {cfg.db_path}")
    click.echo(f"Cursor CAS:  {cfg.cursor_cas}")


# ── Cursor ─────────────────────────────────────────────


@cli.group()
def cursor() -> None:
    """Inspect or override the stored cursor."""


@cursor.command("show")
@click.pass_context
def cursor_show(ctx: click.Context) -> None:
    """Print the stored (round, intra) cursor."""
    cfg = _load(ctx)

    async def _show() -> Cursor:
        store = SQLiteCursorStore(cfg.db_path)
        await store.initialize()
        try:
            return await store.get()
        finally:
            await store.close()

    try:
        cur = asyncio.run(_show())
    except BigWinsError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(json.dumps({"cursor": cur.to_json_dict()}))


@cursor.command("set")
@click.argument("round_", metavar="ROUND", type=click.IntRange(min=0))
@click.argument("intra", type=click.IntRange(min=0))
@click.pass_context
def cursor_set(ctx: click.Context, round_: int, intra: int) -> None:
    """Overwrite the stored cursor.

    Events at or before (ROUND, INTRA) will not be posted.
    """
    cfg = _load(ctx)

    async def _set() -> None:
        store = SQLiteCursorStore(cfg.db_path)
        await store.initialize()
        try:
            await store.set(Cursor(round_, intra))
        finally:
            await store.close()

    try:
        asyncio.run(_set())
    except BigWinsError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(json.dumps({"ok": True, "round": round_, "intra": intra}))


if __name__ == "__main__":
    cli()
