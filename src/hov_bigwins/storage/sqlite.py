"""SQLite implementation of the CursorStore protocol."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from hov_bigwins.errors import CursorStoreError
from hov_bigwins.models.events import Cursor

log = logging.getLogger(__name__)

ROUND_KEY = "hov:bigwins:lastRound"
INTRA_KEY = "hov:bigwins:lastIntra"

SCHEMA = """
-- Scalar key/value state; cursor fields are stored as decimal strings
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
);
"""

_UPSERT = (
    "INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)"
    " ON CONFLICT(key) DO UPDATE SET value=excluded.value,"
    " updated_at=excluded.updated_at"
)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _parse_field(key: str, value: str | None) -> int:
    if value is None:
        return 0
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise CursorStoreError(f"stored {key} is not an integer: {value!r}") from exc
    if parsed < 0:
        raise CursorStoreError(f"stored {key} is negative: {parsed}")
    return parsed


class SQLiteCursorStore:
    """SQLite-backed implementation of the CursorStore protocol."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None
        # One connection is shared by every cycle; writes must not interleave
        self._write_lock = asyncio.Lock()

    async def initialize(self) -> None:
        path = self._db_path
        try:
            if path != ":memory:":
                path = str(Path(path).expanduser())
                Path(path).parent.mkdir(parents=True, exist_ok=True)
            self._db = await aiosqlite.connect(path)
            self._db.row_factory = aiosqlite.Row
            await self._db.executescript(SCHEMA)
            await self._db.commit()
        except (OSError, aiosqlite.Error) as exc:
            raise CursorStoreError(f"cannot open cursor store {self._db_path}: {exc}") from exc

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise CursorStoreError("Store not initialized. Call initialize() first.")
        return self._db

    # ── Cursor ─────────────────────────────────────────────

    async def get(self) -> Cursor:
        db = self.db
        try:
            # Never observe another caller's uncommitted write
            async with self._write_lock:
                return await self._read(db)
        except aiosqlite.Error as exc:
            raise CursorStoreError(f"cursor read failed: {exc}") from exc

    async def set(self, cursor: Cursor) -> None:
        db = self.db
        async with self._write_lock:
            try:
                await self._write(db, cursor)
                await db.commit()
            except aiosqlite.Error as exc:
                await self._rollback()
                raise CursorStoreError(f"cursor write failed: {exc}") from exc
        log.debug("Cursor stored: (%d, %d)", cursor.round, cursor.intra)

    async def compare_and_set(self, expected: Cursor, new: Cursor) -> bool:
        db = self.db
        async with self._write_lock:
            try:
                await db.execute("BEGIN IMMEDIATE")
                current = await self._read(db)
                if current != expected:
                    await db.rollback()
                    log.warning(
                        "Cursor moved underneath us: expected (%d, %d), found (%d, %d)",
                        expected.round, expected.intra, current.round, current.intra,
                    )
                    return False
                await self._write(db, new)
                await db.commit()
            except aiosqlite.Error as exc:
                await self._rollback()
                raise CursorStoreError(f"cursor compare-and-set failed: {exc}") from exc
            except CursorStoreError:
                await self._rollback()
                raise
        return True

    async def _read(self, db: aiosqlite.Connection) -> Cursor:
        async with db.execute(
            "SELECT key, value FROM kv WHERE key IN (?, ?)", (ROUND_KEY, INTRA_KEY)
        ) as cur:
            values = {row["key"]: row["value"] async for row in cur}
        return Cursor(
            round=_parse_field(ROUND_KEY, values.get(ROUND_KEY)),
            intra=_parse_field(INTRA_KEY, values.get(INTRA_KEY)),
        )

    async def _write(self, db: aiosqlite.Connection, cursor: Cursor) -> None:
        now = _now()
        await db.executemany(
            _UPSERT,
            [
                (ROUND_KEY, str(cursor.round), now),
                (INTRA_KEY, str(cursor.intra), now),
            ],
        )

    async def _rollback(self) -> None:
        if self._db is None:
            return
        try:
            await self._db.rollback()
        except aiosqlite.Error as exc:
            log.error("Rollback failed: %s", exc)
