"""SQLiteCursorStore: defaults, atomic writes, corruption, compare-and-set."""

from __future__ import annotations

import asyncio

import pytest

from hov_bigwins.errors import CursorStoreError
from hov_bigwins.models.events import Cursor
from hov_bigwins.storage.sqlite import INTRA_KEY, ROUND_KEY, SQLiteCursorStore


async def test_empty_store_defaults_to_zero(store):
    assert await store.get() == Cursor(0, 0)


async def test_set_then_get(store):
    await store.set(Cursor(123456, 7))
    assert await store.get() == Cursor(123456, 7)

    await store.set(Cursor(123457, 0))
    assert await store.get() == Cursor(123457, 0)


async def test_fields_stored_as_decimal_strings(store):
    await store.set(Cursor(42, 3))

    async with store.db.execute("SELECT key, value FROM kv ORDER BY key") as cur:
        rows = {row["key"]: row["value"] async for row in cur}

    assert rows == {INTRA_KEY: "3", ROUND_KEY: "42"}


async def test_missing_intra_reads_as_zero(store):
    await store.db.execute(
        "INSERT INTO kv (key, value) VALUES (?, ?)", (ROUND_KEY, "500")
    )
    await store.db.commit()

    assert await store.get() == Cursor(500, 0)


async def test_corrupt_value_raises_instead_of_resetting(store):
    """An unreadable cursor must never be treated as (0, 0)."""
    await store.db.execute(
        "INSERT INTO kv (key, value) VALUES (?, ?)", (ROUND_KEY, "not-a-number")
    )
    await store.db.commit()

    with pytest.raises(CursorStoreError, match="not an integer"):
        await store.get()


async def test_uninitialized_store_raises():
    s = SQLiteCursorStore(":memory:")
    with pytest.raises(CursorStoreError, match="not initialized"):
        await s.get()


async def test_closed_store_raises(store):
    await store.close()
    with pytest.raises(CursorStoreError):
        await store.set(Cursor(1, 1))


async def test_cursor_survives_reopen(tmp_path):
    db_path = str(tmp_path / "nested" / "state.db")

    first = SQLiteCursorStore(db_path)
    await first.initialize()
    await first.set(Cursor(900, 12))
    await first.close()

    second = SQLiteCursorStore(db_path)
    await second.initialize()
    try:
        assert await second.get() == Cursor(900, 12)
    finally:
        await second.close()


# ── Compare-and-set ───────────────────────────────────────────────


async def test_compare_and_set_applies_when_unchanged(store):
    await store.set(Cursor(10, 1))

    assert await store.compare_and_set(Cursor(10, 1), Cursor(11, 0)) is True
    assert await store.get() == Cursor(11, 0)


async def test_compare_and_set_rejects_when_moved(store):
    await store.set(Cursor(12, 0))

    assert await store.compare_and_set(Cursor(10, 1), Cursor(11, 0)) is False
    assert await store.get() == Cursor(12, 0)

    # Connection is usable after the aborted transaction
    await store.set(Cursor(13, 0))
    assert await store.get() == Cursor(13, 0)


async def test_concurrent_compare_and_set_has_one_winner(store):
    """Two cycles racing from the same cursor: one applies, one is refused."""
    await store.set(Cursor(100, 0))

    results = await asyncio.gather(
        store.compare_and_set(Cursor(100, 0), Cursor(101, 0)),
        store.compare_and_set(Cursor(100, 0), Cursor(102, 0)),
        store.get(),
    )

    assert sorted(results[:2]) == [False, True]
    winner = Cursor(101, 0) if results[0] else Cursor(102, 0)
    assert await store.get() == winner

    # Connection is left outside any transaction
    assert await store.compare_and_set(winner, Cursor(200, 0)) is True
    assert await store.get() == Cursor(200, 0)


async def test_concurrent_set_and_compare_and_set(store):
    await store.set(Cursor(5, 0))

    await asyncio.gather(
        store.set(Cursor(6, 0)),
        store.compare_and_set(Cursor(5, 0), Cursor(7, 0)),
    )

    assert await store.get() in (Cursor(6, 0), Cursor(7, 0))


async def test_compare_and_set_from_empty(store):
    assert await store.compare_and_set(Cursor(0, 0), Cursor(5, 5)) is True
    assert await store.get() == Cursor(5, 5)
