"""Shared fixtures for hov_bigwins tests."""

from __future__ import annotations

import pytest
from aiohttp import web
from pytest_metadata.plugin import metadata_key

from hov_bigwins.storage.sqlite import SQLiteCursorStore

from tests.factories import make_test_config
from tests.mocks import MemoryCursorStore, MockFetcher, MockPublisher, RecordingSleep


# ── Report metadata ───────────────────────────────────────────────


def pytest_configure(config):
    """Add pipeline info to the HTML report Environment table."""
    meta = config.stash.setdefault(metadata_key, {})
    meta["Events API"] = "local aiohttp fake"
    meta["Webhook sink"] = "local aiohttp fake"
    meta["Cursor store"] = "SQLite :memory:"


@pytest.fixture
def test_config():
    """Default BigWinsConfig for tests."""
    return make_test_config()


@pytest.fixture
async def store():
    """Initialized in-memory SQLiteCursorStore."""
    s = SQLiteCursorStore(":memory:")
    await s.initialize()
    yield s
    await s.close()


@pytest.fixture
def memory_store():
    return MemoryCursorStore()


@pytest.fixture
def mock_fetcher():
    return MockFetcher()


@pytest.fixture
def mock_publisher():
    return MockPublisher()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
async def serve_app():
    """Start aiohttp applications on ephemeral ports.

    Returns an async callable taking an Application and returning its
    base URL. All servers are shut down at teardown.
    """
    runners: list[web.AppRunner] = []

    async def _serve(app: web.Application) -> str:
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, "127.0.0.1", 0)
        await site.start()
        runners.append(runner)
        host, port = runner.addresses[0][:2]
        return f"http://{host}:{port}"

    yield _serve

    for runner in runners:
        await runner.cleanup()
