"""Exception types raised by hov_bigwins components."""

from __future__ import annotations


class BigWinsError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(BigWinsError):
    """Missing or invalid configuration value."""


class FetchError(BigWinsError):
    """Upstream events API returned an error, timed out, or sent bad JSON."""


class WebhookError(BigWinsError):
    """Webhook sink rejected a message."""

    def __init__(self, message: str, status: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class CursorStoreError(BigWinsError):
    """Cursor backend unavailable or holding unreadable values."""


class CursorConflictError(BigWinsError):
    """Stored cursor moved between the start and the end of a cycle."""
