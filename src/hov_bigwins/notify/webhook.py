"""Discord-style webhook publisher with batching and 429 handling."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

import httpx

from hov_bigwins.errors import WebhookError
from hov_bigwins.models.config import BigWinsConfig

log = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 1900

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RateLimitPolicy:
    """How to react to HTTP 429 from the sink.

    ``max_attempts`` counts the first send; the default allows one retry.
    """

    max_attempts: int = 2
    jitter: float = 0.05  # seconds added to retry_after
    default_retry_after: float = 1.0

    def retry_after(self, resp: httpx.Response) -> float:
        """Seconds to wait before resending, from the 429 JSON body."""
        try:
            body = resp.json()
        except ValueError:
            body = None
        value = body.get("retry_after") if isinstance(body, dict) else None
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            value = self.default_retry_after
        return float(value) + self.jitter

    def should_retry(self, resp: httpx.Response, attempt: int) -> bool:
        return resp.status_code == 429 and attempt < self.max_attempts


def truncate_content(content: str, limit: int = MAX_CONTENT_LENGTH) -> str:
    if len(content) > limit:
        return f"{content[:limit]} …"
    return content


def chunk_lines(lines: Sequence[str], size: int) -> list[list[str]]:
    size = max(1, size)
    return [list(lines[i:i + size]) for i in range(0, len(lines), size)]


class WebhookPublisher:
    """Posts ``{"content": ...}`` messages to a chat webhook.

    Chunks go out strictly one after another with a fixed pause between
    them. A failed chunk aborts the rest; chunks already delivered stay
    delivered.
    """

    def __init__(
        self,
        webhook_url: str,
        batch_size: int = 5,
        pace_delay: float = 0.25,
        timeout: float = 10.0,
        policy: RateLimitPolicy | None = None,
        sleep: Sleep = asyncio.sleep,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._batch_size = max(1, batch_size)
        self._pace_delay = pace_delay
        self._timeout = timeout
        self._policy = policy or RateLimitPolicy()
        self._sleep = sleep
        self._transport = transport

    @classmethod
    def from_config(cls, cfg: BigWinsConfig, **kwargs) -> WebhookPublisher:
        return cls(
            cfg.webhook_url,
            batch_size=cfg.batch_size,
            pace_delay=cfg.pace_delay,
            timeout=cfg.webhook_timeout,
            **kwargs,
        )

    async def publish(self, lines: Sequence[str]) -> None:
        if not lines:
            return

        chunks = chunk_lines(lines, self._batch_size)
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            for index, chunk in enumerate(chunks):
                if index > 0:
                    await self._sleep(self._pace_delay)
                await self._send(client, truncate_content("\n".join(chunk)))
                log.debug("Webhook chunk %d/%d sent (%d lines)", index + 1, len(chunks), len(chunk))

        log.info("Published %d lines in %d messages", len(lines), len(chunks))

    async def _send(self, client: httpx.AsyncClient, content: str) -> None:
        attempt = 0
        while True:
            attempt += 1
            try:
                resp = await client.post(self._webhook_url, json={"content": content})
            except httpx.HTTPError as exc:
                raise WebhookError(f"Discord webhook request failed: {exc}") from exc

            if resp.is_success:
                return

            if self._policy.should_retry(resp, attempt):
                delay = self._policy.retry_after(resp)
                log.warning("Webhook rate limited (429); retrying in %.2fs", delay)
                await self._sleep(delay)
                continue

            suffix = " after retry" if attempt > 1 else ""
            raise WebhookError(
                f"Discord webhook failed{suffix}: {resp.status_code} {resp.text}",
                status=resp.status_code,
                body=resp.text,
            )
