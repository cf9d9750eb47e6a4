"""HoV events API fetcher - walks ascending pages of win events."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from hov_bigwins.errors import FetchError
from hov_bigwins.models.config import BigWinsConfig
from hov_bigwins.models.events import Cursor, FetchResult, WinEvent

log = logging.getLogger(__name__)

PAGE_SIZE = 100


class HttpEventFetcher:
    """Paginates ``GET {api_url}?isWin=true&roundGte=..&order=asc``.

    The API filters by round only, so pages can contain events at the
    cursor's round that were already processed. Callers must re-filter
    with policy.filter.newer_than().
    """

    def __init__(
        self,
        api_url: str,
        timeout: float = 6.0,
        page_size: int = PAGE_SIZE,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = api_url
        self._timeout = timeout
        self._page_size = page_size
        self._transport = transport

    @classmethod
    def from_config(cls, cfg: BigWinsConfig) -> HttpEventFetcher:
        return cls(cfg.api_url, timeout=cfg.fetch_timeout)

    def page_params(
        self, round_gte: int, offset: int, threshold_raw: int | None = None
    ) -> dict[str, str]:
        params = {
            "isWin": "true",
            "roundGte": str(round_gte),
            "order": "asc",
            "limit": str(self._page_size),
            "offset": str(offset),
        }
        if threshold_raw:
            params["payoutGte"] = str(threshold_raw)
        return params

    async def fetch_since(
        self,
        cursor: Cursor,
        hard_limit: int,
        threshold_raw: int | None = None,
        requested: list[str] | None = None,
    ) -> FetchResult:
        """Collect events from ``cursor.round`` onward.

        Stops on a short or empty page, or once ``hard_limit`` events are
        held. The max position starts at the cursor so an empty feed
        leaves it unchanged. Any page failure raises FetchError.

        Each page URL is appended to ``requested`` before it is sent, so a
        caller-owned list still names the failing URL after an error.
        """
        result = FetchResult(max_round=cursor.round, max_intra=cursor.intra)
        if requested is not None:
            result.requested = requested
        offset = 0

        async with httpx.AsyncClient(
            timeout=self._timeout,
            headers={"accept": "application/json"},
            transport=self._transport,
        ) as client:
            while len(result.events) < hard_limit:
                params = self.page_params(cursor.round, offset, threshold_raw)
                rows = await self._fetch_page(client, params, result)
                if not rows:
                    break

                for row in rows:
                    event = WinEvent.from_json(row)
                    result.events.append(event)
                    if event.position > result.max_position:
                        result.max_round = event.round
                        result.max_intra = event.intra

                log.debug(
                    "Page offset=%d returned %d events (total %d)",
                    offset, len(rows), len(result.events),
                )
                if len(rows) < self._page_size:
                    break
                offset += self._page_size

        log.info(
            "Fetched %d events since round %d (max observed %d/%d)",
            len(result.events), cursor.round, result.max_round, result.max_intra,
        )
        return result

    async def _fetch_page(
        self, client: httpx.AsyncClient, params: dict[str, str], result: FetchResult
    ) -> list[Any]:
        request = client.build_request("GET", self._api_url, params=params)
        result.requested.append(str(request.url))
        try:
            resp = await client.send(request)
        except httpx.TimeoutException as exc:
            raise FetchError(f"HoV events API timeout after {self._timeout}s") from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"HoV events API request failed: {exc}") from exc

        if not resp.is_success:
            raise FetchError(f"HoV events API error: {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as exc:
            raise FetchError("HoV events API returned malformed JSON") from exc

        if not isinstance(body, dict) or not isinstance(body.get("data"), list):
            raise FetchError("HoV events API response has no 'data' array")
        return body["data"]
