from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from .config import KalshiConfig
from .exceptions import KalshiAPIError, KalshiNotFoundError, KalshiRateLimitError
from .models import Event, EventPage

logger = logging.getLogger(__name__)


class KalshiClient:
    """Read-only async client for Kalshi's public event and market endpoints."""

    def __init__(self, config: KalshiConfig | None = None):
        self.config = config or KalshiConfig()
        self._client: httpx.AsyncClient | None = None
        logger.info(f"Initialized KalshiClient (base_url={self.config.base_url})")

    async def __aenter__(self) -> KalshiClient:
        limits = httpx.Limits(
            max_connections=self.config.max_connections,
            max_keepalive_connections=self.config.max_keepalive_connections,
        )
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout_seconds,
            limits=limits,
            headers={"Accept": "application/json"},
        )
        return self

    async def __aexit__(
        self,
        exc_type: type | None,
        exc_val: Exception | None,
        exc_tb: Any,
    ) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("Closed KalshiClient")

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(
                "KalshiClient must be used as async context manager"
            )
        return self._client

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        retry_count = 0
        last_error: Exception | None = None

        while retry_count < self.config.max_retries:
            try:
                response = await self.client.request(
                    method=method,
                    url=endpoint,
                    params=params,
                )

                if response.status_code == 404:
                    raise KalshiNotFoundError(
                        f"Resource not found: {endpoint}", status_code=404
                    )
                elif response.status_code == 429:
                    wait_time = 2 ** retry_count
                    logger.warning(f"Rate limited, waiting {wait_time}s...")
                    last_error = KalshiRateLimitError(
                        "Rate limit exceeded", status_code=429
                    )
                    await asyncio.sleep(wait_time)
                    retry_count += 1
                    continue
                elif response.status_code >= 500:
                    wait_time = 2 ** retry_count
                    logger.warning(
                        f"Server error {response.status_code}, "
                        f"retrying in {wait_time}s..."
                    )
                    await asyncio.sleep(wait_time)
                    retry_count += 1
                    continue
                elif response.status_code >= 400:
                    logger.error(
                        f"Kalshi API error {response.status_code}: {response.text[:500]}"
                    )
                    raise KalshiAPIError(
                        f"Kalshi API error: {response.status_code}",
                        status_code=response.status_code,
                    )

                return response.json()

            except httpx.TimeoutException as e:
                last_error = e
                retry_count += 1
                if retry_count < self.config.max_retries:
                    logger.warning(f"Timeout, retrying ({retry_count})...")
                    await asyncio.sleep(2)

            except httpx.RequestError as e:
                last_error = e
                logger.error(f"Network error: {e}")
                break

        if isinstance(last_error, KalshiRateLimitError):
            raise last_error
        raise KalshiAPIError(
            f"Request failed after {retry_count} retries: {last_error}"
        )

    async def list_events(
        self,
        cursor: str | None = None,
        limit: int | None = None,
        status: str = "open",
        with_nested_markets: bool = False,
    ) -> EventPage:
        """Fetch a single page of events; pass the returned cursor to continue."""
        params: dict[str, Any] = {
            "limit": limit or self.config.default_page_size,
            "status": status,
        }
        if cursor:
            params["cursor"] = cursor
        if with_nested_markets:
            params["with_nested_markets"] = "true"

        data = await self._request("GET", "events", params=params)
        return EventPage(
            events=[Event.from_api(e) for e in data.get("events") or []],
            cursor=data.get("cursor") or "",
        )

    async def get_event(self, event_ticker: str) -> Event:
        """Fetch one event with its markets."""
        data = await self._request("GET", f"events/{event_ticker}")
        # Kalshi returns event and markets as separate top-level keys
        event_data = data.get("event", data)
        markets = data.get("markets")
        if markets is None:
            markets = event_data.get("markets") or []
        return Event.from_api(event_data, markets=markets)

    async def get_hot_events(self) -> list[Event]:
        """Top events by total market volume, one per category."""
        page = await self.list_events(limit=self.config.hot_events_sample_size)
        sample = page.events[: self.config.hot_events_enrich_count]

        results = await asyncio.gather(
            *(self.get_event(e.event_ticker) for e in sample),
            return_exceptions=True,
        )

        enriched: list[Event] = []
        for summary, result in zip(sample, results):
            if isinstance(result, Exception):
                logger.warning(
                    f"Skipping {summary.event_ticker} for hot events: {result}"
                )
                continue
            enriched.append(result)

        enriched.sort(key=lambda e: e.total_volume, reverse=True)

        hot: list[Event] = []
        used_categories: set[str] = set()
        for event in enriched:
            category = event.category.lower()
            if category in used_categories:
                continue
            hot.append(event)
            used_categories.add(category)
            if len(hot) >= self.config.hot_events_count:
                break

        return hot


def create_kalshi_client(config: KalshiConfig | None = None) -> KalshiClient:
    """Factory function to create KalshiClient with default config."""
    return KalshiClient(config=config or KalshiConfig())
