"""Unit tests for the read-only Kalshi client against a mocked transport."""

import asyncio

import httpx
import pytest

from betscope.services.kalshi import (
    KalshiAPIError,
    KalshiClient,
    KalshiConfig,
    KalshiNotFoundError,
)

BASE_URL = "https://kalshi.test/trade-api/v2"

EVENTS = [
    {"event_ticker": "PRES-28", "title": "2028 presidential winner", "category": "Politics"},
    {"event_ticker": "SENATE-26", "title": "Senate control", "category": "politics"},
    {"event_ticker": "NBA-FINALS", "title": "NBA Finals champion", "category": "Sports"},
    {"event_ticker": "CPI-MAR", "title": "How high will CPI be?", "category": "Economics"},
    {"event_ticker": "GONE-1", "title": "Delisted", "category": "Science"},
]

VOLUMES = {"PRES-28": 900, "SENATE-26": 800, "NBA-FINALS": 300, "CPI-MAR": 200}


def market(event_ticker: str, volume: int, **fields) -> dict:
    data = {
        "ticker": f"{event_ticker}-M",
        "event_ticker": event_ticker,
        "title": "Market",
        "volume": volume,
        "yes_bid": 40,
        "yes_ask": 44,
        "close_time": "2026-11-03T00:00:00Z",
        "status": "active",
    }
    data.update(fields)
    return data


def handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path.removeprefix("/trade-api/v2/")
    if path == "events":
        return httpx.Response(200, json={"events": EVENTS, "cursor": "next-page"})

    ticker = path.removeprefix("events/")
    if ticker not in VOLUMES:
        return httpx.Response(404, json={"error": "not found"})

    event = next(e for e in EVENTS if e["event_ticker"] == ticker)
    return httpx.Response(
        200, json={"event": event, "markets": [market(ticker, VOLUMES[ticker])]}
    )


def make_client(transport_handler=handler, **config) -> KalshiClient:
    client = KalshiClient(KalshiConfig(base_url=BASE_URL, **config))
    client._client = httpx.AsyncClient(
        base_url=BASE_URL, transport=httpx.MockTransport(transport_handler)
    )
    return client


def test_list_events_returns_page_with_cursor():
    page = asyncio.run(make_client().list_events(limit=5))

    assert [e.event_ticker for e in page.events] == [e["event_ticker"] for e in EVENTS]
    assert page.cursor == "next-page"


def test_get_event_reads_sibling_markets():
    event = asyncio.run(make_client().get_event("PRES-28"))

    assert event.title == "2028 presidential winner"
    assert len(event.markets) == 1
    assert event.markets[0].implied_yes_price == pytest.approx(0.42)
    assert event.markets[0].close_time.year == 2026


def test_get_event_not_found():
    with pytest.raises(KalshiNotFoundError):
        asyncio.run(make_client().get_event("NOPE"))


def test_client_error_is_not_retried():
    calls = []

    def bad_request(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(400, text="bad cursor")

    with pytest.raises(KalshiAPIError) as exc_info:
        asyncio.run(make_client(bad_request).list_events(cursor="garbage"))

    assert exc_info.value.status_code == 400
    assert len(calls) == 1


def test_network_error_raises_api_error():
    def offline(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(KalshiAPIError):
        asyncio.run(make_client(offline).list_events())


def test_hot_events_pick_top_volume_with_distinct_categories():
    client = make_client(hot_events_enrich_count=5, hot_events_count=3)

    hot = asyncio.run(client.get_hot_events())

    # SENATE-26 loses to PRES-28 on category; GONE-1 fails and is skipped
    assert [e.event_ticker for e in hot] == ["PRES-28", "NBA-FINALS", "CPI-MAR"]


def test_hot_events_only_enrich_the_first_n():
    client = make_client(hot_events_enrich_count=1, hot_events_count=3)

    hot = asyncio.run(client.get_hot_events())

    assert [e.event_ticker for e in hot] == ["PRES-28"]


def test_client_requires_context_manager():
    with pytest.raises(RuntimeError):
        KalshiClient(KalshiConfig(base_url=BASE_URL)).client
