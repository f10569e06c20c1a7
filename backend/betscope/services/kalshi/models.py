from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator


def _parse_timestamp(v: Any) -> datetime | None:
    if v is None or v == "":
        return None
    if isinstance(v, datetime):
        return v
    try:
        return datetime.fromisoformat(v.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None


class Market(BaseModel):
    ticker: str
    event_ticker: str = ""
    title: str = ""
    subtitle: str = ""
    yes_sub_title: str = ""
    yes_bid: int = 0
    no_bid: int = 0
    yes_ask: int = 0
    no_ask: int = 0
    last_price: int = 0
    volume: int = 0
    volume_24h: int = 0
    open_interest: int = 0
    close_time: datetime | None = None
    status: str = "unknown"

    @field_validator("close_time", mode="before")
    @classmethod
    def parse_close_time(cls, v: Any) -> datetime | None:
        return _parse_timestamp(v)

    @property
    def implied_yes_price(self) -> float | None:
        """YES price as a 0-1 decimal: bid/ask midpoint, else last trade, else None."""
        if self.yes_bid and self.yes_ask:
            return (self.yes_bid + self.yes_ask) / 200
        if self.last_price:
            return self.last_price / 100
        if self.yes_ask:
            return self.yes_ask / 100
        if self.yes_bid:
            return self.yes_bid / 100
        return None

    @property
    def formatted_volume(self) -> str:
        if self.volume >= 1_000_000:
            return f"{self.volume / 1_000_000:.1f}M"
        elif self.volume >= 1_000:
            return f"{self.volume / 1_000:.1f}K"
        return str(self.volume)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Market:
        return cls(
            ticker=data.get("ticker", ""),
            event_ticker=data.get("event_ticker", ""),
            title=data.get("title", ""),
            subtitle=data.get("subtitle") or "",
            yes_sub_title=data.get("yes_sub_title") or "",
            yes_bid=data.get("yes_bid") or 0,
            no_bid=data.get("no_bid") or 0,
            yes_ask=data.get("yes_ask") or 0,
            no_ask=data.get("no_ask") or 0,
            last_price=data.get("last_price") or 0,
            volume=data.get("volume") or 0,
            volume_24h=data.get("volume_24h") or 0,
            open_interest=data.get("open_interest") or 0,
            close_time=data.get("close_time"),
            status=data.get("status", "unknown"),
        )


class Event(BaseModel):
    event_ticker: str
    title: str = ""
    category: str = ""
    sub_title: str = ""
    mutually_exclusive: bool = False
    strike_date: datetime | None = None
    markets: list[Market] = Field(default_factory=list)

    @field_validator("strike_date", mode="before")
    @classmethod
    def parse_strike_date(cls, v: Any) -> datetime | None:
        return _parse_timestamp(v)

    @property
    def total_volume(self) -> int:
        return sum(m.volume for m in self.markets)

    @classmethod
    def from_api(
        cls,
        data: dict[str, Any],
        markets: list[dict[str, Any]] | None = None,
    ) -> Event:
        # The events endpoint nests markets only when with_nested_markets=true;
        # the single-event endpoint returns them as a sibling key instead.
        raw_markets = markets if markets is not None else data.get("markets") or []
        return cls(
            event_ticker=data.get("event_ticker", ""),
            title=data.get("title", ""),
            category=data.get("category") or "",
            sub_title=data.get("sub_title") or "",
            mutually_exclusive=bool(data.get("mutually_exclusive", False)),
            strike_date=data.get("strike_date"),
            markets=[Market.from_api(m) for m in raw_markets],
        )


class EventPage(BaseModel):
    """One page of the events listing plus the opaque cursor for the next one."""

    events: list[Event] = Field(default_factory=list)
    cursor: str = ""
