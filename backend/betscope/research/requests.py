"""Build research requests from Kalshi events."""

from betscope.research.models import MarketCandidate, ResearchRequest
from betscope.services.kalshi.models import Event


def request_from_event(event: Event) -> ResearchRequest:
    """Describe an event as a ResearchRequest keyed by its event ticker.

    Single-market events carry that market's YES price; mutually exclusive
    multi-market events carry each market as a named candidate.
    """
    market_price: float | None = None
    candidates: list[MarketCandidate] = []

    if len(event.markets) == 1:
        market_price = event.markets[0].implied_yes_price
    elif event.mutually_exclusive:
        for market in event.markets:
            name = market.yes_sub_title or market.subtitle or market.title
            price = market.implied_yes_price
            if not name or price is None:
                continue
            candidates.append(MarketCandidate(name=name, price=min(max(price, 0.0), 1.0)))

    return ResearchRequest(
        key=event.event_ticker,
        title=event.title or event.event_ticker,
        category=event.category or "General",
        details=event.sub_title,
        market_price=market_price,
        candidates=tuple(candidates),
    )
