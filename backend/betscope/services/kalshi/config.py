from pydantic import BaseModel


class KalshiConfig(BaseModel):
    """Configuration for the read-only Kalshi market data client."""

    base_url: str = "https://api.elections.kalshi.com/trade-api/v2"
    timeout_seconds: float = 30.0
    max_connections: int = 100
    max_keepalive_connections: int = 20
    default_page_size: int = 100
    max_retries: int = 3

    # Hot events: sample this many open events, enrich the first N with markets
    hot_events_sample_size: int = 100
    hot_events_enrich_count: int = 20
    hot_events_count: int = 3
