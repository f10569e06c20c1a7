"""Authoritative research cache: the shared, TTL-enforced source of truth.

Row layout (one JSON file per request key under ``data/research_cache/``):
key, artifact (nullable image), steps (nullable), created_at, expires_at,
validity_hours.
"""

import logging
from pathlib import Path

from betscope.cache.models import utc_now
from betscope.cache.tiers import Clock, JsonFileTier
from betscope.config import Settings

logger = logging.getLogger(__name__)


class ResearchStore(JsonFileTier):
    """Upsert/patch store with freshness filtering on lookup."""

    def __init__(self, directory: Path, clock: Clock = utc_now):
        super().__init__(directory, clock=clock)
        logger.info(f"Initialized ResearchStore at {directory}")

    def lookup_steps(self, key: str) -> list[str] | None:
        """Cached narration steps, ignoring artifact presence and freshness."""
        entry = self.read_raw(key)
        if entry is None or not entry.steps:
            return None
        return entry.steps


def create_research_store(settings: Settings) -> ResearchStore:
    """Factory function to create the authoritative store under the data dir."""
    return ResearchStore(settings.store_dir)
