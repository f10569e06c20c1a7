"""Client-side research cache: memory tier, then disk tier, then the orchestrator.

One ``ResearchCacheClient`` is built per session and handed to whatever
needs research; it owns both client tiers so no cache state lives at module
level.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from betscope.cache.models import CacheEntry, utc_now
from betscope.cache.tiers import Clock, DiskCacheTier, MemoryCacheTier
from betscope.research.models import FindingsGroup, ResearchArtifact, ResearchRequest
from betscope.services.llm.models import ChatTurn

if TYPE_CHECKING:
    from betscope.research.orchestrator import ResearchOrchestrator

logger = logging.getLogger(__name__)


class ResearchCacheClient:
    def __init__(
        self,
        orchestrator: ResearchOrchestrator,
        cache_dir: Path,
        clock: Clock = utc_now,
    ):
        self.orchestrator = orchestrator
        self.memory = MemoryCacheTier(clock=clock)
        self.disk = DiskCacheTier(cache_dir, clock=clock)

    def _cached(self, key: str) -> CacheEntry | None:
        entry = self.memory.lookup(key)
        if entry is not None and entry.artifact is not None:
            logger.debug(f"Memory hit for {key}")
            return entry

        entry = self.disk.lookup(key)
        if entry is not None and entry.artifact is not None:
            logger.debug(f"Disk hit for {key}; promoting to memory")
            self.memory.put(key, entry)
            return entry

        return None

    def _remember(self, key: str, entry: CacheEntry) -> None:
        self.memory.put(key, entry)
        try:
            self.disk.put(key, entry)
        except Exception as e:
            logger.warning(f"Failed to persist {key} to client disk cache: {e}")

    async def get_research(self, request: ResearchRequest) -> ResearchArtifact:
        """Serve from the nearest tier holding a fresh artifact."""
        entry = self._cached(request.key)
        if entry is not None:
            return entry.artifact

        result = await self.orchestrator.fetch_entry(request)
        self._remember(request.key, result.entry)
        return result.artifact

    async def get_steps(self, request: ResearchRequest) -> list[str]:
        entry = self.memory.read_raw(request.key)
        if entry is not None and entry.steps:
            return entry.steps
        return await self.orchestrator.get_steps(request)

    async def refresh_image(self, request: ResearchRequest) -> str | None:
        """Re-check the authoritative tier for an image patched in after delivery."""
        entry = self._cached(request.key)
        if entry is not None and entry.artifact.image_url:
            return entry.artifact.image_url

        latest = self.orchestrator.peek(request.key)
        if latest is None or latest.artifact is None or not latest.artifact.image_url:
            return None

        image_url = latest.artifact.image_url
        if entry is not None:
            artifact = entry.artifact.model_copy(update={"image_url": image_url})
            self._remember(request.key, entry.model_copy(update={"artifact": artifact}))
        else:
            self._remember(request.key, latest)
        return image_url

    async def extend_research(self, request: ResearchRequest) -> list[FindingsGroup]:
        """Fetch more findings groups and append them to the cached artifact."""
        entry = self._cached(request.key)
        existing_titles = entry.artifact.group_titles if entry is not None else []

        groups = await self.orchestrator.extend_research(request, existing_titles)

        if entry is not None and groups:
            artifact = entry.artifact.model_copy(
                update={"groups": [*entry.artifact.groups, *groups]}
            )
            self._remember(request.key, entry.model_copy(update={"artifact": artifact}))
        return groups

    async def chat(
        self,
        request: ResearchRequest,
        prior_turns: Sequence[ChatTurn],
        question: str,
    ) -> str:
        entry = self._cached(request.key)
        artifact = entry.artifact if entry is not None else None
        return await self.orchestrator.chat(request, prior_turns, question, artifact)

    def forget(self) -> None:
        """Drop the memory tier (e.g. when the session ends); disk entries survive."""
        self.memory.clear()
