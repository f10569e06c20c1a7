"""Research Orchestrator: cache check, concurrent generation, async image patch.

Flow for ``fetch``:

1. Authoritative lookup. A fresh row with an artifact is returned verbatim.
2. On miss, narration runs as a background task while the artifact is
   generated. Generation errors propagate and nothing is cached.
3. The artifact is persisted at once (image None) and returned.
4. Image synthesis runs afterwards as a fire-and-forget task that patches the
   row. Failures leave the image None for good.
5. Narration, whenever it lands, patches the existing row or writes a
   placeholder row with a short deadline.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from pydantic import BaseModel

from betscope.cache.models import CacheEntry, utc_now
from betscope.cache.store import ResearchStore, create_research_store
from betscope.cache.tiers import Clock
from betscope.config import ResearchConfig, Settings
from betscope.research.chat import ResearchChat
from betscope.research.generator import ArtifactGenerator
from betscope.research.models import (
    FindingsGroup,
    GenerationResult,
    ResearchArtifact,
    ResearchRequest,
)
from betscope.research.narrator import FALLBACK_STEPS, StepNarrator
from betscope.services.llm.image import ImageGenerationService
from betscope.services.llm.models import ChatTurn
from betscope.services.llm.text import TextGenerationService

logger = logging.getLogger(__name__)


class FetchResult(BaseModel):
    """A served entry plus whether it came straight from the cache."""

    entry: CacheEntry
    hit: bool

    @property
    def artifact(self) -> ResearchArtifact:
        if self.entry.artifact is None:
            raise ValueError(f"Cache entry {self.entry.key} has no artifact")
        return self.entry.artifact


class ResearchOrchestrator:
    """Owns the in-flight map and background tasks for one process."""

    def __init__(
        self,
        store: ResearchStore,
        generator: ArtifactGenerator,
        narrator: StepNarrator,
        chat: ResearchChat,
        config: ResearchConfig,
        image_service: ImageGenerationService | None = None,
        clock: Clock = utc_now,
    ):
        self.store = store
        self.generator = generator
        self.narrator = narrator
        self.chat_service = chat
        self.config = config
        self.image_service = image_service
        self._clock = clock

        self._inflight: dict[str, asyncio.Future[FetchResult]] = {}
        self._background: set[asyncio.Task] = set()
        self._image_tasks: dict[str, asyncio.Task] = {}
        self._narrations: dict[str, asyncio.Task] = {}

    # ------------------------------------------------------------------
    # Primary path
    # ------------------------------------------------------------------

    async def fetch(self, request: ResearchRequest) -> ResearchArtifact:
        """Return a cached or freshly generated artifact (image may be None)."""
        return (await self.fetch_entry(request)).artifact

    async def fetch_entry(self, request: ResearchRequest) -> FetchResult:
        entry = self._safe_lookup(request.key)
        if entry is not None and entry.artifact is not None:
            logger.info(
                f"Cache hit for {request.key} (expires {entry.expires_at.isoformat()})"
            )
            return FetchResult(entry=entry, hit=True)

        if not self.config.single_flight:
            return await self._generate(request)

        pending = self._inflight.get(request.key)
        if pending is not None:
            logger.info(f"Joining in-flight generation for {request.key}")
            return await asyncio.shield(pending)

        future: asyncio.Future[FetchResult] = asyncio.get_running_loop().create_future()
        self._inflight[request.key] = future
        try:
            result = await self._generate(request)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            future.exception()  # Mark retrieved when no one else was waiting
            raise
        else:
            future.set_result(result)
            return result
        finally:
            self._inflight.pop(request.key, None)

    async def _generate(self, request: ResearchRequest) -> FetchResult:
        logger.info(f"Cache miss for {request.key}; generating research")

        narration = self._narration_for(request)
        result = await self.generator.generate(request)

        steps = narration.result() if narration.done() and not narration.cancelled() else None
        entry = self._persist_artifact(request.key, result, steps)

        if result.image_description and self.image_service is not None:
            task = self._spawn(self._synthesize_image(request.key, result.image_description))
            self._image_tasks[request.key] = task
            task.add_done_callback(lambda t, key=request.key: self._forget_image_task(key, t))

        return FetchResult(entry=entry, hit=False)

    def _persist_artifact(
        self,
        key: str,
        result: GenerationResult,
        steps: list[str] | None,
    ) -> CacheEntry:
        if steps is None:
            existing = self._safe_read_raw(key)
            steps = existing.steps if existing else None

        entry = CacheEntry.create(
            key=key,
            validity_hours=result.validity_hours,
            artifact=result.artifact.model_copy(update={"image_url": None}),
            steps=steps,
            now=self._clock(),
        )
        try:
            self.store.put(key, entry)
            logger.info(f"Cached research for {key} ({result.validity_hours}h)")
        except Exception as e:
            logger.warning(f"Failed to cache research for {key}; returning uncached: {e}")
        return entry

    # ------------------------------------------------------------------
    # Side channels
    # ------------------------------------------------------------------

    async def _synthesize_image(self, key: str, description: str) -> str | None:
        if self.image_service is None:
            return None
        try:
            image_url = await self.image_service.generate(description)
        except Exception as e:
            logger.warning(f"Image generation failed for {key} (non-fatal): {e}")
            return None

        if not image_url:
            return None

        def apply_image(entry: CacheEntry) -> CacheEntry:
            if entry.artifact is None:
                return entry
            artifact = entry.artifact.model_copy(update={"image_url": image_url})
            return entry.model_copy(update={"artifact": artifact})

        try:
            if self.store.patch(key, apply_image) is None:
                logger.warning(f"No cache row to attach image for {key}")
            else:
                logger.info(f"Attached image to cached research for {key}")
        except Exception as e:
            logger.warning(f"Failed to patch image for {key}: {e}")
        return image_url

    def _narration_for(self, request: ResearchRequest) -> asyncio.Task:
        """The in-flight narration task for a key, started if none is running."""
        task = self._narrations.get(request.key)
        if task is not None:
            return task

        task = self._spawn(self._narrate_and_store(request))
        self._narrations[request.key] = task
        task.add_done_callback(lambda t, key=request.key: self._forget_narration(key, t))
        return task

    async def _narrate_and_store(self, request: ResearchRequest) -> list[str]:
        steps = await self.narrator.narrate(request)
        self._store_steps(request.key, steps)
        return steps

    def _store_steps(self, key: str, steps: list[str]) -> None:
        if steps == list(FALLBACK_STEPS):
            return

        try:
            patched = self.store.patch(
                key, lambda entry: entry.model_copy(update={"steps": steps})
            )
            if patched is None:
                placeholder = CacheEntry.create(
                    key=key,
                    validity_hours=self.config.placeholder_validity_hours,
                    steps=steps,
                    now=self._clock(),
                )
                self.store.put(key, placeholder)
                logger.debug(f"Wrote steps placeholder for {key}")
        except Exception as e:
            logger.warning(f"Failed to cache steps for {key}: {e}")

    async def get_steps(self, request: ResearchRequest) -> list[str]:
        """Narration steps for a request; cache-aware and never raises."""
        cached = self._safe_lookup_steps(request.key)
        if cached:
            return cached

        pending = self._narrations.get(request.key)
        if pending is not None:
            logger.info(f"Joining in-flight narration for {request.key}")
        return list(await asyncio.shield(self._narration_for(request)))

    async def chat(
        self,
        request: ResearchRequest,
        prior_turns: Sequence[ChatTurn],
        question: str,
        artifact: ResearchArtifact | None = None,
    ) -> str:
        if artifact is None:
            entry = self._safe_read_raw(request.key)
            artifact = entry.artifact if entry else None
        return await self.chat_service.answer(request, prior_turns, question, artifact)

    async def extend_research(
        self,
        request: ResearchRequest,
        existing_titles: list[str],
    ) -> list[FindingsGroup]:
        return await self.generator.extend(request, existing_titles)

    def peek(self, key: str) -> CacheEntry | None:
        """Fresh authoritative row for key (used to poll for the image)."""
        return self._safe_lookup(key)

    # ------------------------------------------------------------------
    # Background task bookkeeping
    # ------------------------------------------------------------------

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    def _forget_image_task(self, key: str, task: asyncio.Task) -> None:
        if self._image_tasks.get(key) is task:
            del self._image_tasks[key]

    def _forget_narration(self, key: str, task: asyncio.Task) -> None:
        if self._narrations.get(key) is task:
            del self._narrations[key]

    def pending_image(self, key: str) -> asyncio.Task | None:
        """Handle for an in-progress image synthesis, if any."""
        return self._image_tasks.get(key)

    async def drain(self) -> None:
        """Wait for all background narration and image work to finish."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # ------------------------------------------------------------------
    # Store reads (read failures degrade to a miss)
    # ------------------------------------------------------------------

    def _safe_lookup(self, key: str) -> CacheEntry | None:
        try:
            return self.store.lookup(key)
        except Exception as e:
            logger.warning(f"Cache lookup failed for {key}: {e}")
            return None

    def _safe_read_raw(self, key: str) -> CacheEntry | None:
        try:
            return self.store.read_raw(key)
        except Exception as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None

    def _safe_lookup_steps(self, key: str) -> list[str] | None:
        try:
            return self.store.lookup_steps(key)
        except Exception as e:
            logger.warning(f"Steps lookup failed for {key}: {e}")
            return None


def create_research_orchestrator(settings: Settings) -> ResearchOrchestrator:
    """Wire the orchestrator from settings with live text and image services."""
    text_service = TextGenerationService(settings)
    return ResearchOrchestrator(
        store=create_research_store(settings),
        generator=ArtifactGenerator(text_service, settings.research),
        narrator=StepNarrator(text_service, settings.research),
        chat=ResearchChat(text_service, settings.research),
        config=settings.research,
        image_service=ImageGenerationService(settings),
    )
