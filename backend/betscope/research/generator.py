"""Artifact Generator: one text-service call in, a validated research artifact out."""

import logging
import time

from betscope.config import ResearchConfig
from betscope.research.models import (
    FindingsGroup,
    GenerationResult,
    ResearchRequest,
)
from betscope.research.parsing import classify_question, parse_artifact, parse_groups
from betscope.research.prompts import (
    MORE_RESEARCH_SYSTEM_PROMPT,
    RESEARCH_SYSTEM_PROMPT,
    build_more_research_prompt,
    build_research_prompt,
)
from betscope.services.llm.text import TextGenerationService

logger = logging.getLogger(__name__)


class ArtifactGenerator:
    """Produces research artifacts and follow-up findings groups."""

    def __init__(self, text_service: TextGenerationService, config: ResearchConfig):
        self.text_service = text_service
        self.config = config

    async def generate(self, request: ResearchRequest) -> GenerationResult:
        """Generate a fresh artifact; raises GenerationError subclasses on failure."""
        start_time = time.time()
        kind = classify_question(request)
        logger.info(f"Generating research for {request.key} (kind={kind})")

        text = await self.text_service.complete(
            system_prompt=RESEARCH_SYSTEM_PROMPT,
            messages=build_research_prompt(request, kind),
            model=self.config.research_model,
        )

        result = parse_artifact(
            text,
            kind,
            default_validity_hours=self.config.default_validity_hours,
            min_validity_hours=self.config.min_validity_hours,
            max_validity_hours=self.config.max_validity_hours,
        )

        logger.info(
            f"Research for {request.key} generated in {time.time() - start_time:.1f}s "
            f"({len(result.artifact.groups)} groups, outcome={result.artifact.outcome.kind}, "
            f"valid {result.validity_hours}h)"
        )
        return result

    async def extend(
        self,
        request: ResearchRequest,
        existing_titles: list[str],
    ) -> list[FindingsGroup]:
        """Generate additional findings groups not already shown."""
        text = await self.text_service.complete(
            system_prompt=MORE_RESEARCH_SYSTEM_PROMPT,
            messages=build_more_research_prompt(request, existing_titles),
            model=self.config.more_model,
        )

        seen = {t.strip().lower() for t in existing_titles}
        groups = [g for g in parse_groups(text) if g.title.strip().lower() not in seen]
        logger.info(f"Extended research for {request.key} with {len(groups)} groups")
        return groups
