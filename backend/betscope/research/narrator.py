"""Step Narrator: cosmetic, best-effort "what we're checking" phrases."""

import logging

from betscope.config import ResearchConfig
from betscope.research.models import ResearchRequest
from betscope.research.parsing import parse_steps
from betscope.research.prompts import STEPS_SYSTEM_PROMPT, build_steps_prompt
from betscope.services.llm.text import TextGenerationService

logger = logging.getLogger(__name__)

FALLBACK_STEPS = (
    "Gathering data...",
    "Analyzing context...",
    "Evaluating factors...",
    "Forming estimate...",
)

MAX_STEPS = 7


class StepNarrator:
    """Never raises: any failure yields FALLBACK_STEPS."""

    def __init__(self, text_service: TextGenerationService, config: ResearchConfig):
        self.text_service = text_service
        self.config = config

    async def narrate(self, request: ResearchRequest) -> list[str]:
        try:
            text = await self.text_service.complete(
                system_prompt=STEPS_SYSTEM_PROMPT,
                messages=build_steps_prompt(request),
                model=self.config.steps_model,
            )
            return parse_steps(text, max_steps=MAX_STEPS)
        except Exception as e:
            logger.warning(f"Step narration failed for {request.key}, using fallback: {e}")
            return list(FALLBACK_STEPS)
