"""Follow-up Q&A about a research artifact."""

import logging
from collections.abc import Sequence

from betscope.config import ResearchConfig
from betscope.research.models import ResearchArtifact, ResearchRequest
from betscope.research.prompts import build_chat_system_prompt
from betscope.services.llm.models import ChatTurn
from betscope.services.llm.text import TextGenerationService

logger = logging.getLogger(__name__)

EMPTY_ANSWER = "I'm not sure about that."
NO_RESEARCH_CONTEXT = "No research has been generated for this question yet."


class ResearchChat:
    def __init__(self, text_service: TextGenerationService, config: ResearchConfig):
        self.text_service = text_service
        self.config = config

    async def answer(
        self,
        request: ResearchRequest,
        prior_turns: Sequence[ChatTurn],
        question: str,
        artifact: ResearchArtifact | None = None,
    ) -> str:
        """Answer a question using the artifact as context (but not limited to it)."""
        context = (
            artifact.model_dump_json(exclude={"image_url"})
            if artifact is not None
            else NO_RESEARCH_CONTEXT
        )
        turns = [*prior_turns, ChatTurn(role="user", content=question)]

        answer = await self.text_service.complete(
            system_prompt=build_chat_system_prompt(request.title, context),
            messages=turns,
            model=self.config.chat_model,
        )
        logger.info(f"Answered chat question for {request.key} ({len(turns)} turns)")
        return answer.strip() or EMPTY_ANSWER
