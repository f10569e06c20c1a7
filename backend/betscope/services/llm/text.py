"""Text generation service: system prompt + messages in, plain text out."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence

from pydantic_ai import Agent
from pydantic_ai.exceptions import AgentRunError, ModelHTTPError, UserError
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    TextPart,
    UserPromptPart,
)
from pydantic_ai.models import Model

from betscope.config import Settings, get_settings
from betscope.llm_providers import (
    LLMProvider,
    TextModel,
    get_model_string,
    get_provider_for_model,
)

from .exceptions import (
    ConfigurationError,
    GenerationError,
    QuotaExhaustedError,
    RateLimitedError,
    retry_after_seconds,
)
from .models import ChatTurn

logger = logging.getLogger(__name__)


def map_model_http_error(error: ModelHTTPError) -> GenerationError:
    """Translate an upstream HTTP failure into the generation error taxonomy."""
    status = error.status_code
    body = str(error.body or "").lower()

    if status == 402 or "insufficient_quota" in body:
        return QuotaExhaustedError("AI credits depleted", status_code=status)
    if status == 429:
        # Provider SDK errors chain the raw response carrying Retry-After
        response = getattr(error.__cause__, "response", None)
        return RateLimitedError(
            "Rate limit exceeded. Please try again in a moment.",
            retry_after_seconds=retry_after_seconds(getattr(response, "headers", None)),
        )
    if status in (401, 403):
        return ConfigurationError("AI service not configured", status_code=status)
    return GenerationError(f"AI request failed ({status})", status_code=status)


def _to_message_history(turns: Sequence[ChatTurn]) -> list[ModelMessage]:
    history: list[ModelMessage] = []
    for turn in turns:
        if turn.role == "user":
            history.append(ModelRequest(parts=[UserPromptPart(content=turn.content)]))
        else:
            history.append(ModelResponse(parts=[TextPart(content=turn.content)]))
    return history


class TextGenerationService:
    """Runs one-shot pydantic-ai agents with ``output_type=str``.

    Callers own parsing: the service only returns the raw model text, so
    fenced/JSON handling stays at the research parse boundary.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        model_override: Model | str | None = None,
    ):
        self.settings = settings or get_settings()
        self._model_override = model_override
        self._setup_api_keys()

    def _setup_api_keys(self) -> None:
        """Export provider keys from settings so pydantic-ai providers pick them up."""
        keys = {
            "OPENAI_API_KEY": self.settings.openai_api_key,
            "ANTHROPIC_API_KEY": self.settings.anthropic_api_key,
            "GOOGLE_API_KEY": self.settings.google_api_key,
        }
        for env_name, value in keys.items():
            if value:
                os.environ[env_name] = value

    def _require_api_key(self, model: TextModel) -> None:
        if self._model_override is not None:
            return
        provider = get_provider_for_model(model)
        keys = {
            LLMProvider.OPENAI: self.settings.openai_api_key,
            LLMProvider.ANTHROPIC: self.settings.anthropic_api_key,
            LLMProvider.GOOGLE: self.settings.google_api_key,
        }
        if not keys[provider] and not os.environ.get(f"{provider.upper()}_API_KEY"):
            logger.error(f"No API key configured for {provider} (model {model.value})")
            raise ConfigurationError("AI service not configured")

    def _build_agent(self, system_prompt: str, model: TextModel) -> Agent[None, str]:
        return Agent(
            model=self._model_override or get_model_string(model),
            output_type=str,
            instructions=system_prompt,
        )

    async def complete(
        self,
        system_prompt: str,
        messages: Sequence[ChatTurn] | str,
        model: TextModel,
    ) -> str:
        """Send a system prompt and conversation; return the model's text.

        The last message must be the user's; earlier turns become history.
        """
        if isinstance(messages, str):
            messages = [ChatTurn(role="user", content=messages)]
        if not messages or messages[-1].role != "user":
            raise ValueError("Conversation must end with a user message")

        *history, prompt = messages
        self._require_api_key(model)

        try:
            agent = self._build_agent(system_prompt, model)
            result = await agent.run(
                prompt.content,
                message_history=_to_message_history(history) or None,
            )
        except ModelHTTPError as e:
            logger.error(f"Text generation HTTP {e.status_code} from {e.model_name}")
            raise map_model_http_error(e) from e
        except UserError as e:
            logger.error(f"Text generation misconfigured: {e}")
            raise ConfigurationError("AI service not configured") from e
        except AgentRunError as e:
            logger.error(f"Text generation failed: {e}")
            raise GenerationError(f"AI request failed: {e}") from e
        except Exception as e:
            # Transport failures (connection resets, platform timeouts)
            logger.error(f"Text generation transport failure: {e}")
            raise GenerationError(f"AI request failed: {e}") from e

        return result.output
