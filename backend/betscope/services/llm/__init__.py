"""LLM service integration: text generation (pydantic-ai) and images (OpenAI)."""

from .exceptions import (
    ConfigurationError,
    GenerationError,
    MalformedOutputError,
    QuotaExhaustedError,
    RateLimitedError,
)
from .image import ImageGenerationService
from .models import ChatTurn
from .text import TextGenerationService

__all__ = [
    "TextGenerationService",
    "ImageGenerationService",
    "ChatTurn",
    "GenerationError",
    "ConfigurationError",
    "RateLimitedError",
    "QuotaExhaustedError",
    "MalformedOutputError",
]
