"""Image generation service backed by the OpenAI images API."""

from __future__ import annotations

import logging

import openai
from openai import AsyncOpenAI

from betscope.config import Settings, get_settings

from .exceptions import (
    ConfigurationError,
    GenerationError,
    QuotaExhaustedError,
    RateLimitedError,
    retry_after_seconds,
)

logger = logging.getLogger(__name__)

IMAGE_PROMPT_TEMPLATE = "Generate a photorealistic image: {description}. High quality, editorial style."


class ImageGenerationService:
    """Turns a short visual description into an image reference (URL or data URL)."""

    def __init__(
        self,
        settings: Settings | None = None,
        client: AsyncOpenAI | None = None,
        size: str = "1024x1024",
    ):
        self.settings = settings or get_settings()
        self.size = size
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            try:
                self._client = AsyncOpenAI(
                    api_key=self.settings.openai_api_key or None
                )
            except openai.OpenAIError as e:
                raise ConfigurationError("Image service not configured") from e
        return self._client

    async def generate(self, description: str) -> str | None:
        """Return an image reference, or None if the service produced no image."""
        prompt = IMAGE_PROMPT_TEMPLATE.format(description=description.strip())

        try:
            response = await self.client.images.generate(
                model=self.settings.research.image_model.value,
                prompt=prompt,
                size=self.size,
                n=1,
            )
        except openai.RateLimitError as e:
            if e.code == "insufficient_quota":
                raise QuotaExhaustedError("Image credits depleted", status_code=429) from e
            raise RateLimitedError(
                "Image rate limit exceeded",
                retry_after_seconds=retry_after_seconds(e.response.headers),
            ) from e
        except (openai.AuthenticationError, openai.PermissionDeniedError) as e:
            raise ConfigurationError(
                "Image service not configured", status_code=e.status_code
            ) from e
        except openai.APIStatusError as e:
            raise GenerationError(
                f"Image request failed ({e.status_code})", status_code=e.status_code
            ) from e
        except openai.APIError as e:
            raise GenerationError(f"Image request failed: {e}") from e

        if not response.data:
            logger.info("Image service returned no data")
            return None

        image = response.data[0]
        if image.url:
            return image.url
        if image.b64_json:
            return f"data:image/png;base64,{image.b64_json}"
        return None
