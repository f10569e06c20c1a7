"""LLM Provider and Model Enums for easy model selection and hotswapping.

Research, narration, chat and "more research" each pick a model from these
enums in config, so swapping providers is a one-line YAML change.
"""

from enum import StrEnum


class LLMProvider(StrEnum):
    """Supported LLM providers."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"


class OpenAIModel(StrEnum):
    """OpenAI models available via API."""

    GPT_5_2 = "gpt-5.2"
    GPT_5 = "gpt-5"
    GPT_5_MINI = "gpt-5-mini"
    GPT_5_NANO = "gpt-5-nano"


class AnthropicModel(StrEnum):
    """Anthropic Claude models available via API."""

    CLAUDE_OPUS_4_5 = "claude-opus-4-5"
    CLAUDE_SONNET_4_5 = "claude-sonnet-4-5"
    CLAUDE_HAIKU_4_5 = "claude-haiku-4-5"


class GoogleModel(StrEnum):
    """Google Gemini models available via the Generative Language API."""

    GEMINI_2_5_PRO = "gemini-2.5-pro"
    GEMINI_2_5_FLASH = "gemini-2.5-flash"
    GEMINI_2_5_FLASH_LITE = "gemini-2.5-flash-lite"


class ImageModel(StrEnum):
    """Image generation models (OpenAI images API)."""

    GPT_IMAGE_1 = "gpt-image-1"
    GPT_IMAGE_1_MINI = "gpt-image-1-mini"
    DALL_E_3 = "dall-e-3"


TextModel = OpenAIModel | AnthropicModel | GoogleModel


# =============================================================================
# Helper Functions
# =============================================================================


def get_model_string(model: TextModel) -> str:
    """Get the pydantic-ai model string for any supported text model."""
    if isinstance(model, OpenAIModel):
        return f"openai:{model.value}"
    elif isinstance(model, AnthropicModel):
        return f"anthropic:{model.value}"
    elif isinstance(model, GoogleModel):
        return f"google-gla:{model.value}"
    return model.value


def get_provider_for_model(model: TextModel) -> LLMProvider:
    """Determine the provider for a given model."""
    if isinstance(model, OpenAIModel):
        return LLMProvider.OPENAI
    elif isinstance(model, AnthropicModel):
        return LLMProvider.ANTHROPIC
    elif isinstance(model, GoogleModel):
        return LLMProvider.GOOGLE
    else:
        raise ValueError(f"Unknown model type: {type(model)}")

