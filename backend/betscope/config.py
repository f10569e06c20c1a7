"""Configuration management using Pydantic Settings."""

import logging
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from betscope.llm_providers import (
    GoogleModel,
    ImageModel,
    OpenAIModel,
    TextModel,
)
from betscope.services.kalshi.config import KalshiConfig

logger = logging.getLogger(__name__)


class ResearchConfig(BaseModel):
    """Research generation models and cache validity windows."""

    research_model: TextModel = GoogleModel.GEMINI_2_5_FLASH
    steps_model: TextModel = GoogleModel.GEMINI_2_5_FLASH_LITE
    chat_model: TextModel = OpenAIModel.GPT_5_MINI
    more_model: TextModel = GoogleModel.GEMINI_2_5_FLASH
    image_model: ImageModel = ImageModel.GPT_IMAGE_1_MINI

    default_validity_hours: int = 24
    min_validity_hours: int = 1  # Volatile topics (live games, breaking news)
    max_validity_hours: int = 168  # Slow-moving topics (one week)
    placeholder_validity_hours: int = 1  # Steps-only rows written before the artifact

    single_flight: bool = True  # Coalesce concurrent misses for the same key


class CacheConfig(BaseModel):
    """Cache tier locations."""

    client_cache_dir_name: str = "client_cache"
    store_dir_name: str = "research_cache"


class ProgressConfig(BaseModel):
    """Progress simulator cadence."""

    tick_seconds: float = 2.0


class Settings(BaseSettings):
    """Main configuration class."""

    # Paths
    data_dir: Path = Path("data")

    # API Keys
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    google_api_key: str = ""
    logfire_token: str = ""

    # Nested configuration sections
    research: ResearchConfig = Field(default_factory=ResearchConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    progress: ProgressConfig = Field(default_factory=ProgressConfig)
    kalshi: KalshiConfig = Field(default_factory=KalshiConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("data_dir", mode="after")
    @classmethod
    def resolve_data_dir(cls, v: Path) -> Path:
        """Resolve data directory to absolute path."""
        return v.resolve()

    @property
    def store_dir(self) -> Path:
        """Directory holding the authoritative research cache rows."""
        return self.data_dir / self.cache.store_dir_name

    @property
    def client_cache_dir(self) -> Path:
        """Directory holding the client-side durable cache tier."""
        return self.data_dir / self.cache.client_cache_dir_name

    def load_yaml_config(self) -> None:
        """Load and merge YAML configuration."""
        config_path = self.data_dir / "config.yaml"

        if not config_path.exists():
            logger.warning(
                f"Config file not found: {config_path}. "
                "Using defaults. Run 'python -m betscope init' to create it."
            )
            return

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                yaml_config = yaml.safe_load(f)

            if not yaml_config:
                logger.warning(f"Empty config file: {config_path}")
                return

            for section_name in ["research", "cache", "progress", "kalshi"]:
                if section_name in yaml_config:
                    section = getattr(self, section_name)
                    yaml_section = yaml_config[section_name]

                    section_dict = section.model_dump()
                    section_dict.update(yaml_section)

                    new_section = section.__class__(**section_dict)
                    setattr(self, section_name, new_section)

            logger.info(f"Loaded configuration from {config_path}")

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML config: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to load config: {e}")
            raise


@lru_cache()
def get_settings() -> Settings:
    """Get singleton Settings instance."""
    settings = Settings()
    settings.load_yaml_config()
    return settings
