"""Logfire cloud observability initialization and instrumentation."""

import logging

import logfire

from betscope import __version__
from betscope.config import Settings

logger = logging.getLogger(__name__)


def initialize_logfire(settings: Settings, app=None) -> None:
    """
    Initialize Logfire with comprehensive instrumentation.

    Must be called ONCE at application startup, before any research runs.

    This function configures Logfire cloud tracking and instruments:
    - PydanticAI agents (research, narration, chat, more-research)
    - OpenAI SDK (image generation, token usage)
    - HTTPX clients (Kalshi API)
    - FastAPI, when an app is passed in
    - Python logging (bridges to Logfire)

    Args:
        settings: Application settings containing Logfire token
        app: Optional FastAPI application to instrument
    """
    if not settings.logfire_token:
        logger.warning("Logfire token not set - observability disabled")
        return

    try:
        logfire.configure(
            token=settings.logfire_token,
            service_name="betscope",
            service_version=__version__,
        )

        logfire.instrument_pydantic_ai()
        logfire.instrument_openai()
        logfire.instrument_httpx()

        if app is not None:
            logfire.instrument_fastapi(app)

        # Bridge Python logging to Logfire
        root_logger = logging.getLogger()
        root_logger.addHandler(logfire.LogfireLoggingHandler())

        logger.info("✓ Logfire cloud tracking initialized")

    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")
        # Continue running - observability is optional
