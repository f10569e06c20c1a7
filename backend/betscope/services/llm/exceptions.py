"""Generation failures surfaced to research callers."""


class GenerationError(Exception):
    """Base exception for text/image generation failures."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ConfigurationError(GenerationError):
    """Generation service unavailable or not configured (fatal, no retry)."""

    pass


class RateLimitedError(GenerationError):
    """Upstream asked us to back off; retry after a delay."""

    def __init__(
        self,
        message: str,
        status_code: int | None = 429,
        retry_after_seconds: float | None = None,
    ):
        super().__init__(message, status_code=status_code)
        self.retry_after_seconds = retry_after_seconds


def retry_after_seconds(headers) -> float | None:
    """Seconds from a numeric ``Retry-After`` header, if one is present."""
    if not headers:
        return None
    value = headers.get("retry-after") or headers.get("Retry-After")
    if value is None:
        return None
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return None
    return seconds if seconds >= 0 else None


class QuotaExhaustedError(GenerationError):
    """Credits depleted; fatal until an operator tops up."""

    pass


class MalformedOutputError(GenerationError):
    """Model text did not parse as the expected structure."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        # For logs only, never shown to users
        self.raw_text = raw_text
