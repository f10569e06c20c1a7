"""Cache entry model shared by every tier."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, Field

from betscope.research.models import ResearchArtifact


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CacheEntry(BaseModel):
    """One row per request key: a possibly-partial artifact plus optional steps.

    Expiry is a read-time filter on ``expires_at``; rows are overwritten on
    regeneration, never deleted.
    """

    key: str
    artifact: ResearchArtifact | None = None
    steps: list[str] | None = None
    created_at: datetime
    expires_at: datetime
    validity_hours: int = Field(ge=1)

    def is_fresh(self, now: datetime | None = None) -> bool:
        return self.expires_at > (now or utc_now())

    @classmethod
    def create(
        cls,
        key: str,
        validity_hours: int,
        artifact: ResearchArtifact | None = None,
        steps: list[str] | None = None,
        now: datetime | None = None,
    ) -> CacheEntry:
        created_at = now or utc_now()
        return cls(
            key=key,
            artifact=artifact,
            steps=steps,
            created_at=created_at,
            expires_at=created_at + timedelta(hours=validity_hours),
            validity_hours=validity_hours,
        )
