"""Pydantic models for research requests and artifacts."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

Confidence = Literal["high", "medium", "low"]

FINDING_ICONS = (
    "history",
    "trending",
    "stats",
    "health",
    "clock",
    "map",
    "trophy",
    "cloud",
    "brain",
    "users",
    "news",
    "alert",
)
DEFAULT_ICON = "news"

QuestionKind = Literal["binary", "candidates", "thresholds"]


# ============================================================================
# Request
# ============================================================================


class MarketCandidate(BaseModel):
    """A named outcome listed by the market, with its observed YES price."""

    model_config = ConfigDict(frozen=True)

    name: str
    price: float = Field(ge=0, le=1)


class ResearchRequest(BaseModel):
    """A prediction-market question to research. Immutable once issued."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(min_length=1, description="Stable question identifier (event ticker)")
    title: str = Field(min_length=1)
    category: str = "General"
    details: str = ""
    market_price: float | None = Field(default=None, ge=0, le=1)
    candidates: tuple[MarketCandidate, ...] = ()


# ============================================================================
# Artifact
# ============================================================================


class FindingsGroup(BaseModel):
    """A titled, confidence-tagged cluster of bullets."""

    title: str
    icon: str = DEFAULT_ICON
    confidence: Confidence
    bullets: list[str] = Field(default_factory=list)

    @field_validator("icon", mode="before")
    @classmethod
    def coerce_icon(cls, v: object) -> str:
        if isinstance(v, str) and v.strip().lower() in FINDING_ICONS:
            return v.strip().lower()
        return DEFAULT_ICON


class ProbabilityFactor(BaseModel):
    name: str
    suggested_probability: float = Field(ge=0, le=1)
    weight: float = Field(default=1.0, ge=0)


class ProbabilityEstimate(BaseModel):
    estimate: float = Field(ge=0, le=1)
    factors: list[ProbabilityFactor] = Field(default_factory=list)
    reasoning: str = ""
    confidence: Confidence


class Candidate(BaseModel):
    name: str
    probability: float = Field(ge=0, le=1)


class Threshold(BaseModel):
    level: str
    probability: float = Field(ge=0, le=1)


class BinaryOutcome(BaseModel):
    kind: Literal["binary"] = "binary"


class CandidatesOutcome(BaseModel):
    kind: Literal["candidates"] = "candidates"
    candidates: list[Candidate] = Field(min_length=1)


class ThresholdsOutcome(BaseModel):
    kind: Literal["thresholds"] = "thresholds"
    thresholds: list[Threshold] = Field(min_length=1)


Outcome = Annotated[
    Union[BinaryOutcome, CandidatesOutcome, ThresholdsOutcome],
    Field(discriminator="kind"),
]


class ResearchArtifact(BaseModel):
    """The expensive payload: findings, estimate, outcome breakdown, image."""

    groups: list[FindingsGroup] = Field(default_factory=list)
    probability: ProbabilityEstimate
    outcome: Outcome = Field(default_factory=BinaryOutcome)
    image_url: str | None = None

    @property
    def candidates(self) -> list[Candidate]:
        if isinstance(self.outcome, CandidatesOutcome):
            return self.outcome.candidates
        return []

    @property
    def thresholds(self) -> list[Threshold]:
        if isinstance(self.outcome, ThresholdsOutcome):
            return self.outcome.thresholds
        return []

    @property
    def group_titles(self) -> list[str]:
        return [g.title for g in self.groups]


class GenerationResult(BaseModel):
    """What one artifact generation run produced."""

    artifact: ResearchArtifact
    image_description: str | None = None
    validity_hours: int
