"""Parse boundary between raw model text and research models.

Everything the text service returns passes through here: optional code
fences are stripped, JSON is decoded, and the result is validated into
pydantic models. Anything that does not fit raises MalformedOutputError.
"""

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from betscope.research.models import (
    BinaryOutcome,
    Candidate,
    CandidatesOutcome,
    FindingsGroup,
    GenerationResult,
    ProbabilityEstimate,
    QuestionKind,
    ResearchArtifact,
    ResearchRequest,
    Threshold,
    ThresholdsOutcome,
)
from betscope.services.llm.exceptions import MalformedOutputError

logger = logging.getLogger(__name__)

_FENCE_PATTERN = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_THRESHOLD_PATTERN = re.compile(
    r"\bhow\s+(high|low|much|many|far|big|long)\b", re.IGNORECASE
)
_CANDIDATE_PATTERN = re.compile(
    r"^\s*(who|which|what)\b|\bwho\s+will\b|\bwhich\s+\w+\s+will\b", re.IGNORECASE
)

RAW_LOG_CHARS = 500


def strip_code_fence(text: str) -> str:
    """Return the body of the first fenced block, or the whole text if unfenced."""
    match = _FENCE_PATTERN.search(text)
    return match.group(1).strip() if match else text.strip()


def extract_json(text: str) -> Any:
    """Decode model text as JSON, tolerating an optional ```json fence."""
    try:
        return json.loads(strip_code_fence(text))
    except (json.JSONDecodeError, TypeError) as e:
        logger.error(f"Failed to parse model output: {text[:RAW_LOG_CHARS]!r}")
        raise MalformedOutputError(
            "Failed to parse research results", raw_text=text
        ) from e


def classify_question(request: ResearchRequest) -> QuestionKind:
    """Classify a question as yes/no, who/what, or how-much from its phrasing."""
    if _THRESHOLD_PATTERN.search(request.title):
        return "thresholds"
    if _CANDIDATE_PATTERN.search(request.title) or len(request.candidates) > 1:
        return "candidates"
    return "binary"


def _select_outcome(
    kind: QuestionKind,
    candidates: list[Candidate],
    thresholds: list[Threshold],
) -> BinaryOutcome | CandidatesOutcome | ThresholdsOutcome:
    if candidates and thresholds:
        logger.warning(
            f"Model returned both candidates and thresholds; keeping {kind} shape"
        )
        if kind == "thresholds":
            return ThresholdsOutcome(thresholds=thresholds)
        return CandidatesOutcome(candidates=candidates)
    if candidates:
        return CandidatesOutcome(candidates=candidates)
    if thresholds:
        return ThresholdsOutcome(thresholds=thresholds)
    return BinaryOutcome()


def coerce_validity_hours(
    value: Any,
    default: int = 24,
    minimum: int = 1,
    maximum: int = 168,
) -> int:
    """Clamp a model-supplied cache window; fall back to the default when unusable."""
    if value is None or isinstance(value, bool):
        return default
    try:
        hours = int(float(value))
    except (TypeError, ValueError):
        return default
    return max(minimum, min(maximum, hours))


def parse_artifact(
    text: str,
    kind: QuestionKind,
    default_validity_hours: int = 24,
    min_validity_hours: int = 1,
    max_validity_hours: int = 168,
) -> GenerationResult:
    """Parse the main research response into a GenerationResult."""
    data = extract_json(text)
    if not isinstance(data, dict):
        logger.error(f"Research output is not an object: {text[:RAW_LOG_CHARS]!r}")
        raise MalformedOutputError("Research output is not a JSON object", raw_text=text)

    try:
        groups = [FindingsGroup.model_validate(g) for g in data.get("categories") or []]
        probability = ProbabilityEstimate.model_validate(data["probability"])
        candidates = [Candidate.model_validate(c) for c in data.get("candidates") or []]
        thresholds = [Threshold.model_validate(t) for t in data.get("thresholds") or []]
    except (KeyError, TypeError, ValidationError) as e:
        logger.error(f"Research output failed validation ({e}): {text[:RAW_LOG_CHARS]!r}")
        raise MalformedOutputError(
            "Research output does not match the expected structure", raw_text=text
        ) from e

    outcome = _select_outcome(kind, candidates, thresholds)
    if isinstance(outcome, CandidatesOutcome):
        top = max(c.probability for c in outcome.candidates)
        probability = probability.model_copy(update={"estimate": top})

    image_prompt = data.get("image_prompt")
    image_description = image_prompt.strip() if isinstance(image_prompt, str) else ""

    return GenerationResult(
        artifact=ResearchArtifact(
            groups=groups,
            probability=probability,
            outcome=outcome,
            image_url=None,
        ),
        image_description=image_description or None,
        validity_hours=coerce_validity_hours(
            data.get("cache_hours"),
            default=default_validity_hours,
            minimum=min_validity_hours,
            maximum=max_validity_hours,
        ),
    )


def parse_groups(text: str) -> list[FindingsGroup]:
    """Parse a {"categories": [...]} response into findings groups."""
    data = extract_json(text)
    raw_groups = data.get("categories") if isinstance(data, dict) else data
    if not isinstance(raw_groups, list):
        raise MalformedOutputError("Failed to parse additional research", raw_text=text)

    try:
        return [FindingsGroup.model_validate(g) for g in raw_groups]
    except ValidationError as e:
        logger.error(f"Additional research failed validation: {text[:RAW_LOG_CHARS]!r}")
        raise MalformedOutputError(
            "Failed to parse additional research", raw_text=text
        ) from e


def parse_steps(text: str, max_steps: int = 7) -> list[str]:
    """Parse a JSON array of short step phrases."""
    data = extract_json(text)
    if not isinstance(data, list):
        raise MalformedOutputError("Steps output is not a JSON array", raw_text=text)

    steps = [s.strip() for s in data if isinstance(s, str) and s.strip()]
    if not steps or len(steps) != len(data):
        raise MalformedOutputError("Steps output must be non-empty strings", raw_text=text)
    return steps[:max_steps]
