"""Research generation: request/artifact models, generator, narrator, orchestrator.

Import the orchestrator from ``betscope.research.orchestrator``; this package
only re-exports the models so the cache layer can depend on them.
"""

from betscope.research.models import (
    Candidate,
    FindingsGroup,
    GenerationResult,
    MarketCandidate,
    ProbabilityEstimate,
    ResearchArtifact,
    ResearchRequest,
    Threshold,
)

__all__ = [
    "Candidate",
    "FindingsGroup",
    "GenerationResult",
    "MarketCandidate",
    "ProbabilityEstimate",
    "ResearchArtifact",
    "ResearchRequest",
    "Threshold",
]
