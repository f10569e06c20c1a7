"""Fakes standing in for the generator, narrator, chat and image services."""

import asyncio

from pydantic_ai.messages import ModelMessage, ModelResponse, TextPart
from pydantic_ai.models.function import AgentInfo, FunctionModel

from betscope.cache.store import ResearchStore
from betscope.config import ResearchConfig
from betscope.research.models import (
    FindingsGroup,
    GenerationResult,
    ProbabilityEstimate,
    ResearchArtifact,
    ResearchRequest,
)
from betscope.research.orchestrator import ResearchOrchestrator

NARRATED_STEPS = [
    "Checking the latest polling averages...",
    "Reviewing Fed meeting minutes...",
    "Comparing with past cycles...",
]

RESEARCH_JSON = {
    "categories": [
        {
            "title": "Recent Data",
            "icon": "stats",
            "confidence": "high",
            "bullets": ["CPI came in at 3.1% in September", "Core inflation is falling"],
        },
        {
            "title": "Fed Signals",
            "icon": "news",
            "confidence": "medium",
            "bullets": ["Two governors hinted at a pause"],
        },
    ],
    "probability": {
        "estimate": 0.62,
        "factors": [
            {"name": "Inflation trend", "suggested_probability": 0.7, "weight": 2},
            {"name": "Labor market", "suggested_probability": 0.5, "weight": 1},
        ],
        "reasoning": "Cooling inflation makes a cut more likely than not.",
        "confidence": "medium",
    },
    "cache_hours": 12,
    "image_prompt": "Federal Reserve building at dusk",
}


def make_request(key: str = "FEDCUT-25DEC", **overrides) -> ResearchRequest:
    fields = {
        "key": key,
        "title": "Will the Fed cut rates in December?",
        "category": "Economics",
        "market_price": 0.55,
    }
    fields.update(overrides)
    return ResearchRequest(**fields)


def make_artifact(estimate: float = 0.62) -> ResearchArtifact:
    return ResearchArtifact(
        groups=[
            FindingsGroup(
                title="Recent Data",
                icon="stats",
                confidence="high",
                bullets=["CPI came in at 3.1% in September"],
            )
        ],
        probability=ProbabilityEstimate(
            estimate=estimate,
            reasoning="Cooling inflation.",
            confidence="medium",
        ),
    )


def text_model(*responses: str) -> FunctionModel:
    """FunctionModel replying with the given texts in order (last one repeats)."""
    replies = list(responses)
    calls = {"count": 0}

    def reply(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        index = min(calls["count"], len(replies) - 1)
        calls["count"] += 1
        return ModelResponse(parts=[TextPart(content=replies[index])])

    return FunctionModel(reply)


def failing_model(error: Exception) -> FunctionModel:
    def reply(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        raise error

    return FunctionModel(reply)


class FakeGenerator:
    def __init__(
        self,
        artifact: ResearchArtifact | None = None,
        validity_hours: int = 24,
        image_description: str | None = "Federal Reserve building",
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ):
        self.artifact = artifact or make_artifact()
        self.validity_hours = validity_hours
        self.image_description = image_description
        self.error = error
        self.gate = gate
        self.calls: list[str] = []
        self.extend_calls: list[list[str]] = []
        self.extra_groups: list[FindingsGroup] = []

    async def generate(self, request: ResearchRequest) -> GenerationResult:
        self.calls.append(request.key)
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return GenerationResult(
            artifact=self.artifact,
            image_description=self.image_description,
            validity_hours=self.validity_hours,
        )

    async def extend(self, request: ResearchRequest, existing_titles: list[str]):
        self.extend_calls.append(list(existing_titles))
        return list(self.extra_groups)


class FakeNarrator:
    def __init__(self, steps: list[str] | None = None, gate: asyncio.Event | None = None):
        self.steps = NARRATED_STEPS if steps is None else steps
        self.gate = gate
        self.calls = 0

    async def narrate(self, request: ResearchRequest) -> list[str]:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        return list(self.steps)


class FakeChat:
    def __init__(self, answer: str = "Probably yes."):
        self.answer_text = answer
        self.calls: list[tuple] = []

    async def answer(self, request, prior_turns, question, artifact=None) -> str:
        self.calls.append((request.key, list(prior_turns), question, artifact))
        return self.answer_text


class FakeImageService:
    def __init__(
        self,
        url: str | None = "https://images.example.com/fed.png",
        error: Exception | None = None,
    ):
        self.url = url
        self.error = error
        self.calls: list[str] = []

    async def generate(self, description: str) -> str | None:
        self.calls.append(description)
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        return self.url


class FailingWriteStore(ResearchStore):
    def put(self, key, entry):
        raise OSError("disk full")


def build_orchestrator(
    store: ResearchStore,
    generator: FakeGenerator | None = None,
    narrator: FakeNarrator | None = None,
    image_service: FakeImageService | None = None,
    chat: FakeChat | None = None,
    config: ResearchConfig | None = None,
) -> ResearchOrchestrator:
    return ResearchOrchestrator(
        store=store,
        generator=generator or FakeGenerator(),
        narrator=narrator or FakeNarrator(),
        chat=chat or FakeChat(),
        config=config or ResearchConfig(),
        image_service=image_service if image_service is not None else FakeImageService(),
    )


