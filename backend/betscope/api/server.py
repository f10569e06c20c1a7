"""FastAPI server exposing research generation and Kalshi event browsing."""

import logging
from collections.abc import AsyncIterator
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from betscope import __version__
from betscope.config import get_settings
from betscope.research.models import FindingsGroup, ResearchArtifact, ResearchRequest
from betscope.research.orchestrator import (
    ResearchOrchestrator,
    create_research_orchestrator,
)
from betscope.services.kalshi import (
    Event,
    KalshiAPIError,
    KalshiClient,
    KalshiNotFoundError,
    KalshiRateLimitError,
    create_kalshi_client,
)
from betscope.services.llm import (
    ChatTurn,
    ConfigurationError,
    GenerationError,
    QuotaExhaustedError,
    RateLimitedError,
)

logger = logging.getLogger(__name__)

app = FastAPI(title="BetScope Research API", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:3001"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Dependencies
# ============================================================================


@lru_cache()
def get_orchestrator() -> ResearchOrchestrator:
    """Process-wide orchestrator (one in-flight map per server)."""
    return create_research_orchestrator(get_settings())


async def get_kalshi() -> AsyncIterator[KalshiClient]:
    async with create_kalshi_client(get_settings().kalshi) as client:
        yield client


# ============================================================================
# Request / response bodies
# ============================================================================


class StepsResponse(BaseModel):
    steps: list[str]


class ChatBody(BaseModel):
    request: ResearchRequest
    prior_turns: list[ChatTurn] = Field(default_factory=list)
    question: str = Field(min_length=1)


class ChatResponse(BaseModel):
    answer: str


class MoreResearchBody(BaseModel):
    request: ResearchRequest
    existing_titles: list[str] | None = None


class MoreResearchResponse(BaseModel):
    groups: list[FindingsGroup]


class EventsResponse(BaseModel):
    events: list[Event]
    cursor: str


# ============================================================================
# Error mapping
# ============================================================================


def _generation_http_error(e: GenerationError) -> HTTPException:
    if isinstance(e, RateLimitedError):
        headers = None
        if e.retry_after_seconds is not None:
            headers = {"Retry-After": str(int(e.retry_after_seconds))}
        return HTTPException(
            status_code=429,
            detail="Rate limit exceeded. Please try again shortly.",
            headers=headers,
        )
    if isinstance(e, QuotaExhaustedError):
        return HTTPException(status_code=402, detail="AI credits exhausted.")
    if isinstance(e, ConfigurationError):
        return HTTPException(status_code=503, detail=str(e))
    return HTTPException(status_code=502, detail=str(e))


def _kalshi_http_error(e: KalshiAPIError) -> HTTPException:
    if isinstance(e, KalshiNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, KalshiRateLimitError):
        return HTTPException(status_code=429, detail=str(e))
    return HTTPException(status_code=502, detail=f"Kalshi request failed: {e}")


# ============================================================================
# Research routes
# ============================================================================


@app.post("/api/research", response_model=ResearchArtifact)
async def post_research(
    request: ResearchRequest,
    orchestrator: ResearchOrchestrator = Depends(get_orchestrator),
):
    """Cached or freshly generated artifact. The image may arrive later."""
    try:
        return await orchestrator.fetch(request)
    except GenerationError as e:
        logger.warning(f"Research failed for {request.key}: {e}")
        raise _generation_http_error(e)


@app.get("/api/research/{key}", response_model=ResearchArtifact)
async def get_research(
    key: str,
    orchestrator: ResearchOrchestrator = Depends(get_orchestrator),
):
    """Poll the authoritative row (used to pick up the image once patched)."""
    entry = orchestrator.peek(key)
    if entry is None or entry.artifact is None:
        raise HTTPException(status_code=404, detail=f"No research cached for {key}")
    return entry.artifact


@app.post("/api/research/steps", response_model=StepsResponse)
async def post_steps(
    request: ResearchRequest,
    orchestrator: ResearchOrchestrator = Depends(get_orchestrator),
):
    return StepsResponse(steps=await orchestrator.get_steps(request))


@app.post("/api/research/chat", response_model=ChatResponse)
async def post_chat(
    body: ChatBody,
    orchestrator: ResearchOrchestrator = Depends(get_orchestrator),
):
    try:
        answer = await orchestrator.chat(body.request, body.prior_turns, body.question)
    except GenerationError as e:
        logger.warning(f"Chat failed for {body.request.key}: {e}")
        raise _generation_http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return ChatResponse(answer=answer)


@app.post("/api/research/more", response_model=MoreResearchResponse)
async def post_more_research(
    body: MoreResearchBody,
    orchestrator: ResearchOrchestrator = Depends(get_orchestrator),
):
    existing_titles = body.existing_titles
    if existing_titles is None:
        entry = orchestrator.peek(body.request.key)
        existing_titles = entry.artifact.group_titles if entry and entry.artifact else []

    try:
        groups = await orchestrator.extend_research(body.request, existing_titles)
    except GenerationError as e:
        logger.warning(f"More research failed for {body.request.key}: {e}")
        raise _generation_http_error(e)
    return MoreResearchResponse(groups=groups)


# ============================================================================
# Event routes
# ============================================================================


@app.get("/api/events", response_model=EventsResponse)
async def list_events(
    cursor: str | None = None,
    limit: int = Query(default=20, ge=1, le=200),
    kalshi: KalshiClient = Depends(get_kalshi),
):
    try:
        page = await kalshi.list_events(cursor=cursor, limit=limit)
    except KalshiAPIError as e:
        raise _kalshi_http_error(e)
    return EventsResponse(events=page.events, cursor=page.cursor)


@app.get("/api/events/hot", response_model=list[Event])
async def hot_events(kalshi: KalshiClient = Depends(get_kalshi)):
    """Top events by total volume, one per category."""
    try:
        return await kalshi.get_hot_events()
    except KalshiAPIError as e:
        raise _kalshi_http_error(e)


@app.get("/api/events/{event_ticker}", response_model=Event)
async def get_event(event_ticker: str, kalshi: KalshiClient = Depends(get_kalshi)):
    try:
        return await kalshi.get_event(event_ticker)
    except KalshiAPIError as e:
        raise _kalshi_http_error(e)


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": __version__}
