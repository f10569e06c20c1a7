"""BetScope CLI entry point."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

env_file = Path(__file__).parent.parent / ".env"
load_dotenv(env_file)

from betscope import __version__
from betscope.cache.client import ResearchCacheClient
from betscope.config import get_settings
from betscope.progress import ProgressSimulator, ProgressSnapshot
from betscope.research.models import ResearchArtifact
from betscope.research.narrator import FALLBACK_STEPS
from betscope.research.orchestrator import create_research_orchestrator
from betscope.research.requests import request_from_event
from betscope.services.kalshi import Event, create_kalshi_client

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)

CONFIG_TEMPLATE = """# BetScope Configuration
# Operational parameters for research generation and caching.
# API keys and secrets should be stored in .env file, not here.

research:
  research_model: gemini-2.5-flash
  steps_model: gemini-2.5-flash-lite
  chat_model: gpt-5-mini
  more_model: gemini-2.5-flash
  image_model: gpt-image-1-mini
  default_validity_hours: 24
  min_validity_hours: 1
  max_validity_hours: 168
  placeholder_validity_hours: 1
  single_flight: true

cache:
  client_cache_dir_name: client_cache
  store_dir_name: research_cache

progress:
  tick_seconds: 2.0

kalshi:
  default_page_size: 100
  max_retries: 3
  hot_events_sample_size: 100
  hot_events_enrich_count: 20
  hot_events_count: 3
"""


def _init_logfire(app=None) -> None:
    """Initialize Logfire if available, without failing commands."""
    try:
        from betscope.observability import initialize_logfire

        initialize_logfire(get_settings(), app=app)
    except Exception as e:
        logger.warning(f"Failed to initialize Logfire: {e}")


def _print_event(event: Event) -> None:
    print(f"{event.event_ticker}  [{event.category or 'General'}]  {event.title}")
    print(f"  Volume: {event.total_volume:,}  Markets: {len(event.markets)}")


def _print_artifact(artifact: ResearchArtifact) -> None:
    probability = artifact.probability
    print(f"Estimate: {probability.estimate:.0%} ({probability.confidence} confidence)")
    print(f"Reasoning: {probability.reasoning}\n")

    for factor in probability.factors:
        print(
            f"  • {factor.name}: {factor.suggested_probability:.0%} "
            f"(weight {factor.weight:g})"
        )
    if probability.factors:
        print()

    if artifact.candidates:
        print("Candidates:")
        for candidate in artifact.candidates:
            print(f"  {candidate.name}: {candidate.probability:.0%}")
        print()
    elif artifact.thresholds:
        print("Thresholds:")
        for threshold in artifact.thresholds:
            print(f"  {threshold.level}: {threshold.probability:.0%}")
        print()

    for group in artifact.groups:
        print(f"[{group.icon}] {group.title} ({group.confidence})")
        for bullet in group.bullets:
            print(f"  - {bullet}")
        print()


def _print_progress(snapshot: ProgressSnapshot) -> None:
    if snapshot.done:
        print("  ✓ Research complete\n")
        return
    total = len(snapshot.steps)
    current = min(snapshot.completed, total - 1)
    if current >= 0:
        print(f"  [{current + 1}/{total}] {snapshot.steps[current]}")


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize data directory structure and configuration files."""
    data_dir = Path("data").resolve()

    try:
        data_dir.mkdir(exist_ok=True)
        logger.info(f"Created data directory: {data_dir}")

        for subdir in ["research_cache", "client_cache"]:
            (data_dir / subdir).mkdir(parents=True, exist_ok=True)

        config_path = data_dir / "config.yaml"
        if not config_path.exists():
            config_path.write_text(CONFIG_TEMPLATE)
            logger.info(f"Created config template: {config_path}")
        else:
            logger.info(f"Config file already exists: {config_path}")

        print(f"\n✓ Data directory initialized at {data_dir}")
        print("\nNext steps:")
        print("1. Add OPENAI_API_KEY / GOOGLE_API_KEY to backend/.env")
        print("2. Review and customize data/config.yaml if needed")
        print("3. Run 'python -m betscope config' to verify configuration")
        print("4. Run 'python -m betscope hot' to pick an event to research\n")

        return 0

    except Exception as e:
        logger.error(f"Failed to initialize: {e}")
        print(f"\n❌ Initialization failed: {e}\n")
        return 1


def cmd_config(args: argparse.Namespace) -> int:
    """Display merged configuration."""
    try:
        settings = get_settings()

        print("\n=== BetScope Configuration ===\n")
        print(f"Data Directory: {settings.data_dir}")
        print(f"Research Store: {settings.store_dir}\n")

        research = settings.research
        print("Research:")
        print(f"  Research Model: {research.research_model.value}")
        print(f"  Steps Model: {research.steps_model.value}")
        print(f"  Chat Model: {research.chat_model.value}")
        print(f"  More Research Model: {research.more_model.value}")
        print(f"  Image Model: {research.image_model.value}")
        print(
            f"  Validity: {research.default_validity_hours}h default "
            f"({research.min_validity_hours}h - {research.max_validity_hours}h)"
        )
        print(f"  Single Flight: {research.single_flight}\n")

        print("Cache:")
        print(f"  Client Cache Dir: {settings.client_cache_dir}\n")

        print("Progress:")
        print(f"  Tick: {settings.progress.tick_seconds}s\n")

        print("Kalshi:")
        print(f"  Base URL: {settings.kalshi.base_url}")
        print(f"  Max Retries: {settings.kalshi.max_retries}\n")

        print("API Keys:")
        print(f"  OpenAI: {'✓ Set' if settings.openai_api_key else '✗ Not set'}")
        print(f"  Anthropic: {'✓ Set' if settings.anthropic_api_key else '✗ Not set'}")
        print(f"  Google: {'✓ Set' if settings.google_api_key else '✗ Not set'}")
        print(f"  Logfire: {'✓ Set' if settings.logfire_token else '✗ Not set'}\n")

        return 0

    except ValidationError as e:
        print("\n❌ Configuration Error:\n")
        for error in e.errors():
            print(f"  • {'.'.join(str(x) for x in error['loc'])}: {error['msg']}")
        print()
        return 1
    except Exception as e:
        logger.error(f"Failed to load config: {e}")
        print(f"\n❌ Failed to load configuration: {e}\n")
        return 1


async def _list_events(limit: int) -> list[Event]:
    async with create_kalshi_client(get_settings().kalshi) as kalshi:
        page = await kalshi.list_events(limit=limit)
    return page.events


async def _hot_events() -> list[Event]:
    async with create_kalshi_client(get_settings().kalshi) as kalshi:
        return await kalshi.get_hot_events()


async def _fetch_event(event_ticker: str) -> Event:
    async with create_kalshi_client(get_settings().kalshi) as kalshi:
        return await kalshi.get_event(event_ticker)


def cmd_events(args: argparse.Namespace) -> int:
    """List open Kalshi events."""
    try:
        events = asyncio.run(_list_events(args.limit))

        print(f"\n=== Open Events ({len(events)}) ===\n")
        for event in events:
            _print_event(event)
        print()
        return 0

    except Exception as e:
        logger.error(f"Failed to list events: {e}", exc_info=True)
        print(f"\n❌ Failed to list events: {e}\n")
        return 1


def cmd_hot(args: argparse.Namespace) -> int:
    """Show the hottest events, one per category."""
    try:
        events = asyncio.run(_hot_events())

        print("\n=== Hot Events ===\n")
        for i, event in enumerate(events, 1):
            print(f"{i}. ", end="")
            _print_event(event)
        print()
        return 0

    except Exception as e:
        logger.error(f"Failed to fetch hot events: {e}", exc_info=True)
        print(f"\n❌ Failed to fetch hot events: {e}\n")
        return 1


async def _run_research(event_ticker: str, wait_for_image: bool) -> ResearchArtifact:
    settings = get_settings()
    request = request_from_event(await _fetch_event(event_ticker))
    print(f"Question: {request.title}\n")

    orchestrator = create_research_orchestrator(settings)
    client = ResearchCacheClient(orchestrator, settings.client_cache_dir)

    simulator = ProgressSimulator(
        FALLBACK_STEPS,
        tick_seconds=settings.progress.tick_seconds,
        on_change=_print_progress,
    )

    def show_narrated_steps(task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is None:
            simulator.extend_steps(task.result())

    steps_task = asyncio.create_task(client.get_steps(request))
    steps_task.add_done_callback(show_narrated_steps)

    try:
        artifact = await simulator.track(client.get_research(request))
    finally:
        if not steps_task.done():
            steps_task.cancel()

    _print_artifact(artifact)

    if wait_for_image and artifact.image_url is None:
        print("Waiting for image...")
        await orchestrator.drain()
        image_url = await client.refresh_image(request)
        if image_url:
            print(f"Image: {image_url[:120]}\n")
        else:
            print("No image available.\n")
    elif artifact.image_url:
        print(f"Image: {artifact.image_url[:120]}\n")

    return artifact


def cmd_research(args: argparse.Namespace) -> int:
    """Research a Kalshi event (cached when fresh)."""
    _init_logfire()

    try:
        print("\n=== BetScope Research ===\n")
        asyncio.run(_run_research(args.event_ticker, wait_for_image=not args.no_image_wait))
        return 0

    except Exception as e:
        logger.error(f"Research failed: {e}", exc_info=True)
        print(f"\n❌ Research failed: {e}\n")
        return 1


async def _narrate(event_ticker: str) -> list[str]:
    request = request_from_event(await _fetch_event(event_ticker))
    orchestrator = create_research_orchestrator(get_settings())
    steps = await orchestrator.get_steps(request)
    await orchestrator.drain()
    return steps


def cmd_steps(args: argparse.Namespace) -> int:
    """Print the narrated research steps for an event."""
    _init_logfire()

    try:
        steps = asyncio.run(_narrate(args.event_ticker))

        print(f"\n=== Research Steps: {args.event_ticker} ===\n")
        for i, step in enumerate(steps, 1):
            print(f"  {i}. {step}")
        print()
        return 0

    except Exception as e:
        logger.error(f"Step narration failed: {e}", exc_info=True)
        print(f"\n❌ Step narration failed: {e}\n")
        return 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the research API server."""
    try:
        import uvicorn

        from betscope.api.server import app

        _init_logfire(app)

        print("\n=== BetScope Research API ===\n")
        print(f"Version: {__version__}")
        print(f"Listening on http://{args.host}:{args.port}\n")

        uvicorn.run(app, host=args.host, port=args.port)
        return 0

    except KeyboardInterrupt:
        print("\n\nReceived interrupt signal. Shutting down...\n")
        return 0
    except Exception as e:
        logger.error(f"Failed to start server: {e}", exc_info=True)
        print(f"\nFailed to start: {e}\n")
        return 1


def main() -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="BetScope: AI research for prediction markets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"BetScope {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    parser_init = subparsers.add_parser(
        "init",
        help="Initialize data directory and configuration files",
    )
    parser_init.set_defaults(func=cmd_init)

    parser_config = subparsers.add_parser(
        "config",
        help="Display merged configuration",
    )
    parser_config.set_defaults(func=cmd_config)

    parser_events = subparsers.add_parser(
        "events",
        help="List open Kalshi events",
    )
    parser_events.add_argument(
        "--limit",
        type=int,
        default=20,
        help="Number of events to list",
    )
    parser_events.set_defaults(func=cmd_events)

    parser_hot = subparsers.add_parser(
        "hot",
        help="Show top events by volume (one per category)",
    )
    parser_hot.set_defaults(func=cmd_hot)

    parser_research = subparsers.add_parser(
        "research",
        help="Research a Kalshi event",
    )
    parser_research.add_argument("event_ticker", help="Kalshi event ticker")
    parser_research.add_argument(
        "--no-image-wait",
        action="store_true",
        help="Exit without waiting for the illustrative image",
    )
    parser_research.set_defaults(func=cmd_research)

    parser_steps = subparsers.add_parser(
        "steps",
        help="Print narrated research steps for an event",
    )
    parser_steps.add_argument("event_ticker", help="Kalshi event ticker")
    parser_steps.set_defaults(func=cmd_steps)

    parser_serve = subparsers.add_parser(
        "serve",
        help="Start the research API server",
    )
    parser_serve.add_argument("--host", default="127.0.0.1", help="Bind address")
    parser_serve.add_argument("--port", type=int, default=8000, help="Bind port")
    parser_serve.set_defaults(func=cmd_serve)

    args = parser.parse_args()

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
