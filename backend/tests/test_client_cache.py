"""Unit tests for the client-side memory and disk tiers in front of the orchestrator."""

import asyncio

from betscope.cache.client import ResearchCacheClient
from betscope.cache.store import ResearchStore
from betscope.research.models import FindingsGroup
from fakes import NARRATED_STEPS, FakeGenerator, FakeNarrator, build_orchestrator, make_request


def test_repeat_requests_are_served_from_memory(store, tmp_path):
    generator = FakeGenerator()
    orchestrator = build_orchestrator(store, generator=generator)
    client = ResearchCacheClient(orchestrator, tmp_path / "client")

    async def run():
        first = await client.get_research(make_request("ALPHA"))
        second = await client.get_research(make_request("ALPHA"))
        await orchestrator.drain()
        return first, second

    first, second = asyncio.run(run())

    assert first == second
    assert generator.calls == ["ALPHA"]
    assert len(client.memory) == 1


def test_disk_hit_is_promoted_to_memory(store, tmp_path):
    generator = FakeGenerator()
    orchestrator = build_orchestrator(store, generator=generator)
    cache_dir = tmp_path / "client"

    async def warm():
        await ResearchCacheClient(orchestrator, cache_dir).get_research(make_request("ALPHA"))
        await orchestrator.drain()

    asyncio.run(warm())

    # New session: empty memory, same disk tier, empty authoritative store
    fresh_generator = FakeGenerator()
    restarted = ResearchCacheClient(
        build_orchestrator(ResearchStore(tmp_path / "other"), generator=fresh_generator),
        cache_dir,
    )

    artifact = asyncio.run(restarted.get_research(make_request("ALPHA")))

    assert artifact.probability.estimate == 0.62
    assert fresh_generator.calls == []
    assert restarted.memory.lookup("ALPHA") is not None


def test_refresh_image_picks_up_patched_image(store, tmp_path):
    orchestrator = build_orchestrator(store)
    client = ResearchCacheClient(orchestrator, tmp_path / "client")

    async def run():
        artifact = await client.get_research(make_request("ALPHA"))
        await orchestrator.drain()
        image_url = await client.refresh_image(make_request("ALPHA"))
        refreshed = await client.get_research(make_request("ALPHA"))
        return artifact, image_url, refreshed

    artifact, image_url, refreshed = asyncio.run(run())

    assert artifact.image_url is None
    assert image_url == "https://images.example.com/fed.png"
    assert refreshed.image_url == image_url
    assert client.disk.lookup("ALPHA").artifact.image_url == image_url


def test_refresh_image_before_synthesis_returns_none(store, tmp_path):
    orchestrator = build_orchestrator(store)
    client = ResearchCacheClient(orchestrator, tmp_path / "client")

    async def run():
        await client.get_research(make_request("ALPHA"))
        image_url = await client.refresh_image(make_request("ALPHA"))
        await orchestrator.drain()
        return image_url

    assert asyncio.run(run()) is None


def test_extend_research_appends_groups(store, tmp_path):
    generator = FakeGenerator()
    generator.extra_groups = [
        FindingsGroup(title="Labor Market", icon="users", confidence="medium", bullets=["x"])
    ]
    orchestrator = build_orchestrator(store, generator=generator)
    client = ResearchCacheClient(orchestrator, tmp_path / "client")

    async def run():
        await client.get_research(make_request("ALPHA"))
        groups = await client.extend_research(make_request("ALPHA"))
        cached = await client.get_research(make_request("ALPHA"))
        await orchestrator.drain()
        return groups, cached

    groups, cached = asyncio.run(run())

    assert [g.title for g in groups] == ["Labor Market"]
    assert generator.extend_calls == [["Recent Data"]]
    assert cached.group_titles == ["Recent Data", "Labor Market"]


def test_get_steps_delegates_on_memory_miss(store, tmp_path):
    orchestrator = build_orchestrator(store)
    client = ResearchCacheClient(orchestrator, tmp_path / "client")

    steps = asyncio.run(client.get_steps(make_request("ALPHA")))

    assert steps == store.lookup_steps("ALPHA")


def test_forget_drops_memory_only(store, tmp_path):
    orchestrator = build_orchestrator(store)
    client = ResearchCacheClient(orchestrator, tmp_path / "client")

    async def run():
        await client.get_research(make_request("ALPHA"))
        await orchestrator.drain()

    asyncio.run(run())
    client.forget()

    assert len(client.memory) == 0
    assert client.disk.lookup("ALPHA") is not None


def test_concurrent_steps_and_research_narrate_once(store, tmp_path):
    narrator = FakeNarrator()
    orchestrator = build_orchestrator(store, narrator=narrator)
    client = ResearchCacheClient(orchestrator, tmp_path / "client")
    request = make_request("ALPHA")

    async def run():
        steps, _ = await asyncio.gather(client.get_steps(request), client.get_research(request))
        await orchestrator.drain()
        return steps

    steps = asyncio.run(run())

    assert narrator.calls == 1
    assert steps == NARRATED_STEPS
    assert store.read_raw("ALPHA").steps == NARRATED_STEPS
