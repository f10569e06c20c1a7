"""Unit tests for the memory, disk and authoritative cache tiers."""

from datetime import datetime, timedelta, timezone

from betscope.cache import CacheEntry, DiskCacheTier, MemoryCacheTier, ResearchStore
from fakes import make_artifact

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def fixed_clock(moment: datetime = NOW):
    return lambda: moment


def entry_for(key: str, validity_hours: int = 24, created_at: datetime = NOW, **fields):
    return CacheEntry.create(
        key=key,
        validity_hours=validity_hours,
        now=created_at,
        **fields,
    )


def test_cache_entry_expiry_window():
    entry = entry_for("ALPHA", validity_hours=6, artifact=make_artifact())
    assert entry.expires_at == NOW + timedelta(hours=6)
    assert entry.is_fresh(NOW + timedelta(hours=5, minutes=59))
    assert not entry.is_fresh(NOW + timedelta(hours=6))


def test_store_expired_row_is_a_miss_but_still_present(tmp_path):
    store = ResearchStore(tmp_path, clock=fixed_clock())
    stale = entry_for(
        "ALPHA",
        validity_hours=1,
        created_at=NOW - timedelta(hours=1, seconds=1),
        artifact=make_artifact(),
    )
    store.put("ALPHA", stale)

    assert store.lookup("ALPHA") is None
    assert store.read_raw("ALPHA") == stale


def test_store_put_is_an_upsert(tmp_path):
    store = ResearchStore(tmp_path, clock=fixed_clock())
    store.put("ALPHA", entry_for("ALPHA", artifact=make_artifact(0.2)))
    store.put("ALPHA", entry_for("ALPHA", artifact=make_artifact(0.8)))

    assert store.lookup("ALPHA").artifact.probability.estimate == 0.8
    assert len(list(tmp_path.glob("*.json"))) == 1


def test_store_patch_missing_row_is_a_noop(tmp_path):
    store = ResearchStore(tmp_path, clock=fixed_clock())
    assert store.patch("MISSING", lambda e: e.model_copy(update={"steps": ["x"]})) is None
    assert store.read_raw("MISSING") is None


def test_store_patch_applies_to_stale_rows(tmp_path):
    store = ResearchStore(tmp_path, clock=fixed_clock())
    stale = entry_for("ALPHA", validity_hours=1, created_at=NOW - timedelta(days=2))
    store.put("ALPHA", stale)

    patched = store.patch("ALPHA", lambda e: e.model_copy(update={"steps": ["Reading..."]}))

    assert patched.steps == ["Reading..."]
    assert store.read_raw("ALPHA").steps == ["Reading..."]
    assert store.read_raw("ALPHA").expires_at == stale.expires_at


def test_lookup_steps_ignores_freshness_and_artifact(tmp_path):
    store = ResearchStore(tmp_path, clock=fixed_clock())
    store.put(
        "ALPHA",
        entry_for("ALPHA", validity_hours=1, created_at=NOW - timedelta(days=3), steps=["a", "b"]),
    )
    store.put("BETA", entry_for("BETA", artifact=make_artifact()))

    assert store.lookup_steps("ALPHA") == ["a", "b"]
    assert store.lookup_steps("BETA") is None
    assert store.lookup_steps("GAMMA") is None


def test_file_tier_sanitizes_keys_without_collisions(tmp_path):
    tier = DiskCacheTier(tmp_path, clock=fixed_clock())
    tier.put("A/B", entry_for("A/B", steps=["slash"]))
    tier.put("A_B", entry_for("A_B", steps=["underscore"]))

    assert tier.lookup("A/B").steps == ["slash"]
    assert tier.lookup("A_B").steps == ["underscore"]
    assert all(p.parent == tmp_path for p in tmp_path.glob("*.json"))


def test_file_tier_unreadable_row_is_a_miss(tmp_path):
    tier = DiskCacheTier(tmp_path, clock=fixed_clock())
    tier.put("ALPHA", entry_for("ALPHA", artifact=make_artifact()))
    (tmp_path / "ALPHA.json").write_text("{not json", encoding="utf-8")

    assert tier.lookup("ALPHA") is None


def test_file_tier_leaves_no_temp_files(tmp_path):
    tier = DiskCacheTier(tmp_path, clock=fixed_clock())
    for i in range(3):
        tier.put("ALPHA", entry_for("ALPHA", steps=[f"step {i}"]))

    assert [p.name for p in tmp_path.iterdir()] == ["ALPHA.json"]


def test_memory_tier_returns_copies():
    tier = MemoryCacheTier(clock=fixed_clock())
    tier.put("ALPHA", entry_for("ALPHA", steps=["one"]))

    copy = tier.lookup("ALPHA")
    copy.steps.append("mutated")

    assert tier.lookup("ALPHA").steps == ["one"]


def test_memory_tier_expiry_and_clear():
    tier = MemoryCacheTier(clock=fixed_clock(NOW + timedelta(hours=25)))
    tier.put("ALPHA", entry_for("ALPHA", artifact=make_artifact()))

    assert tier.lookup("ALPHA") is None
    assert tier.read_raw("ALPHA") is not None

    tier.clear()
    assert len(tier) == 0
