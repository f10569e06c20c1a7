"""Unit tests for the cosmetic progress simulator."""

import asyncio

import pytest

from betscope.progress import OVERFLOW_STEPS, ProgressSimulator

STEPS = ["Checking polls...", "Reading news...", "Weighing factors..."]


def test_tick_advances_to_last_step():
    sim = ProgressSimulator(STEPS)

    assert sim.completed == 0
    sim.tick()
    sim.tick()
    assert sim.completed == 2
    assert sim.steps == STEPS


def test_tick_grows_list_from_overflow_pool():
    sim = ProgressSimulator(STEPS)
    for _ in range(2):
        sim.tick()

    sim.tick()

    assert sim.steps == [*STEPS, OVERFLOW_STEPS[0]]
    assert sim.completed == len(STEPS)


def test_cursor_never_decreases_and_stalls_when_pool_is_empty():
    sim = ProgressSimulator(STEPS)
    seen = [sim.completed]
    for _ in range(len(STEPS) + len(OVERFLOW_STEPS) + 5):
        sim.tick()
        seen.append(sim.completed)

    assert seen == sorted(seen)
    assert len(sim.steps) == len(STEPS) + len(OVERFLOW_STEPS)
    assert sim.completed == len(sim.steps) - 1
    assert sim.tick() is False
    assert not sim.done


def test_complete_marks_everything_done():
    sim = ProgressSimulator(STEPS)
    sim.tick()

    sim.complete()

    snapshot = sim.snapshot()
    assert snapshot.done
    assert snapshot.completed == len(STEPS)
    assert [v.status for v in snapshot.views] == ["done", "done", "done"]
    assert sim.tick() is False


def test_snapshot_marks_active_step():
    sim = ProgressSimulator(STEPS)
    sim.tick()

    statuses = [v.status for v in sim.snapshot().views]

    assert statuses == ["done", "active", "pending"]


def test_reset_clears_state():
    sim = ProgressSimulator(STEPS)
    for _ in range(5):
        sim.tick()
    sim.complete()

    sim.reset(["Only step..."])

    assert sim.steps == ["Only step..."]
    assert sim.completed == 0
    assert not sim.done
    sim.tick()
    # Overflow pool is refilled after reset
    assert sim.steps == ["Only step...", OVERFLOW_STEPS[0]]


def test_extend_steps_keeps_cursor_in_range():
    sim = ProgressSimulator(["Gathering data...", "Analyzing context..."])
    sim.tick()

    sim.extend_steps(STEPS)

    assert sim.steps == STEPS
    assert sim.completed == 1


def test_late_narration_after_overflow_never_moves_cursor_back():
    fallback = ["Gathering data...", "Analyzing context...", "Evaluating factors...", "Forming estimate..."]
    narrated = ["Step one...", "Step two...", "Step three...", "Step four...", "Step five..."]
    sim = ProgressSimulator(fallback)
    for _ in range(5):
        sim.tick()
    shown = sim.steps
    before = sim.completed

    sim.extend_steps(narrated)

    assert before == 5
    assert sim.completed == before
    assert sim.steps == shown

    sim.tick()
    assert sim.completed >= before


def test_extend_steps_after_partial_progress_keeps_cursor():
    sim = ProgressSimulator(STEPS)
    sim.tick()
    sim.tick()
    narrated = ["Step one...", "Step two...", "Step three...", "Step four..."]

    sim.extend_steps(narrated)

    assert sim.steps == narrated
    assert sim.completed == 2


def test_on_change_receives_snapshots():
    snapshots = []
    sim = ProgressSimulator(STEPS, on_change=snapshots.append)

    sim.tick()
    sim.complete()

    assert [s.completed for s in snapshots] == [1, 3]
    assert snapshots[-1].done


def test_track_completes_on_success():
    sim = ProgressSimulator(STEPS, tick_seconds=0.01)

    async def work():
        await asyncio.sleep(0.05)
        return "artifact"

    result = asyncio.run(sim.track(work()))

    assert result == "artifact"
    assert sim.done
    assert sim.completed == len(sim.steps)
    assert not sim.running


def test_track_failure_stops_without_completing():
    sim = ProgressSimulator(STEPS, tick_seconds=0.01)

    async def work():
        await asyncio.sleep(0.02)
        raise RuntimeError("generation failed")

    with pytest.raises(RuntimeError):
        asyncio.run(sim.track(work()))

    assert not sim.done
    assert not sim.running
    assert sim.completed < len(sim.steps)
