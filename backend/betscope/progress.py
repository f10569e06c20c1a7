"""Progress Simulator: a cosmetic, cooperative timer over narrated steps.

Two independent signals drive the display:

- the timer, which advances the completed-count cursor every tick but never
  past the last step on its own (it grows the list from the overflow pool
  instead of stalling), and
- the completion flag, set from outside when the real artifact arrives,
  which jumps the cursor to the end immediately.

Nothing here reflects real generation progress.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Literal, TypeVar

from pydantic import BaseModel

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TICK_SECONDS = 2.0

OVERFLOW_STEPS = (
    "Analyzing historical data...",
    "Reviewing recent developments...",
    "Checking statistical patterns...",
    "Evaluating expert predictions...",
    "Assessing market conditions...",
    "Cross-referencing sources...",
    "Calculating probability model...",
    "Compiling research findings...",
)

StepStatus = Literal["done", "active", "pending"]


class StepView(BaseModel):
    text: str
    status: StepStatus


class ProgressSnapshot(BaseModel):
    steps: list[str]
    completed: int
    done: bool

    @property
    def views(self) -> list[StepView]:
        views = []
        for i, text in enumerate(self.steps):
            if i < self.completed:
                status: StepStatus = "done"
            elif i == self.completed and not self.done:
                status = "active"
            else:
                status = "pending"
            views.append(StepView(text=text, status=status))
        return views

    def render(self) -> str:
        markers = {"done": "✓", "active": "▸", "pending": "○"}
        return "\n".join(f"{markers[v.status]} {v.text}" for v in self.views)


class ProgressSimulator:
    """State machine plus an optional asyncio timer task.

    ``tick()`` and ``complete()`` are plain methods so the state machine can
    be driven directly; ``start()`` runs them from a timer.
    """

    def __init__(
        self,
        steps: Sequence[str] = (),
        tick_seconds: float = DEFAULT_TICK_SECONDS,
        overflow: Sequence[str] = OVERFLOW_STEPS,
        on_change: Callable[[ProgressSnapshot], None] | None = None,
    ):
        self.tick_seconds = tick_seconds
        self.on_change = on_change
        self._overflow_source = tuple(overflow)
        self._timer: asyncio.Task | None = None
        self._load(steps)

    def _load(self, steps: Sequence[str]) -> None:
        self._steps: list[str] = list(steps)
        self._completed = 0
        self._overflow: list[str] = list(self._overflow_source)
        self._done = False

    @property
    def steps(self) -> list[str]:
        return list(self._steps)

    @property
    def completed(self) -> int:
        return self._completed

    @property
    def done(self) -> bool:
        return self._done

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(
            steps=list(self._steps), completed=self._completed, done=self._done
        )

    def _notify(self) -> None:
        if self.on_change is not None:
            self.on_change(self.snapshot())

    # ------------------------------------------------------------------
    # State transitions
    # ------------------------------------------------------------------

    def tick(self) -> bool:
        """Advance one step. Returns False when nothing changed."""
        if self._done:
            return False

        last_index = len(self._steps) - 1
        if self._completed < last_index:
            self._completed += 1
        elif self._overflow:
            self._steps.append(self._overflow.pop(0))
            self._completed = len(self._steps) - 1
        else:
            return False

        self._notify()
        return True

    def complete(self) -> None:
        """Real work finished: mark every step done regardless of elapsed ticks."""
        if self._done:
            return
        self._done = True
        self._completed = len(self._steps)
        self.stop()
        self._notify()

    def reset(self, steps: Sequence[str] = ()) -> None:
        """Cancel the timer and start over with a new step list."""
        self.stop()
        self._load(steps)
        self._notify()

    def extend_steps(self, steps: Sequence[str]) -> None:
        """Swap in narrated steps that arrived after the timer started.

        The cursor never moves back: once it has reached the end of the
        narrated list, the steps on screen are kept as they are.
        """
        if self._done or len(steps) <= self._completed:
            return
        self._steps = list(steps)
        self._notify()

    # ------------------------------------------------------------------
    # Timer
    # ------------------------------------------------------------------

    async def _run(self) -> None:
        while not self._done:
            await asyncio.sleep(self.tick_seconds)
            self.tick()

    def start(self) -> asyncio.Task:
        if not self.running:
            self._timer = asyncio.create_task(self._run())
        return self._timer

    def stop(self) -> None:
        if self._timer is not None:
            if self._timer is not asyncio.current_task():
                self._timer.cancel()
            self._timer = None

    async def track(self, work: Awaitable[T]) -> T:
        """Run the timer while awaiting real work; complete when it succeeds.

        On failure the timer stops without completing and the error propagates.
        """
        self.start()
        try:
            result = await work
        except BaseException:
            self.stop()
            raise
        self.complete()
        return result
