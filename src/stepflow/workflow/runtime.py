"""Step playback runtime.

The runtime is a synchronous state machine over a frozen :class:`Workflow`:

- position: ``AtStep(i)`` for ``i`` in ``0..N-1``
- timer: ``IDLE``, ``RUNNING(remaining)`` or ``EXPIRED``, re-armed on every step entry
- alignment: unaligned, or aligned to an ``active_page`` of the source document

Invalid requests (``next`` on the last step, ``tick`` with no timer, anything after
``exit``) are no-ops rather than errors. :class:`PlaybackSession` adds the
one-second countdown on top.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from stepflow.workflow.models import Step, Workflow

logger = logging.getLogger(__name__)


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    EXPIRED = "expired"


@dataclass(frozen=True, slots=True)
class TimerSnapshot:
    state: TimerState
    remaining: int = 0


@dataclass(frozen=True, slots=True)
class RuntimeSnapshot:
    index: int
    step: Step | None
    step_count: int
    timer: TimerSnapshot
    aligned: bool
    active_page: int | None
    can_next: bool
    can_prev: bool
    exited: bool

    @property
    def progress(self) -> float:
        """Percent of the workflow reached, counting the current step."""

        if self.step_count == 0:
            return 0.0
        return (self.index + 1) / self.step_count * 100


def format_countdown(seconds: int) -> str:
    """Render seconds as ``MM:SS``."""

    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


class StepRuntime:
    """Playback state for one workflow.

    Not thread-safe on its own: one caller applies transitions at a time. Use
    :class:`PlaybackSession` when a background countdown is needed.
    """

    def __init__(self, workflow: Workflow) -> None:
        self._steps: tuple[Step, ...] = ()
        self._index = 0
        self._timer = TimerSnapshot(TimerState.IDLE)
        self._aligned = False
        self._active_page: int | None = None
        self._exited = False
        self._reset(workflow)

    # -- state ---------------------------------------------------------------

    @property
    def index(self) -> int:
        return self._index

    @property
    def current_step(self) -> Step | None:
        if not self._steps:
            return None
        return self._steps[self._index]

    @property
    def timer(self) -> TimerSnapshot:
        return self._timer

    @property
    def aligned(self) -> bool:
        return self._aligned

    @property
    def active_page(self) -> int | None:
        return self._active_page if self._aligned else None

    @property
    def can_next(self) -> bool:
        return not self._exited and self._index < len(self._steps) - 1

    @property
    def can_prev(self) -> bool:
        return not self._exited and self._index > 0

    @property
    def exited(self) -> bool:
        return self._exited

    def snapshot(self) -> RuntimeSnapshot:
        return RuntimeSnapshot(
            index=self._index,
            step=self.current_step,
            step_count=len(self._steps),
            timer=self._timer,
            aligned=self._aligned,
            active_page=self.active_page,
            can_next=self.can_next,
            can_prev=self.can_prev,
            exited=self._exited,
        )

    # -- transitions ---------------------------------------------------------

    def load(self, workflow: Workflow) -> bool:
        if self._exited:
            return False
        self._reset(workflow)
        return True

    def _reset(self, workflow: Workflow) -> None:
        self._steps = tuple(workflow.steps)
        self._aligned = False
        self._active_page = None
        self._exited = False
        self._enter(0)
        logger.debug(
            "Runtime loaded", extra={"workflow_id": workflow.workflow_id, "steps": len(self._steps)}
        )

    def _enter(self, index: int) -> None:
        self._index = index
        step = self.current_step
        if step is not None and step.duration_sec is not None and step.duration_sec > 0:
            self._timer = TimerSnapshot(TimerState.RUNNING, step.duration_sec)
        else:
            self._timer = TimerSnapshot(TimerState.IDLE)

    def next(self) -> bool:
        if not self.can_next:
            return False
        self._enter(self._index + 1)
        return True

    def prev(self) -> bool:
        if not self.can_prev:
            return False
        self._enter(self._index - 1)
        return True

    def tick(self) -> None:
        if self._exited or self._timer.state is not TimerState.RUNNING:
            return
        if self._timer.remaining > 1:
            self._timer = TimerSnapshot(TimerState.RUNNING, self._timer.remaining - 1)
        else:
            self._timer = TimerSnapshot(TimerState.EXPIRED)

    def toggle_align(self) -> bool:
        if self._exited:
            return False
        self._aligned = not self._aligned
        if not self._aligned:
            return True
        current = self.current_step
        if current is not None and current.page is not None:
            self._active_page = current.page
            return True
        first = next((s for s in self._steps if s.page is not None), None)
        if first is not None:
            self._active_page = first.page
        return True

    def select_step(self, target: Step | int) -> bool:
        """Point the document viewer at ``target``'s page while aligned.

        Returns whether ``active_page`` changed.
        """

        if self._exited or not self._aligned:
            return False
        if isinstance(target, Step):
            step: Step | None = target
        elif 0 <= target < len(self._steps):
            step = self._steps[target]
        else:
            step = None
        if step is None or step.page is None or step.page == self._active_page:
            return False
        self._active_page = step.page
        return True

    def exit(self) -> None:
        self._exited = True
        self._steps = ()
        self._index = 0
        self._timer = TimerSnapshot(TimerState.IDLE)
        self._aligned = False
        self._active_page = None


class PlaybackSession:
    """Drive a :class:`StepRuntime` countdown on a fixed cadence.

    A transition that enters a step replaces the pending tick with a fresh one,
    armed only while the timer is running, so no timer outlives the step it was
    started for. Transitions that change nothing leave the pending tick alone.
    A lock serializes ticks with user transitions.

    ``on_change`` runs with the lock held, so snapshots arrive in the order the
    transitions happened. It must not wait on another thread that uses the
    session.
    """

    def __init__(
        self,
        runtime: StepRuntime,
        *,
        interval: float = 1.0,
        on_change: Callable[[RuntimeSnapshot], None] | None = None,
    ) -> None:
        self._runtime = runtime
        self._interval = interval
        self._on_change = on_change
        self._lock = threading.RLock()
        self._pending: threading.Timer | None = None
        self._closed = False
        self._arm()

    @property
    def runtime(self) -> StepRuntime:
        return self._runtime

    @property
    def ticking(self) -> bool:
        with self._lock:
            return self._pending is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> RuntimeSnapshot:
        with self._lock:
            return self._runtime.snapshot()

    def _cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _arm(self) -> None:
        self._cancel()
        if self._closed or self._runtime.timer.state is not TimerState.RUNNING:
            return
        timer = threading.Timer(self._interval, self._fire)
        timer.daemon = True
        self._pending = timer
        timer.start()

    def _fire(self) -> None:
        with self._lock:
            if self._closed or threading.current_thread() is not self._pending:
                return
            self._pending = None
            self._runtime.tick()
            self._arm()
            self._notify(self._runtime.snapshot())

    def _notify(self, snapshot: RuntimeSnapshot) -> None:
        if self._on_change is not None:
            self._on_change(snapshot)

    def _apply(self, transition: Callable[[], bool], *, rearm: bool) -> RuntimeSnapshot:
        with self._lock:
            if self._closed:
                return self._runtime.snapshot()
            if not transition():
                return self._runtime.snapshot()
            if rearm:
                self._arm()
            snapshot = self._runtime.snapshot()
            self._notify(snapshot)
            return snapshot

    def next(self) -> RuntimeSnapshot:
        return self._apply(self._runtime.next, rearm=True)

    def prev(self) -> RuntimeSnapshot:
        return self._apply(self._runtime.prev, rearm=True)

    def toggle_align(self) -> RuntimeSnapshot:
        return self._apply(self._runtime.toggle_align, rearm=False)

    def select_step(self, target: Step | int) -> RuntimeSnapshot:
        return self._apply(lambda: self._runtime.select_step(target), rearm=False)

    def load(self, workflow: Workflow) -> RuntimeSnapshot:
        return self._apply(lambda: self._runtime.load(workflow), rearm=True)

    def exit(self) -> RuntimeSnapshot:
        with self._lock:
            self._closed = True
            self._cancel()
            if self._runtime.exited:
                return self._runtime.snapshot()
            self._runtime.exit()
            snapshot = self._runtime.snapshot()
            self._notify(snapshot)
            return snapshot

    def close(self) -> None:
        """Stop ticking. Later transitions are no-ops."""

        with self._lock:
            self._closed = True
            self._cancel()
