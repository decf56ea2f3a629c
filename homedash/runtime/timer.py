"""Work/break countdown cycle (focus timer)."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from ..core.notifications import Notification, NotificationSink


logger = logging.getLogger("homedash.timer")

WORK_SECONDS = 25 * 60
BREAK_SECONDS = 5 * 60


class Phase(str, Enum):
    WORK = "work"
    BREAK = "break"


@dataclass(slots=True)
class TimerState:
    phase: Phase = Phase.WORK
    remaining_seconds: int = WORK_SECONDS
    active: bool = False


PHASE_COMPLETE_MESSAGES = {
    Phase.WORK: "Pomodoro session complete!",
    Phase.BREAK: "Break time is over!",
}


class TimerEngine:
    """Two-phase countdown state machine.

    The engine is purely synchronous: ``tick()`` is driven once per second by
    a :class:`TimerRunner` (or by tests). When the remaining time reaches
    zero the completed phase is announced, the phase flips and the counter
    is reset to the new phase's duration. ``active`` is left as it was
    unless ``pause_on_phase_end`` is set.
    """

    def __init__(
        self,
        *,
        work_seconds: int = WORK_SECONDS,
        break_seconds: int = BREAK_SECONDS,
        notifications: NotificationSink | None = None,
        pause_on_phase_end: bool = False,
        on_change: Optional[Callable[[TimerState], None]] = None,
    ) -> None:
        if work_seconds <= 0 or break_seconds <= 0:
            raise ValueError("Phase durations must be positive")
        self.durations = {Phase.WORK: int(work_seconds), Phase.BREAK: int(break_seconds)}
        self.notifications = notifications
        self.pause_on_phase_end = pause_on_phase_end
        self.on_change = on_change
        self.state = TimerState(phase=Phase.WORK, remaining_seconds=self.durations[Phase.WORK])

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def remaining_seconds(self) -> int:
        return self.state.remaining_seconds

    @property
    def active(self) -> bool:
        return self.state.active

    def duration(self, phase: Phase | None = None) -> int:
        return self.durations[phase or self.state.phase]

    def tick(self) -> None:
        state = self.state
        if not state.active or state.remaining_seconds <= 0:
            return
        state.remaining_seconds -= 1
        if state.remaining_seconds == 0:
            self._complete_phase()
        self._changed()

    def toggle(self) -> None:
        self.state.active = not self.state.active
        self._changed()

    def reset(self) -> None:
        self.state.active = False
        self.state.remaining_seconds = self.duration()
        self._changed()

    @property
    def progress(self) -> float:
        total = self.duration()
        return (total - self.state.remaining_seconds) / total

    @property
    def formatted(self) -> str:
        minutes, seconds = divmod(self.state.remaining_seconds, 60)
        return f"{minutes:02d}:{seconds:02d}"

    def _complete_phase(self) -> None:
        finished = self.state.phase
        if self.notifications is not None:
            try:
                self.notifications.notify(
                    Notification(title="Focus timer", message=PHASE_COMPLETE_MESSAGES[finished], level="success")
                )
            except Exception:
                logger.exception("Phase notification failed")
        following = Phase.BREAK if finished is Phase.WORK else Phase.WORK
        self.state.phase = following
        self.state.remaining_seconds = self.durations[following]
        if self.pause_on_phase_end:
            self.state.active = False
        logger.info("Phase %s complete, entering %s", finished.value, following.value)

    def _changed(self) -> None:
        if self.on_change:
            try:
                self.on_change(self.state)
            except Exception:
                logger.exception("Timer change callback failed")


class TimerRunner:
    """Drive a :class:`TimerEngine` with one tick per second on the running loop."""

    def __init__(self, engine: TimerEngine, *, interval: float = 1.0) -> None:
        self.engine = engine
        self.interval = interval
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def toggle(self) -> None:
        self.engine.toggle()
        if self.engine.active:
            self._schedule()
        else:
            self.cancel()

    def reset(self) -> None:
        self.cancel()
        self.engine.reset()

    def cancel(self) -> None:
        """Drop any pending tick (reset or unmount)."""
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def close(self) -> None:
        task = self._task
        self.cancel()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def _schedule(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())

    async def _loop(self) -> None:
        while self.engine.active:
            await asyncio.sleep(self.interval)
            self.engine.tick()
        self._task = None
