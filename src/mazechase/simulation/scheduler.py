"""Scheduler — single-threaded cooperative timers driven by the session tick.

Architecture
------------
There are no threads.  The host calls ``SessionController.tick(dt)`` and the
session forwards the elapsed time to ``Scheduler.advance(dt)``, which fires
every timer that falls due inside the step.  Timers fire in due-time order
(ties broken by registration order) and the scheduler clock is moved to each
timer's due time before its callback runs, so a callback that schedules a
follow-up timer sees the exact instant it fired at.

Suspension is realized purely as deferred callbacks:

  - ``call_later(delay, cb)``: one-shot
  - ``call_every(interval, cb)``: repeating, first fire one interval out
  - ``Sequence``: a list of (delay, action) steps run serially

Pause / resume:
  ``pause()`` freezes the clock.  Timers keep their due times, so a timer
  paused at 60% elapsed resumes at 60% elapsed.  Nothing is re-armed or
  reset on resume.

Ownership:
  Every timer may carry an ``owner``.  Components tear down with
  ``cancel_owner(self)``; cancelled timers never fire.  Owners still guard
  their own callbacks with a liveness flag because a callback may already
  be executing when its owner is stopped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Sequence as _Seq

from loguru import logger


@dataclass(eq=False)
class Timer:
    """A scheduled callback.  Create via Scheduler, not directly."""

    callback: Callable[[], None]
    due: float
    interval: float | None = None
    owner: object | None = None
    name: str = ""
    seq: int = 0
    cancelled: bool = False
    fired: int = 0

    @property
    def repeating(self) -> bool:
        return self.interval is not None


class Scheduler:
    """Deterministic cooperative timer wheel with a simulated clock."""

    def __init__(self) -> None:
        self.now: float = 0.0
        self._timers: list[Timer] = []
        self._seq = 0
        self._paused = False

    # -- Registration -------------------------------------------------------

    def call_later(
        self,
        delay: float,
        callback: Callable[[], None],
        owner: object | None = None,
        name: str = "",
    ) -> Timer:
        """Fire ``callback`` once, ``delay`` seconds from now."""
        if delay < 0:
            raise ValueError(f"delay must be >= 0, got {delay}")
        return self._add(Timer(callback, self.now + delay, None, owner, name))

    def call_every(
        self,
        interval: float,
        callback: Callable[[], None],
        owner: object | None = None,
        name: str = "",
    ) -> Timer:
        """Fire ``callback`` every ``interval`` seconds, first one interval out."""
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")
        return self._add(Timer(callback, self.now + interval, interval, owner, name))

    def _add(self, timer: Timer) -> Timer:
        self._seq += 1
        timer.seq = self._seq
        self._timers.append(timer)
        return timer

    # -- Cancellation -------------------------------------------------------

    def cancel(self, timer: Timer | None) -> None:
        if timer is None:
            return
        timer.cancelled = True
        try:
            self._timers.remove(timer)
        except ValueError:
            pass

    def cancel_owner(self, owner: object) -> int:
        """Cancel every pending timer registered by ``owner``.  Returns count."""
        doomed = [t for t in self._timers if t.owner is owner]
        for t in doomed:
            self.cancel(t)
        return len(doomed)

    def cancel_all(self) -> None:
        for t in self._timers:
            t.cancelled = True
        self._timers.clear()

    # -- Pause / resume -----------------------------------------------------

    @property
    def paused(self) -> bool:
        return self._paused

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    # -- Queries ------------------------------------------------------------

    def remaining(self, timer: Timer) -> float:
        """Seconds until ``timer`` next fires (frozen while paused)."""
        return max(0.0, timer.due - self.now)

    def pending(self, owner: object | None = None) -> list[Timer]:
        if owner is None:
            return list(self._timers)
        return [t for t in self._timers if t.owner is owner]

    # -- Driving ------------------------------------------------------------

    def advance(self, dt: float) -> None:
        """Move the clock forward by ``dt`` and fire everything that falls due."""
        if self._paused or dt <= 0:
            return
        target = self.now + dt
        while True:
            timer = self._next_due(target)
            if timer is None:
                break
            self.now = max(self.now, timer.due)
            if timer.repeating:
                timer.due += timer.interval
            else:
                self._timers.remove(timer)
            timer.fired += 1
            timer.callback()
            if self._paused:
                # A callback paused the session mid-step; the rest of the
                # step is not simulated.
                return
        self.now = target

    def _next_due(self, target: float) -> Timer | None:
        best: Timer | None = None
        for t in self._timers:
            if t.due > target:
                continue
            if best is None or (t.due, t.seq) < (best.due, best.seq):
                best = t
        return best


class Sequence:
    """Scripted steps run one after another on a Scheduler.

    Each step is ``(delay, action)``: wait ``delay`` seconds, then run
    ``action`` (may be None).  ``on_complete`` runs after the last step.
    Zero delays run synchronously.  Cancelling stops the remaining steps.

    Replaces nested "onComplete" callback chains for camera pans and
    terminal transitions: pausing the scheduler pauses the sequence, and
    cancelling the owner cancels it.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        steps: _Seq[tuple[float, Callable[[], None] | None]],
        owner: object | None = None,
        on_complete: Callable[[], None] | None = None,
        name: str = "sequence",
    ) -> None:
        self._scheduler = scheduler
        self._steps = list(steps)
        self._owner = owner
        self._on_complete = on_complete
        self._name = name
        self._index = 0
        self._timer: Timer | None = None
        self._active = False
        self._done = False

    @property
    def done(self) -> bool:
        return self._done

    @property
    def active(self) -> bool:
        return self._active

    def start(self) -> Sequence:
        if self._active or self._done:
            return self
        self._active = True
        self._schedule_next()
        return self

    def cancel(self) -> None:
        self._active = False
        self._scheduler.cancel(self._timer)
        self._timer = None

    def _schedule_next(self) -> None:
        while self._active:
            if self._index >= len(self._steps):
                self._active = False
                self._done = True
                logger.debug(f"Sequence {self._name} complete")
                if self._on_complete is not None:
                    self._on_complete()
                return
            delay, _action = self._steps[self._index]
            if delay > 0:
                self._timer = self._scheduler.call_later(
                    delay, self._fire, owner=self._owner,
                    name=f"{self._name}[{self._index}]",
                )
                return
            self._run_current()

    def _fire(self) -> None:
        self._timer = None
        if not self._active:
            return
        self._run_current()
        self._schedule_next()

    def _run_current(self) -> None:
        _delay, action = self._steps[self._index]
        self._index += 1
        if action is not None:
            action()
