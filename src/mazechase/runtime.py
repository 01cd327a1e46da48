"""SessionRunner — host-facing boundary that owns the current session.

A SessionController serves exactly one play session.  The runner keeps a
single EventBus alive across sessions (so host subscriptions survive a
restart) and implements ``restart()`` by tearing down the current
controller and building a fresh one.  No state crosses that boundary.
"""

from __future__ import annotations

import random

from loguru import logger

from mazechase.comms.event_bus import EventBus
from mazechase.config import Settings
from mazechase.simulation.session import SessionController, SessionPhase


class SessionRunner:
    """Routes host requests to the live SessionController."""

    def __init__(self, settings: Settings | None = None, bus: EventBus | None = None) -> None:
        self.settings = settings or Settings()
        self.bus = bus or EventBus()
        self.session: SessionController | None = None
        self.sessions_started = 0

    def _new_session(self) -> SessionController:
        seed = self.settings.seed
        # Each restart gets its own stream; a seeded runner stays reproducible
        rng = random.Random(None if seed is None else seed + self.sessions_started)
        self.sessions_started += 1
        return SessionController(self.settings, self.bus, rng=rng)

    def start(self) -> SessionController:
        if self.session is not None and not self.session.torn_down:
            logger.debug("start() ignored: a session is already running")
            return self.session
        self.session = self._new_session()
        self.session.start()
        return self.session

    def restart(self) -> SessionController:
        """Discard the current session and start a new one."""
        if self.session is not None:
            logger.info(f"Restarting session (was {self.session.phase.value})")
            self.session.teardown()
        self.session = None
        return self.start()

    @property
    def phase(self) -> SessionPhase | None:
        return self.session.phase if self.session else None

    # -- Host requests ----------------------------------------------------------

    def tick(self, dt: float) -> None:
        if self.session is not None:
            self.session.tick(dt)

    def pause(self) -> None:
        if self.session is not None:
            self.session.pause()

    def resume(self) -> None:
        if self.session is not None:
            self.session.resume()

    def complete_intro(self) -> None:
        if self.session is not None:
            self.session.complete_intro()

    def report_health_exhausted(self) -> None:
        if self.session is not None:
            self.session.report_health_exhausted()

    def set_player_input(self, dx: float, dy: float) -> None:
        if self.session is not None:
            self.session.set_player_input(dx, dy)

    def request_jump(self) -> bool:
        if self.session is None:
            return False
        return self.session.request_jump()

    def snapshot(self) -> dict:
        if self.session is None:
            return {"phase": None}
        return self.session.snapshot()
