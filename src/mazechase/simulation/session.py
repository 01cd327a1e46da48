"""SessionController — the per-session state machine.

Architecture
------------
One SessionController runs one play session through a linear state
machine:

  idle -> intro -> playing <-> paused -> game_over | victory

  - ``start()``           idle -> intro: build the world, run the intro pans
  - intro sequence done   intro -> playing (or ``complete_intro()``)
  - ``pause()/resume()``  intro|playing <-> paused
  - breach / pursuer contact / ``report_health_exhausted()``  -> game_over
  - player overlaps goal  -> victory

game_over and victory are terminal.  Several triggers can land inside one
tick (a commit breach fired by the scheduler, then pursuer contact found
by the collision pass, then a host health report), so a single ``_ended``
latch guards both terminal phases: the first trigger wins and every later
one is a no-op.

Tick order
----------
``tick(dt)`` is one deterministic pass:

  1. player kinematics and pursuer AI (playing only)
  2. ``Scheduler.advance(dt)``: front steps, commits, health drain,
     activation delays, scripted sequences
  3. collisions: pickups, goal, pursuer contact (playing only)

Goal is tested before pursuer contact, so a tick in which the player
reaches the goal while touched by the pursuer is a victory.

Timing
------
All session time is scheduler time.  The clock is frozen while paused, so
``time_ms`` (measured from intro completion) excludes pauses and every
pending delay resumes with exactly the time it had left.

Events
------
The controller is the only publisher on the EventBus.  The encroachment
engine hands its events to ``_emit``; after teardown ``_emit`` drops
everything.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from loguru import logger

from mazechase.comms.events import (
    CameraCue,
    EncroachmentContained,
    HealthDelta,
    ItemCollected,
    JumpResourceChanged,
    Outcome,
    PhaseChanged,
    PursuerSpawned,
    SessionEnded,
    SessionEvent,
    SessionReady,
    SoundCue,
)

from .encroachment import EncroachmentEngine
from .geometry import AABB, PositionKey, cell_box, cell_center, neighbour_keys, position_key
from .kinematics import Player, start_player_jump, step_player
from .maze import Grid, MazeGenerator
from .pickups import Pickup, PickupField, PickupKind
from .pursuer import PursuerAI
from .scheduler import Scheduler, Sequence, Timer

if TYPE_CHECKING:
    from mazechase.comms.event_bus import EventBus
    from mazechase.config import Settings


class SessionPhase(str, Enum):
    IDLE = "idle"
    INTRO = "intro"
    PLAYING = "playing"
    PAUSED = "paused"
    GAME_OVER = "game_over"
    VICTORY = "victory"


TERMINAL_PHASES = frozenset({SessionPhase.GAME_OVER, SessionPhase.VICTORY})


@dataclass
class SessionContext:
    """Session-scoped counters and timestamps.  Dies with the session."""

    counts: dict[str, int] = field(
        default_factory=lambda: {kind.value: 0 for kind in PickupKind}
    )
    intro_completed_at: float | None = None
    ended_at: float | None = None
    cause: str = ""

    def bump(self, kind: PickupKind) -> int:
        self.counts[kind.value] += 1
        return self.counts[kind.value]


@dataclass
class Goal:
    x: float
    y: float
    size: float

    def bounds(self) -> AABB:
        return AABB.from_center(self.x, self.y, self.size)


class SessionController:
    """One play session: world, actors, timers and the phase machine."""

    def __init__(
        self,
        settings: Settings,
        bus: EventBus,
        rng: random.Random | None = None,
    ) -> None:
        self._settings = settings
        self._bus = bus
        self._rng = rng or random.Random(settings.seed)
        self.scheduler = Scheduler()

        self.phase: SessionPhase = SessionPhase.IDLE
        self._paused_from: SessionPhase | None = None
        self.context = SessionContext()

        self.grid: Grid | None = None
        self.walls: set[PositionKey] = set()
        self.player: Player | None = None
        self.goal: Goal | None = None
        self.pickups: PickupField | None = None
        self.engine: EncroachmentEngine | None = None
        self.pursuer_ai: PursuerAI | None = None

        self._intro: Sequence | None = None
        self._drain: Timer | None = None
        self._ended = False
        self._torn_down = False

    # -- Public interface -------------------------------------------------------

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def torn_down(self) -> bool:
        return self._torn_down

    def start(self) -> None:
        """Idle -> intro.  Builds the world and starts the intro pans."""
        if self.phase != SessionPhase.IDLE or self._torn_down:
            logger.debug(f"start() ignored in phase {self.phase.value}")
            return
        s = self._settings
        unit = s.tile_unit

        self.grid = MazeGenerator(self._rng).generate(s.maze_size)
        self.walls = set(self.grid.wall_cells())
        px, py = cell_center(*self.grid.start, unit)
        self.player = Player(px, py, s.player_size)
        gx, gy = cell_center(*self.grid.center, unit)
        self.goal = Goal(gx, gy, s.goal_size)
        self.pickups = PickupField.scatter(self.grid, s, self._rng)

        logger.info(
            f"Session starting: {self.grid!r}, {len(self.walls)} wall bodies, "
            f"{self.pickups.count(PickupKind.FISH)} fish, "
            f"{self.pickups.count(PickupKind.MILK)} milk"
        )
        self._set_phase(SessionPhase.INTRO)
        self._emit(CameraCue("follow", px, py))
        self._emit(SessionReady())

        self._intro = Sequence(
            self.scheduler,
            [
                (s.intro_pan_delay,
                 lambda: self._emit(CameraCue("pan", gx, gy, s.intro_pan_duration))),
                (s.intro_pan_duration + s.intro_hold,
                 lambda: self._emit(CameraCue("pan", *self.player.position,
                                              s.intro_return_duration))),
                (s.intro_return_duration,
                 lambda: self._emit(CameraCue("follow", *self.player.position))),
            ],
            owner=self,
            on_complete=self.complete_intro,
            name="intro",
        ).start()

    def complete_intro(self) -> None:
        """Intro -> playing.  Called by the intro sequence or by the host
        to skip the pans."""
        if self.phase != SessionPhase.INTRO:
            logger.debug(f"complete_intro() ignored in phase {self.phase.value}")
            return
        if self._intro is not None:
            self._intro.cancel()
            self._intro = None
        s = self._settings
        self.context.intro_completed_at = self.scheduler.now
        self._set_phase(SessionPhase.PLAYING)

        self._drain = self.scheduler.call_every(
            s.health_drain_interval, self._drain_health, owner=self, name="health-drain",
        )
        self.scheduler.call_later(
            s.front_delay, self._begin_encroachment, owner=self, name="encroachment-delay",
        )
        self.scheduler.call_later(
            s.pursuer_delay, self._spawn_pursuer, owner=self, name="pursuer-delay",
        )
        logger.info(
            f"Intro complete at t={self.scheduler.now:.2f}s: fronts in {s.front_delay}s, "
            f"pursuer in {s.pursuer_delay}s"
        )

    def pause(self) -> None:
        if self.phase not in (SessionPhase.INTRO, SessionPhase.PLAYING):
            logger.debug(f"pause() ignored in phase {self.phase.value}")
            return
        self._paused_from = self.phase
        self.scheduler.pause()
        self._set_phase(SessionPhase.PAUSED)

    def resume(self) -> None:
        if self.phase != SessionPhase.PAUSED or self._paused_from is None:
            logger.debug(f"resume() ignored in phase {self.phase.value}")
            return
        phase, self._paused_from = self._paused_from, None
        self.scheduler.resume()
        self._set_phase(phase)

    def report_health_exhausted(self) -> None:
        """Host-owned health crossed the loss threshold."""
        if self.phase != SessionPhase.PLAYING:
            logger.debug(f"report_health_exhausted() ignored in phase {self.phase.value}")
            return
        self._end(Outcome.GAME_OVER, "health")

    def set_player_input(self, dx: float, dy: float) -> None:
        if self.player is None:
            return
        self.player.input_x = float(dx)
        self.player.input_y = float(dy)

    def request_jump(self) -> bool:
        """Spend one jump resource.  Returns True when a jump started."""
        if self.phase != SessionPhase.PLAYING or self.player is None:
            return False
        s = self._settings
        if not start_player_jump(
            self.player,
            s.player_jump_distance,
            s.player_jump_height,
            s.player_jump_duration,
            s.world_size,
        ):
            return False
        self._emit(JumpResourceChanged(self.player.jump_count))
        self._emit(SoundCue("jump"))
        return True

    def tick(self, dt: float) -> None:
        """Advance the session by ``dt`` seconds of simulation time."""
        if self._torn_down or dt <= 0:
            return
        if self.phase in (SessionPhase.IDLE, SessionPhase.PAUSED):
            return

        if self.phase == SessionPhase.PLAYING:
            s = self._settings
            step_player(self.player, dt, s.player_speed, self._blockers, s.world_size)
            if self.pursuer_ai is not None:
                self.pursuer_ai.set_target(self.player.position)
                self.pursuer_ai.update(dt)

        self.scheduler.advance(dt)

        if self.phase == SessionPhase.PLAYING:
            self._check_collisions()

    def elapsed_ms(self) -> int:
        """Play time since intro completion, pauses excluded."""
        start = self.context.intro_completed_at
        if start is None:
            return 0
        end = self.context.ended_at if self.context.ended_at is not None else self.scheduler.now
        return int(round((end - start) * 1000))

    def snapshot(self) -> dict:
        """Serializable session state for the host."""
        return {
            "phase": self.phase.value,
            "time": round(self.scheduler.now, 3),
            "elapsed_ms": self.elapsed_ms(),
            "counts": dict(self.context.counts),
            "player": self.player.to_dict() if self.player else None,
            "pursuer": (
                self.pursuer_ai.pursuer.to_dict()
                if self.pursuer_ai is not None and self.pursuer_ai.pursuer is not None
                else None
            ),
            "encroachment": self.engine.to_telemetry() if self.engine else None,
            "pickups_remaining": len(self.pickups) if self.pickups else 0,
            "ended": self._ended,
        }

    def teardown(self) -> None:
        """Release everything this session owns.  Idempotent."""
        if self._torn_down:
            return
        self.scheduler.cancel_all()
        if self.engine is not None:
            self.engine.stop()
        if self.pursuer_ai is not None:
            self.pursuer_ai.freeze()
        if self._intro is not None:
            self._intro.cancel()
        if self.pickups is not None:
            self.pickups.clear()
        self.engine = None
        self.pursuer_ai = None
        self._intro = None
        self._drain = None
        self.grid = None
        self.walls.clear()
        self._torn_down = True
        logger.debug("Session torn down")

    # -- Activation -------------------------------------------------------------

    def _begin_encroachment(self) -> None:
        if self.phase != SessionPhase.PLAYING or self.grid is None:
            return
        self.engine = EncroachmentEngine(
            self.scheduler, self._settings, self.walls, notify=self._emit,
        )
        self.engine.start(
            self.grid,
            self.player.bounds,
            self.goal.bounds,
            self._on_breach,
            self._on_contained,
        )

    def _spawn_pursuer(self) -> None:
        if self.phase != SessionPhase.PLAYING or self.grid is None:
            return
        s = self._settings
        self.pursuer_ai = PursuerAI(self.grid, self.walls, s, self._rng)
        p = self.pursuer_ai.spawn(self.player.position)
        self.pursuer_ai.set_target(self.player.position)
        self._emit(PursuerSpawned(p.x, p.y, p.fallback))
        self._emit(SoundCue("pursuer_reveal"))

        Sequence(
            self.scheduler,
            [
                (0.0, lambda: self._emit(CameraCue("pan", p.x, p.y, s.reveal_pan_duration))),
                (s.reveal_pan_duration + s.reveal_hold,
                 lambda: self._emit(CameraCue("pan", *self.player.position,
                                              s.reveal_return_duration))),
                (s.reveal_return_duration,
                 lambda: self._emit(CameraCue("follow", *self.player.position))),
            ],
            owner=self,
            name="pursuer-reveal",
        ).start()

    def _drain_health(self) -> None:
        amount = self._settings.health_drain_amount
        if amount > 0:
            self._emit(HealthDelta(-amount))

    def _on_breach(self, reason: str) -> None:
        self._end(Outcome.GAME_OVER, f"encroachment:{reason}")

    def _on_contained(self) -> None:
        self._emit(EncroachmentContained())

    # -- Collisions -------------------------------------------------------------

    def _blockers(self, box: AABB) -> set[PositionKey]:
        """Keys of wall bodies and structures overlapping ``box``."""
        s = self._settings
        unit = s.tile_unit
        hits: set[PositionKey] = set()
        cx, cy = box.center
        for key in neighbour_keys(position_key(cx, cy, unit)):
            if key in self.walls:
                if cell_box(key, unit, s.wall_body_scale).overlaps(box):
                    hits.add(key)
            elif self.engine is not None and self.engine.is_occupied(key):
                if cell_box(key, unit, s.structure_scale).overlaps(box):
                    hits.add(key)
        return hits

    def _check_collisions(self) -> None:
        box = self.player.bounds()
        for pickup in self.pickups.collect(box):
            self._collect(pickup)

        if self.goal.bounds().overlaps(box):
            self._end(Outcome.VICTORY, "goal")
            return
        if self.pursuer_ai is not None and self.pursuer_ai.touches(box):
            self._end(Outcome.GAME_OVER, "pursuer")

    def _collect(self, pickup: Pickup) -> None:
        count = self.context.bump(pickup.kind)
        if pickup.kind == PickupKind.MILK:
            self.player.jump_count += 1
            self._emit(JumpResourceChanged(self.player.jump_count))
        else:
            self._emit(HealthDelta(self._settings.heal_amount))
        self._emit(ItemCollected(pickup.kind.value, count, pickup.cell))
        self._emit(SoundCue(f"collect_{pickup.kind.value}"))

    # -- Terminal transitions ---------------------------------------------------

    def _end(self, outcome: Outcome, cause: str) -> None:
        if self._ended:
            return
        self._ended = True
        self.context.ended_at = self.scheduler.now
        self.context.cause = cause
        time_ms = self.elapsed_ms()

        # Freeze the simulation before anything else can fire
        self.scheduler.cancel_all()
        if self.engine is not None:
            self.engine.stop()
        if self.pursuer_ai is not None:
            self.pursuer_ai.freeze()
        self.player.input_x = self.player.input_y = 0.0

        if outcome == Outcome.VICTORY:
            phase, steps = SessionPhase.VICTORY, self._settings.victory_steps
        else:
            phase, steps = SessionPhase.GAME_OVER, self._settings.game_over_steps
        logger.info(f"Session over: {outcome.value} ({cause}) after {time_ms} ms")
        self._set_phase(phase)
        self._emit(SoundCue("background", stop=True))
        self._emit(SoundCue(outcome.value))

        Sequence(
            self.scheduler,
            [(delay, None) for delay in steps],
            owner=self,
            on_complete=lambda: self._finish(outcome, time_ms),
            name=f"{outcome.value}-transition",
        ).start()

    def _finish(self, outcome: Outcome, time_ms: int) -> None:
        self._emit(SessionEnded(
            outcome=outcome,
            time_ms=time_ms,
            counts=dict(self.context.counts),
            cause=self.context.cause,
        ))
        self.teardown()

    # -- Internal ---------------------------------------------------------------

    def _set_phase(self, phase: SessionPhase) -> None:
        previous = self.phase
        self.phase = phase
        self._emit(PhaseChanged(phase.value, previous.value))

    def _emit(self, event: SessionEvent) -> None:
        if self._torn_down:
            return
        self._bus.publish(event)
