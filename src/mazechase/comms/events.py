"""Boundary events — the closed, typed set of everything core tells the host.

Every event is a frozen dataclass with a class-level ``type`` string.  The
host either matches on the class (``isinstance(ev, SessionEnded)``) or on
``ev.type`` after ``to_dict()``, which produces the same
``{"type": ..., "data": {...}}`` envelope the EventBus has always used.

Cardinality per session:
  - SessionReady          once, end of intro setup
  - SessionEnded          exactly once
  - PursuerSpawned        at most once
  - EncroachmentContained at most once
  - everything else       on every occurrence

Audio and camera are external collaborators too; the core never holds a
sound device or camera, it emits SoundCue / CameraCue and the host acts.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import ClassVar, Union


class Outcome(str, Enum):
    GAME_OVER = "game_over"
    VICTORY = "victory"


def _plain(value: object) -> object:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (tuple, list)):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {str(_plain(k)): _plain(v) for k, v in value.items()}
    return value


@dataclass(frozen=True)
class _Event:
    type: ClassVar[str] = "event"

    def to_dict(self) -> dict:
        msg: dict = {"type": self.type}
        data = {f.name: _plain(getattr(self, f.name)) for f in fields(self)}
        if data:
            msg["data"] = data
        return msg


@dataclass(frozen=True)
class SessionReady(_Event):
    type: ClassVar[str] = "session_ready"


@dataclass(frozen=True)
class PhaseChanged(_Event):
    type: ClassVar[str] = "phase_changed"

    phase: str
    previous: str


@dataclass(frozen=True)
class JumpResourceChanged(_Event):
    type: ClassVar[str] = "jump_resource_changed"

    count: int


@dataclass(frozen=True)
class HealthDelta(_Event):
    type: ClassVar[str] = "health_delta"

    amount: int  # signed: negative = drain, positive = heal


@dataclass(frozen=True)
class ItemCollected(_Event):
    type: ClassVar[str] = "item_collected"

    kind: str
    count: int
    cell: tuple[int, int] = (0, 0)


@dataclass(frozen=True)
class SessionEnded(_Event):
    type: ClassVar[str] = "session_ended"

    outcome: Outcome
    time_ms: int
    counts: dict = field(default_factory=dict)
    cause: str = ""


@dataclass(frozen=True)
class CameraCue(_Event):
    type: ClassVar[str] = "camera_cue"

    action: str  # "follow", "pan"
    x: float
    y: float
    duration: float = 0.0
    zoom: float | None = None


@dataclass(frozen=True)
class SoundCue(_Event):
    type: ClassVar[str] = "sound_cue"

    name: str
    stop: bool = False


@dataclass(frozen=True)
class PursuerSpawned(_Event):
    type: ClassVar[str] = "pursuer_spawned"

    x: float
    y: float
    fallback: bool = False


@dataclass(frozen=True)
class FrontAdvanced(_Event):
    type: ClassVar[str] = "front_advanced"

    direction: str
    progress: int
    cells: tuple[tuple[int, int], ...] = ()


@dataclass(frozen=True)
class WallsCleared(_Event):
    type: ClassVar[str] = "walls_cleared"

    cells: tuple[tuple[int, int], ...] = ()


@dataclass(frozen=True)
class StructuresCommitted(_Event):
    type: ClassVar[str] = "structures_committed"

    direction: str
    cells: tuple[tuple[int, int], ...] = ()


@dataclass(frozen=True)
class EncroachmentContained(_Event):
    type: ClassVar[str] = "encroachment_contained"


SessionEvent = Union[
    SessionReady,
    PhaseChanged,
    JumpResourceChanged,
    HealthDelta,
    ItemCollected,
    SessionEnded,
    CameraCue,
    SoundCue,
    PursuerSpawned,
    FrontAdvanced,
    WallsCleared,
    StructuresCommitted,
    EncroachmentContained,
]

EVENT_TYPES: tuple[type, ...] = SessionEvent.__args__
