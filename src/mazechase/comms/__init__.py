"""Host boundary — typed events and the EventBus that carries them."""

from .event_bus import EventBus
from .events import (
    CameraCue,
    EncroachmentContained,
    FrontAdvanced,
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
    StructuresCommitted,
    WallsCleared,
)

__all__ = [
    "EventBus",
    "SessionEvent",
    "Outcome",
    "SessionReady",
    "PhaseChanged",
    "JumpResourceChanged",
    "HealthDelta",
    "ItemCollected",
    "SessionEnded",
    "CameraCue",
    "SoundCue",
    "PursuerSpawned",
    "FrontAdvanced",
    "WallsCleared",
    "StructuresCommitted",
    "EncroachmentContained",
]
