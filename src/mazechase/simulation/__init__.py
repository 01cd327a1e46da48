"""Simulation core — maze, encroachment, pursuer and the session state machine."""

from .encroachment import FRONTS, EncroachmentEngine, Front, front_cells
from .geometry import AABB, PositionKey, position_key
from .kinematics import JumpArc, Player
from .maze import OPEN, WALL, Grid, MazeGenerator
from .pickups import Pickup, PickupField, PickupKind
from .pursuer import Pursuer, PursuerAI
from .scheduler import Scheduler, Sequence, Timer
from .session import SessionContext, SessionController, SessionPhase

__all__ = [
    "AABB",
    "PositionKey",
    "position_key",
    "Scheduler",
    "Sequence",
    "Timer",
    "JumpArc",
    "Player",
    "OPEN",
    "WALL",
    "Grid",
    "MazeGenerator",
    "Front",
    "FRONTS",
    "front_cells",
    "EncroachmentEngine",
    "Pursuer",
    "PursuerAI",
    "Pickup",
    "PickupField",
    "PickupKind",
    "SessionContext",
    "SessionController",
    "SessionPhase",
]
