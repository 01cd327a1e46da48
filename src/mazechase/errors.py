"""Error taxonomy for the game core.

Only configuration problems are raised to callers.  Spawn exhaustion
degrades to a fallback, racing triggers are absorbed by latches, and stale
timer callbacks are silent no-ops, so none of those have exception types.
"""

from __future__ import annotations


class MazeChaseError(Exception):
    """Base class for all errors raised by the game core."""


class ConfigurationError(MazeChaseError, ValueError):
    """Invalid or inconsistent session configuration (fatal at startup)."""
