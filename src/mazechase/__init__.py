"""Mazechase — pursuit-maze game core.

This package contains the real-time spatial simulation of a top-down
pursuit-maze game: procedural maze generation, the four-sided encroachment
engine, the pursuer AI, and the per-session state machine that reports
game events to a host presentation layer through a typed EventBus.

Rendering, audio, input widgets and persistence live in the host; the core
only talks to them through events.
"""

__version__ = "0.1.0"
