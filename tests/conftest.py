"""Shared fixtures for the mazechase test suite."""

from __future__ import annotations

import random

import pytest

from mazechase.comms.event_bus import EventBus
from mazechase.config import Settings


@pytest.fixture
def settings() -> Settings:
    """Small seeded maze; the pursuer stays away unless a test asks for it."""
    return Settings(maze_size=11, seed=1234, pursuer_delay=1000.0)


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def events(bus: EventBus) -> list:
    """Every event published on ``bus``, in order."""
    received: list = []
    bus.add_listener(received.append)
    return received


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)
