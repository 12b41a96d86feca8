"""Shared fixtures for the defense test suite."""

from __future__ import annotations

import random

import pytest

from defense.app.config import Settings
from defense.comms.event_bus import EventBus
from defense.simulation.engine import SimulationEngine


@pytest.fixture
def settings() -> Settings:
    """Deterministic settings that ignore any local .env file."""
    return Settings(
        _env_file=None,
        viewport_width=1200,
        viewport_height=800,
        path_width=60,
        starting_gold=200,
        starting_lives=20,
        spawn_interval_ms=1000,
        rng_seed=7,
        autostart_loop=False,
    )


@pytest.fixture
def bus() -> EventBus:
    return EventBus(maxsize=1000)


@pytest.fixture
def engine(settings, bus) -> SimulationEngine:
    return SimulationEngine(settings, event_bus=bus, rng=random.Random(7))
