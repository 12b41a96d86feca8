"""Simulation subsystem — path, entities, towers, waves, and the frame loop."""
from .combat import Projectile, resolve_hit
from .engine import SimulationEngine
from .enemy import Enemy
from .intents import IntentResult, MergeTowers, PlaceTower, RejectionReason, StartWave
from .particles import Particle
from .path import DEFAULT_WAYPOINTS, PathModel, point_to_segment_distance
from .tower import Tower, tower_stats
from .waves import WaveDefinition, WaveDirector, generate_composition

__all__ = [
    "DEFAULT_WAYPOINTS",
    "Enemy",
    "IntentResult",
    "MergeTowers",
    "Particle",
    "PathModel",
    "PlaceTower",
    "Projectile",
    "RejectionReason",
    "SimulationEngine",
    "StartWave",
    "Tower",
    "WaveDefinition",
    "WaveDirector",
    "generate_composition",
    "point_to_segment_distance",
    "resolve_hit",
    "tower_stats",
]
