"""Cosmetic particles spawned by hits, explosions and merges.

Particles never touch gameplay state.  The engine ages and drops them;
the renderer reads ``position``, ``kind``, ``color_seed`` and ``fade``.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass

from .path import Point

PARTICLE_LIFETIME = 500.0  # ms

# (min, max) speed in px/ms by particle kind
_SPEED_RANGES: dict[str, tuple[float, float]] = {
    "explosion": (0.2, 0.4),
    "hit": (0.1, 0.2),
}

HIT_BURST = 5
EXPLOSION_BURST = 12
BEAM_BURST = 3
MERGE_BURST = 20


@dataclass
class Particle:
    position: Point
    velocity: tuple[float, float]
    kind: str = "hit"
    color_seed: float = 0.0
    lifetime: float = PARTICLE_LIFETIME
    age: float = 0.0
    alive: bool = True

    @classmethod
    def emit(cls, point: Point, kind: str, rng: random.Random) -> Particle:
        angle = rng.random() * math.pi * 2
        lo, hi = _SPEED_RANGES.get(kind, _SPEED_RANGES["hit"])
        speed = lo + rng.random() * (hi - lo)
        return cls(
            position=point,
            velocity=(math.cos(angle) * speed, math.sin(angle) * speed),
            kind=kind,
            color_seed=rng.random(),
        )

    @property
    def fade(self) -> float:
        """1.0 when fresh, 0.0 at end of life."""
        return max(0.0, 1.0 - self.age / self.lifetime)

    def update(self, dt: float) -> None:
        self.age += dt
        if self.age >= self.lifetime:
            self.alive = False
            return
        self.position = (
            self.position[0] + self.velocity[0] * dt,
            self.position[1] + self.velocity[1] * dt,
        )

    def to_dict(self) -> dict:
        return {
            "position": {"x": self.position[0], "y": self.position[1]},
            "kind": self.kind,
            "color_seed": self.color_seed,
            "fade": self.fade,
        }


def burst(
    particles: list[Particle],
    point: Point,
    kind: str,
    count: int,
    rng: random.Random,
) -> None:
    """Append *count* particles of *kind* at *point*."""
    for _ in range(count):
        particles.append(Particle.emit(point, kind, rng))
