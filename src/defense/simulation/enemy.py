"""Enemy — a path walker driven by elapsed time.

States: traveling -> reached_end | dead (both terminal).

The entity only changes its own health/progress.  Gold, score and lives
are credited by the SimulationEngine, which uses ``bounty_awarded`` to
guarantee each death pays out exactly once.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass

from defense.units import get_enemy_type

from .path import PathModel, Point


@dataclass
class Enemy:
    """A single enemy on the path."""

    enemy_id: str
    kind: str
    health: float
    max_health: float
    speed: float  # progress units per ms
    bounty: int
    progress: float = 0.0
    position: Point = (0.0, 0.0)
    alive: bool = True
    reached_end: bool = False
    bounty_awarded: bool = False

    @classmethod
    def spawn(cls, kind: str, path: PathModel, health_mult: float = 1.0) -> Enemy:
        """Create a fresh enemy of *kind* at the path start.

        Raises KeyError for an unknown kind; wave tables are static data
        so this is a configuration error, not a gameplay one.
        """
        etype = get_enemy_type(kind)
        if etype is None:
            raise KeyError(f"unknown enemy kind: {kind}")
        hp = math.floor(etype.stats.health * health_mult)
        return cls(
            enemy_id=f"{kind}-{uuid.uuid4().hex[:8]}",
            kind=kind,
            health=hp,
            max_health=hp,
            speed=etype.stats.speed,
            bounty=etype.stats.bounty,
            position=path.position_at_progress(0.0),
        )

    @property
    def is_active(self) -> bool:
        """Alive and still walking -- a valid target and a wave blocker."""
        return self.alive and not self.reached_end

    @property
    def killed(self) -> bool:
        """Dead by damage (as opposed to removed after escaping)."""
        return not self.alive and self.health <= 0

    @property
    def health_fraction(self) -> float:
        if self.max_health <= 0:
            return 0.0
        return self.health / self.max_health

    def update(self, dt: float, path: PathModel) -> None:
        if not self.is_active:
            return
        self.progress += self.speed * dt
        if self.progress >= 1.0:
            self.progress = 1.0
            self.reached_end = True
        self.position = path.position_at_progress(self.progress)

    def apply_damage(self, amount: float) -> bool:
        """Subtract *amount* of health.  Returns True if this hit killed it."""
        if not self.alive:
            return False
        self.health -= amount
        if self.health <= 0:
            self.health = 0
            self.alive = False
            return True
        return False

    def to_dict(self) -> dict:
        return {
            "id": self.enemy_id,
            "kind": self.kind,
            "position": {"x": self.position[0], "y": self.position[1]},
            "progress": self.progress,
            "health": self.health,
            "max_health": self.max_health,
            "health_fraction": self.health_fraction,
            "alive": self.alive,
            "reached_end": self.reached_end,
        }
