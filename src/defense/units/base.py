"""Base classes for the unit type system.

ProjectileMode -- how a tower's shots travel
EnemyStats     -- frozen dataclass for an enemy kind's base profile
TowerStats     -- frozen dataclass for a tower's combat stats at one level
GrowthRule     -- per-level growth fractions for a tower kind
EnemyType      -- base every concrete enemy kind subclasses
TowerType      -- base every concrete tower kind subclasses
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar


class ProjectileMode(Enum):
    """How a tower's projectile reaches its target."""
    HOMING = "homing"        # re-aims at the live target every frame
    BALLISTIC = "ballistic"  # fixed velocity set once at spawn
    INSTANT = "instant"      # damage applied on fire, projectile is visual only


@dataclass(frozen=True)
class EnemyStats:
    """Immutable base profile for an enemy kind (wave 1 values)."""
    health: int
    speed: float   # progress units per millisecond
    bounty: int    # gold awarded on death


@dataclass(frozen=True)
class TowerStats:
    """Combat stats of a tower at a given level."""
    damage: int
    range: float
    fire_interval: float   # ms between shots
    projectile_speed: float  # px per ms
    area_radius: float = 0.0  # 0 = single target


@dataclass(frozen=True)
class GrowthRule:
    """Fractional growth per level above 1.

    ``fire_rate`` divides the fire interval: interval / (1 + levels * fire_rate).
    """
    damage: float = 0.0
    range: float = 0.0
    fire_rate: float = 0.0
    area: float = 0.0


class EnemyType:
    """Abstract base for every enemy kind.

    Subclasses MUST set all ClassVar fields.  The registry discovers
    concrete subclasses automatically at import time.
    """

    type_id: ClassVar[str]
    display_name: ClassVar[str]
    icon: ClassVar[str]
    stats: ClassVar[EnemyStats]

    def __repr__(self) -> str:
        return f"<EnemyType {self.type_id}>"


class TowerType:
    """Abstract base for every tower kind."""

    type_id: ClassVar[str]
    display_name: ClassVar[str]
    icon: ClassVar[str]
    cost: ClassVar[int]
    mode: ClassVar[ProjectileMode]
    base: ClassVar[TowerStats]
    growth: ClassVar[GrowthRule]

    @classmethod
    def is_instant(cls) -> bool:
        return cls.mode is ProjectileMode.INSTANT

    @classmethod
    def is_homing(cls) -> bool:
        return cls.mode is ProjectileMode.HOMING

    def __repr__(self) -> str:
        return f"<TowerType {self.type_id}>"
