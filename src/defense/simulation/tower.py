"""Towers — stat derivation, targeting, cooldown, and firing.

Stats are never stored on a Tower.  ``tower_stats(kind, level)`` derives
them from the static base profile and growth rule of the kind, so a
level change (merge) can never leave damage and range out of step.

Targeting policy: every frame the tower picks the living, still-walking
enemy in range that is furthest along the path.  The choice is held as
an enemy ID (``target_id``), never as an object reference, because the
engine may drop that enemy before the tower next looks at it.
"""

from __future__ import annotations

import math
import random
import uuid
from dataclasses import dataclass, field
from functools import lru_cache

from defense.units import get_tower_type
from defense.units.base import ProjectileMode, TowerStats

from .combat import Projectile
from .enemy import Enemy
from .particles import BEAM_BURST, Particle, burst
from .path import Point


@lru_cache(maxsize=None)
def tower_stats(kind: str, level: int) -> TowerStats:
    """Combat stats of a *kind* tower at *level* (pure, floored to ints).

    Raises KeyError for an unknown kind.
    """
    ttype = get_tower_type(kind)
    if ttype is None:
        raise KeyError(f"unknown tower kind: {kind}")
    base, growth = ttype.base, ttype.growth
    bonus = max(level, 1) - 1
    return TowerStats(
        damage=math.floor(base.damage * (1 + bonus * growth.damage)),
        range=math.floor(base.range * (1 + bonus * growth.range)),
        fire_interval=math.floor(base.fire_interval / (1 + bonus * growth.fire_rate)),
        projectile_speed=base.projectile_speed,
        area_radius=math.floor(base.area_radius * (1 + bonus * growth.area)),
    )


@dataclass
class Tower:
    """A placed tower.  Replaced, not mutated, when merged."""

    kind: str
    position: Point
    level: int = 1
    tower_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    target_id: str | None = None
    cooldown: float = 0.0

    @property
    def stats(self) -> TowerStats:
        return tower_stats(self.kind, self.level)

    @property
    def mode(self) -> ProjectileMode:
        return get_tower_type(self.kind).mode

    def distance_to(self, point: Point) -> float:
        return math.hypot(point[0] - self.position[0], point[1] - self.position[1])

    def select_target(self, enemies: dict[str, Enemy]) -> Enemy | None:
        """Furthest-along living enemy within range, or None."""
        reach = self.stats.range
        best: Enemy | None = None
        best_progress = -1.0
        for enemy in enemies.values():
            if not enemy.is_active:
                continue
            if self.distance_to(enemy.position) <= reach and enemy.progress > best_progress:
                best = enemy
                best_progress = enemy.progress
        return best

    def current_target(self, enemies: dict[str, Enemy]) -> Enemy | None:
        """Resolve ``target_id``; a removed or dead enemy reads as no target."""
        if self.target_id is None:
            return None
        enemy = enemies.get(self.target_id)
        if enemy is None or not enemy.alive:
            return None
        return enemy

    def update(
        self,
        dt: float,
        enemies: dict[str, Enemy],
        projectiles: list[Projectile],
        particles: list[Particle],
        rng: random.Random,
    ) -> None:
        if self.cooldown > 0:
            self.cooldown -= dt

        target = self.select_target(enemies)
        self.target_id = target.enemy_id if target is not None else None

        if target is not None and self.cooldown <= 0:
            self.fire(target, projectiles, particles, rng)
            self.cooldown = self.stats.fire_interval

    def fire(
        self,
        target: Enemy,
        projectiles: list[Projectile],
        particles: list[Particle],
        rng: random.Random,
    ) -> Projectile:
        stats = self.stats
        mode = self.mode
        if mode is ProjectileMode.INSTANT:
            # Beam damage lands now; the projectile is only the beam graphic.
            target.apply_damage(stats.damage)
            burst(particles, target.position, "hit", BEAM_BURST, rng)

        proj = Projectile.launch(
            kind=self.kind,
            mode=mode,
            origin=self.position,
            target=target,
            damage=stats.damage,
            speed=stats.projectile_speed,
            area_radius=stats.area_radius,
        )
        projectiles.append(proj)
        return proj

    def to_dict(self, enemies: dict[str, Enemy] | None = None) -> dict:
        stats = self.stats
        target = self.current_target(enemies) if enemies is not None else None
        return {
            "id": self.tower_id,
            "kind": self.kind,
            "level": self.level,
            "position": {"x": self.position[0], "y": self.position[1]},
            "damage": stats.damage,
            "range": stats.range,
            "fire_interval": stats.fire_interval,
            "area_radius": stats.area_radius,
            "cooldown": self.cooldown,
            "target_id": self.target_id if target is not None else None,
            "target_pos": (
                {"x": target.position[0], "y": target.position[1]}
                if target is not None else None
            ),
        }
