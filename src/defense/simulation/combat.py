"""Projectiles — flight, hit detection, and damage resolution.

Architecture
------------
Every non-instant shot is a Projectile owned by the SimulationEngine's
projectile list.  ``update()`` advances it one frame:

  1. INSTANT (laser): damage was already applied when the tower fired.
     The projectile is a beam graphic that lives for BEAM_LIFETIME ms.

  2. HOMING (bomb): re-aims at the live target every frame.  The target is
     tracked by ID, not by reference; if the ID no longer resolves to a
     living enemy the shot fizzles and its damage is lost.

  3. BALLISTIC (archer, machine gun): velocity is frozen at spawn toward
     where the target stood.  The shot hits the first living enemy it
     passes within BALLISTIC_HIT_RADIUS of, which need not be the enemy
     it was aimed at.  Leaving the play area removes it.

``resolve_hit()`` applies damage: area shots hit every living enemy within
``area_radius`` of the impact point at full damage, single shots hit one.
"""

from __future__ import annotations

import math
import random
import uuid
from dataclasses import dataclass, field

from defense.units.base import ProjectileMode

from .enemy import Enemy
from .particles import EXPLOSION_BURST, HIT_BURST, Particle, burst
from .path import Point

# Homing shells detonate this close to their target.
HOMING_HIT_RADIUS = 5.0

# Ballistic shots strike any enemy this close.
BALLISTIC_HIT_RADIUS = 15.0

# Ballistic shots outside [0, PLAY_AREA_BOUND] on either axis are dropped.
PLAY_AREA_BOUND = 2000.0

# Visual lifetime of an instant-hit beam
BEAM_LIFETIME = 100.0  # ms


@dataclass
class Projectile:
    """A single shot in flight (or a beam graphic for instant towers)."""

    kind: str
    mode: ProjectileMode
    origin: Point
    position: Point
    target_id: str | None
    damage: float
    speed: float
    area_radius: float = 0.0
    velocity: tuple[float, float] = (0.0, 0.0)
    target_pos: Point | None = None
    projectile_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    alive: bool = True
    age: float = 0.0
    lifetime: float = 0.0

    @classmethod
    def launch(
        cls,
        kind: str,
        mode: ProjectileMode,
        origin: Point,
        target: Enemy,
        damage: float,
        speed: float,
        area_radius: float = 0.0,
    ) -> Projectile:
        """Create a projectile from *origin* aimed at *target*."""
        velocity = (0.0, 0.0)
        if mode is ProjectileMode.BALLISTIC:
            dx = target.position[0] - origin[0]
            dy = target.position[1] - origin[1]
            dist = math.hypot(dx, dy)
            if dist > 0:
                velocity = (dx / dist * speed, dy / dist * speed)
        return cls(
            kind=kind,
            mode=mode,
            origin=origin,
            position=origin,
            target_id=target.enemy_id,
            damage=damage,
            speed=speed,
            area_radius=area_radius,
            velocity=velocity,
            target_pos=target.position,
            lifetime=BEAM_LIFETIME if mode is ProjectileMode.INSTANT else 0.0,
        )

    @property
    def fade(self) -> float:
        """Beam opacity; always 1.0 for physical projectiles."""
        if self.mode is not ProjectileMode.INSTANT or self.lifetime <= 0:
            return 1.0
        return max(0.0, 1.0 - self.age / self.lifetime)

    def update(
        self,
        dt: float,
        enemies: dict[str, Enemy],
        particles: list[Particle],
        rng: random.Random,
    ) -> None:
        if not self.alive:
            return
        if self.mode is ProjectileMode.INSTANT:
            self._tick_beam(dt, enemies)
        elif self.mode is ProjectileMode.HOMING:
            self._tick_homing(dt, enemies, particles, rng)
        else:
            self._tick_ballistic(dt, enemies, particles, rng)

    def _tick_beam(self, dt: float, enemies: dict[str, Enemy]) -> None:
        self.age += dt
        if self.age >= self.lifetime:
            self.alive = False
            return
        target = _live_target(enemies, self.target_id)
        self.target_pos = target.position if target is not None else None

    def _tick_homing(self, dt, enemies, particles, rng) -> None:
        target = _live_target(enemies, self.target_id)
        if target is None:
            self.alive = False
            return

        self.target_pos = target.position
        dx = target.position[0] - self.position[0]
        dy = target.position[1] - self.position[1]
        dist = math.hypot(dx, dy)
        step = self.speed * dt
        if step >= dist:
            self.position = target.position
        elif dist > 0:
            self.position = (
                self.position[0] + (dx / dist) * step,
                self.position[1] + (dy / dist) * step,
            )

        tdx = target.position[0] - self.position[0]
        tdy = target.position[1] - self.position[1]
        if math.hypot(tdx, tdy) < HOMING_HIT_RADIUS:
            resolve_hit(self, target, enemies, particles, rng)
            self.alive = False

    def _tick_ballistic(self, dt, enemies, particles, rng) -> None:
        self.position = (
            self.position[0] + self.velocity[0] * dt,
            self.position[1] + self.velocity[1] * dt,
        )
        x, y = self.position
        if x < 0 or x > PLAY_AREA_BOUND or y < 0 or y > PLAY_AREA_BOUND:
            self.alive = False
            return

        for enemy in enemies.values():
            if not enemy.alive:
                continue
            dist = math.hypot(enemy.position[0] - x, enemy.position[1] - y)
            if dist < BALLISTIC_HIT_RADIUS:
                self.target_id = enemy.enemy_id
                resolve_hit(self, enemy, enemies, particles, rng)
                self.alive = False
                return

    def to_dict(self) -> dict:
        return {
            "id": self.projectile_id,
            "kind": self.kind,
            "mode": self.mode.value,
            "origin": {"x": self.origin[0], "y": self.origin[1]},
            "position": {"x": self.position[0], "y": self.position[1]},
            "target_pos": (
                {"x": self.target_pos[0], "y": self.target_pos[1]}
                if self.target_pos is not None else None
            ),
            "area_radius": self.area_radius,
            "fade": self.fade,
        }


def _live_target(enemies: dict[str, Enemy], target_id: str | None) -> Enemy | None:
    """Resolve a weak target handle; stale or dead handles read as None."""
    if target_id is None:
        return None
    enemy = enemies.get(target_id)
    if enemy is None or not enemy.alive:
        return None
    return enemy


def resolve_hit(
    projectile: Projectile,
    struck: Enemy,
    enemies: dict[str, Enemy],
    particles: list[Particle],
    rng: random.Random,
) -> list[Enemy]:
    """Apply *projectile*'s damage.  Returns the enemies it killed.

    Area shots centre on the projectile's position and include enemies at
    exactly ``area_radius``.
    """
    killed: list[Enemy] = []
    if projectile.area_radius > 0:
        ix, iy = projectile.position
        for enemy in enemies.values():
            if not enemy.alive:
                continue
            if math.hypot(enemy.position[0] - ix, enemy.position[1] - iy) <= projectile.area_radius:
                if enemy.apply_damage(projectile.damage):
                    killed.append(enemy)
        burst(particles, projectile.position, "explosion", EXPLOSION_BURST, rng)
    else:
        if struck.apply_damage(projectile.damage):
            killed.append(struck)
        burst(particles, struck.position, "hit", HIT_BURST, rng)
    return killed
