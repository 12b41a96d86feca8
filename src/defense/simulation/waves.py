"""WaveDirector — wave composition table and timed spawning.

Architecture
------------
The composition of every wave is generated once, up front, from the
declarative rules below: a handful of regular kinds whose counts grow
linearly with the wave number, plus a boss kind injected at milestone
waves (and doubled on the final wave).  Each wave's list is shuffled
with the injected ``random.Random`` -- the only randomness in wave
structure, so a seeded RNG gives reproducible waves.

Per-wave lifecycle:

  idle -> spawning -> draining -> completed -> (start_wave) spawning ...

  spawning  -- one enemy every ``spawn_interval`` ms until the list is out
  draining  -- everything spawned; waiting for the field to clear
  completed -- no spawned enemy is alive and still walking; ``update()``
               returns the wave bonus on exactly this transition

``all_completed`` latches once the final wave completes (or start_wave()
is called with no waves left).
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass

from loguru import logger

from .enemy import Enemy
from .path import PathModel

DEFAULT_TOTAL_WAVES = 10
DEFAULT_SPAWN_INTERVAL = 1000.0  # ms

# Each wave past the first spawns enemies with +20% health.
HEALTH_GROWTH_PER_WAVE = 0.2


@dataclass(frozen=True)
class CountRule:
    """floor(base + per_wave * wave) enemies of *kind*, from *first_wave* on."""
    kind: str
    base: float
    per_wave: float
    first_wave: int = 1

    def count(self, wave: int) -> int:
        if wave < self.first_wave:
            return 0
        return math.floor(self.base + self.per_wave * wave)


COUNT_RULES: tuple[CountRule, ...] = (
    CountRule("ant", base=3, per_wave=1.5),
    CountRule("caterpillar", base=1, per_wave=0.8),
    CountRule("scorpion", base=1, per_wave=0.5, first_wave=3),
)

BOSS_KIND = "dragon"
BOSS_EVERY = 5

# Completion bonus: BONUS_BASE + BONUS_PER_WAVE * wave
BONUS_BASE = 10
BONUS_PER_WAVE = 5


@dataclass
class WaveDefinition:
    """One wave: the ordered spawn list and its completion bonus."""

    number: int
    enemies: list[str]
    bonus: int

    @property
    def total_count(self) -> int:
        return len(self.enemies)

    def to_dict(self) -> dict:
        return {"number": self.number, "enemies": list(self.enemies), "bonus": self.bonus}


def health_multiplier(wave: int) -> float:
    return 1 + (wave - 1) * HEALTH_GROWTH_PER_WAVE


def generate_composition(
    total_waves: int = DEFAULT_TOTAL_WAVES,
    rng: random.Random | None = None,
) -> list[WaveDefinition]:
    """Build the shuffled spawn list for waves 1..*total_waves*."""
    rng = rng or random.Random()
    waves: list[WaveDefinition] = []
    for number in range(1, total_waves + 1):
        enemies: list[str] = []
        for rule in COUNT_RULES:
            enemies.extend([rule.kind] * rule.count(number))
        if number % BOSS_EVERY == 0 or number == total_waves:
            enemies.append(BOSS_KIND)
            if number == total_waves:
                enemies.append(BOSS_KIND)
        rng.shuffle(enemies)
        waves.append(WaveDefinition(
            number=number,
            enemies=enemies,
            bonus=BONUS_BASE + BONUS_PER_WAVE * number,
        ))
    return waves


class WaveDirector:
    """Drives timed spawning through a fixed sequence of waves."""

    def __init__(
        self,
        waves: list[WaveDefinition] | None = None,
        spawn_interval: float = DEFAULT_SPAWN_INTERVAL,
        rng: random.Random | None = None,
        total_waves: int = DEFAULT_TOTAL_WAVES,
    ) -> None:
        self._rng = rng or random.Random()
        self._fixed_waves = waves is not None
        self._total = len(waves) if waves is not None else total_waves
        self.waves: list[WaveDefinition] = (
            list(waves) if waves is not None else generate_composition(self._total, self._rng)
        )
        self.spawn_interval = spawn_interval
        self.current_wave = 0
        self.spawned = 0
        self.spawn_timer = 0.0
        self.in_progress = False
        self.completed = False
        self.all_completed = False

    # -- Queries ----------------------------------------------------------------

    @property
    def total_waves(self) -> int:
        return len(self.waves)

    @property
    def current(self) -> WaveDefinition | None:
        if 1 <= self.current_wave <= len(self.waves):
            return self.waves[self.current_wave - 1]
        return None

    @property
    def remaining_to_spawn(self) -> int:
        wave = self.current
        if wave is None or not self.in_progress:
            return 0
        return wave.total_count - self.spawned

    @property
    def state(self) -> str:
        if self.in_progress:
            return "spawning" if self.remaining_to_spawn > 0 else "draining"
        if self.completed:
            return "completed"
        return "idle"

    def can_start_next_wave(self) -> bool:
        return not self.in_progress and self.current_wave < self.total_waves

    # -- Transitions ------------------------------------------------------------

    def start_wave(self) -> bool:
        """Advance to the next wave.  Returns False when none are left."""
        if self.current_wave >= self.total_waves:
            self.all_completed = True
            return False

        self.current_wave += 1
        self.spawned = 0
        self.spawn_timer = 0.0
        self.in_progress = True
        self.completed = False
        logger.info(
            f"Wave {self.current_wave}/{self.total_waves} started "
            f"({self.current.total_count} enemies)"
        )
        return True

    def update(self, dt: float, enemies: dict[str, Enemy], path: PathModel) -> int | None:
        """Spawn due enemies into *enemies*; return the bonus on completion."""
        if not self.in_progress:
            return None

        wave = self.current
        if self.spawned < wave.total_count:
            self.spawn_timer += dt
            if self.spawn_timer >= self.spawn_interval:
                kind = wave.enemies[self.spawned]
                enemy = Enemy.spawn(kind, path, health_mult=health_multiplier(self.current_wave))
                enemies[enemy.enemy_id] = enemy
                self.spawned += 1
                self.spawn_timer = 0.0

        if self.spawned >= wave.total_count:
            in_flight = sum(1 for e in enemies.values() if e.is_active)
            if in_flight == 0:
                self.in_progress = False
                self.completed = True
                if self.current_wave >= self.total_waves:
                    self.all_completed = True
                logger.info(f"Wave {self.current_wave} complete, bonus {wave.bonus}")
                return wave.bonus

        return None

    def reset(self, regenerate: bool = True) -> None:
        """Back to before wave 1.  Re-rolls the shuffle unless waves were injected."""
        self.current_wave = 0
        self.spawned = 0
        self.spawn_timer = 0.0
        self.in_progress = False
        self.completed = False
        self.all_completed = False
        if regenerate and not self._fixed_waves:
            self.waves = generate_composition(self._total, self._rng)

    def get_state(self) -> dict:
        wave = self.current
        return {
            "wave": self.current_wave,
            "total_waves": self.total_waves,
            "state": self.state,
            "spawned": self.spawned,
            "wave_size": wave.total_count if wave else 0,
            "bonus": wave.bonus if wave else 0,
            "can_start_next": self.can_start_next_wave(),
            "all_completed": self.all_completed,
        }
