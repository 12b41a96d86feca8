"""SimulationEngine — the per-frame loop and the single owner of game state.

Architecture
------------
The engine owns everything mutable: gold, lives, score, the game state
(menu/playing/paused/defeat/victory), the path, the wave director and the
enemy, tower, projectile and particle collections.  Nothing else keeps a
strong reference into those collections; towers and projectiles hold
enemy IDs and resolve them against ``engine.enemies`` each frame.

``advance_frame(dt)`` runs one frame (dt in milliseconds) in a fixed order:

  0. apply queued intents (place / merge / start wave)
  1. wave director: spawn due enemies, collect the completion bonus,
     declare victory after the final wave's bonus
  2. enemies walk; each one newly at the end costs a life and goes inert;
     defeat when lives reach zero
  3. enemies killed since the last frame pay bounty and score, once
  4. dead and escaped enemies leave the active set
  5. towers retarget and fire (may spawn projectiles and particles)
  6. projectiles fly and resolve; spent ones are dropped
  7. particles age; expired ones are dropped

Defeat and victory end the frame immediately.

Threading:
  The engine itself is synchronous.  ``start()`` runs an optional daemon
  thread (sim-frame) that calls advance_frame() at ``frame_rate`` with the
  measured wall-clock dt; every public method takes the same lock, so an
  intent is always applied between two frames, never inside one.

Events published on the EventBus:
  - ``game_state_change``: any state transition
  - ``wave_start`` / ``wave_complete``
  - ``enemy_eliminated`` / ``enemy_escaped``
  - ``tower_placed`` / ``tower_merged`` / ``intent_rejected``
  - ``game_over``: victory or defeat
"""

from __future__ import annotations

import random
import threading
import time
from collections import deque
from typing import TYPE_CHECKING

from loguru import logger

from defense.comms.event_bus import EventBus
from defense.units import get_tower_type, tower_costs

from .combat import Projectile
from .enemy import Enemy
from .intents import Intent, IntentResult, MergeTowers, PlaceTower, RejectionReason, StartWave
from .particles import MERGE_BURST, Particle, burst
from .path import PathModel, Point
from .tower import Tower
from .waves import WaveDefinition, WaveDirector

if TYPE_CHECKING:
    from defense.app.config import Settings

# A new tower must be at least this far from every existing tower.
PLACEMENT_MIN_DISTANCE = 40.0

# Dropping a tower within this distance of a twin merges them.
MERGE_RADIUS = 35.0

# Pointer distance that counts as "on" a tower.
CLICK_RADIUS = 30.0

# Score earned per gold of bounty on a kill
KILL_SCORE_MULTIPLIER = 2

# Queued-intent results kept for drain_results(); oldest are dropped first.
MAX_PENDING_RESULTS = 256

_TERMINAL_STATES = ("defeat", "victory")


class SimulationEngine:
    """Frame-driven tower-defense simulation."""

    STATES = ("menu", "playing", "paused", "defeat", "victory")

    def __init__(
        self,
        settings: Settings | None = None,
        event_bus: EventBus | None = None,
        rng: random.Random | None = None,
        waves: list[WaveDefinition] | None = None,
    ) -> None:
        if settings is None:
            from defense.app.config import settings as default_settings
            settings = default_settings
        self._settings = settings
        self._event_bus = event_bus if event_bus is not None else EventBus()
        self._rng = rng if rng is not None else random.Random(settings.rng_seed)
        self._lock = threading.RLock()
        self._running = False
        self._thread: threading.Thread | None = None
        self._pending: deque[Intent] = deque()
        self._results: deque[IntentResult] = deque(maxlen=MAX_PENDING_RESULTS)

        self.path = PathModel(
            settings.viewport_width,
            settings.viewport_height,
            path_width=settings.path_width,
        )
        self.waves = WaveDirector(
            waves=waves,
            spawn_interval=settings.spawn_interval_ms,
            rng=self._rng,
        )

        self.state: str = "menu"
        self.gold: int = settings.starting_gold
        self.lives: int = settings.starting_lives
        self.score: int = 0
        self.kills: int = 0
        self.frame: int = 0
        self.elapsed: float = 0.0  # ms of simulated play

        self.enemies: dict[str, Enemy] = {}
        self.towers: dict[str, Tower] = {}
        self.projectiles: list[Projectile] = []
        self.particles: list[Particle] = []

    # -- Accessors --------------------------------------------------------------

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def rng(self) -> random.Random:
        return self._rng

    @property
    def is_over(self) -> bool:
        return self.state in _TERMINAL_STATES

    def get_enemies(self) -> list[Enemy]:
        with self._lock:
            return list(self.enemies.values())

    def get_towers(self) -> list[Tower]:
        with self._lock:
            return list(self.towers.values())

    def get_tower(self, tower_id: str) -> Tower | None:
        with self._lock:
            return self.towers.get(tower_id)

    # -- Frame ------------------------------------------------------------------

    def advance_frame(self, dt: float) -> None:
        """Run one frame of *dt* milliseconds."""
        with self._lock:
            self._apply_pending()
            if self.state != "playing":
                return
            self.frame += 1
            self.elapsed += dt
            self._step(dt)

    def _step(self, dt: float) -> None:
        # 1. waves
        bonus = self.waves.update(dt, self.enemies, self.path)
        if bonus is not None:
            self.gold += bonus
            self.score += bonus
            self._event_bus.publish("wave_complete", {
                "wave_number": self.waves.current_wave,
                "bonus": bonus,
                "gold": self.gold,
                "score": self.score,
            })
            if self.waves.all_completed:
                # Kills from the last frame still pay out before the game ends.
                self._award_bounties()
                self._finish("victory")
                return

        # 2. movement and escapes
        for enemy in self.enemies.values():
            enemy.update(dt, self.path)
            if enemy.reached_end and enemy.alive:
                self.lives -= 1
                enemy.alive = False
                self._event_bus.publish("enemy_escaped", {
                    "enemy_id": enemy.enemy_id,
                    "kind": enemy.kind,
                    "lives": self.lives,
                })
                if self.lives <= 0:
                    self.lives = 0
                    self._finish("defeat")
                    return

        # 3. bounty, exactly once per death
        self._award_bounties()

        # 4. drop the dead and the escaped
        self.enemies = {eid: e for eid, e in self.enemies.items() if e.alive}

        # 5. towers
        for tower in self.towers.values():
            tower.update(dt, self.enemies, self.projectiles, self.particles, self._rng)

        # 6. projectiles
        for proj in self.projectiles:
            proj.update(dt, self.enemies, self.particles, self._rng)
        self.projectiles = [p for p in self.projectiles if p.alive]

        # 7. particles
        for particle in self.particles:
            particle.update(dt)
        self.particles = [p for p in self.particles if p.alive]

    def _award_bounties(self) -> None:
        for enemy in self.enemies.values():
            if enemy.killed and not enemy.bounty_awarded:
                enemy.bounty_awarded = True
                self.gold += enemy.bounty
                self.score += enemy.bounty * KILL_SCORE_MULTIPLIER
                self.kills += 1
                self._event_bus.publish("enemy_eliminated", {
                    "enemy_id": enemy.enemy_id,
                    "kind": enemy.kind,
                    "bounty": enemy.bounty,
                    "position": {"x": enemy.position[0], "y": enemy.position[1]},
                })

    def _finish(self, result: str) -> None:
        self.state = result
        logger.info(
            f"Game over: {result} at wave {self.waves.current_wave}/{self.waves.total_waves}, "
            f"score {self.score}, lives {self.lives}"
        )
        self._event_bus.publish("game_over", {
            "result": result,
            "final_score": self.score,
            "wave": self.waves.current_wave,
            "total_waves": self.waves.total_waves,
            "lives": self.lives,
            "kills": self.kills,
        })
        self._publish_state_change()

    # -- Intents ----------------------------------------------------------------

    def submit(self, intent: Intent) -> None:
        """Queue *intent* to be applied at the start of the next frame."""
        with self._lock:
            self._pending.append(intent)

    def drain_results(self) -> list[IntentResult]:
        """Return and clear the results of queued intents applied so far.

        Only the latest MAX_PENDING_RESULTS are kept between drains.
        """
        with self._lock:
            results = list(self._results)
            self._results.clear()
            return results

    def _apply_pending(self) -> None:
        while self._pending:
            intent = self._pending.popleft()
            if isinstance(intent, PlaceTower):
                result = self.place_tower(intent.kind, intent.x, intent.y)
            elif isinstance(intent, MergeTowers):
                result = self.merge_towers(intent.dragged_id, intent.stationary_id, intent.drop)
            elif isinstance(intent, StartWave):
                result = self.start_wave()
            else:
                logger.warning(f"Ignoring unknown intent: {intent!r}")
                continue
            self._results.append(result)

    def _reject(self, intent: str, reason: RejectionReason, **details) -> IntentResult:
        logger.debug(f"{intent} rejected: {reason.value} {details or ''}")
        self._event_bus.publish("intent_rejected", {
            "intent": intent,
            "reason": reason.value,
            **details,
        })
        return IntentResult.rejected(intent, reason)

    def can_place(self, kind: str, x: float, y: float) -> RejectionReason | None:
        """Why a *kind* tower can't go at (x, y), or None if it can."""
        with self._lock:
            ttype = get_tower_type(kind)
            if ttype is None:
                return RejectionReason.UNKNOWN_KIND
            if self.is_over:
                return RejectionReason.GAME_OVER
            if self.gold < ttype.cost:
                return RejectionReason.INSUFFICIENT_FUNDS
            if self.path.is_on_path((x, y)):
                return RejectionReason.ON_PATH
            for tower in self.towers.values():
                if tower.distance_to((x, y)) < PLACEMENT_MIN_DISTANCE:
                    return RejectionReason.OVERLAPPING
            return None

    def place_tower(self, kind: str, x: float, y: float) -> IntentResult:
        """Buy and place a level-1 *kind* tower at (x, y)."""
        with self._lock:
            reason = self.can_place(kind, x, y)
            if reason is not None:
                return self._reject("place_tower", reason, kind=kind, x=x, y=y)

            tower = Tower(kind=kind, position=(x, y))
            self.towers[tower.tower_id] = tower
            self.gold -= get_tower_type(kind).cost
            self._event_bus.publish("tower_placed", {
                "tower_id": tower.tower_id,
                "kind": kind,
                "position": {"x": x, "y": y},
                "gold": self.gold,
            })
            return IntentResult.ok("place_tower", tower)

    def tower_at(self, x: float, y: float) -> Tower | None:
        """First tower within CLICK_RADIUS of (x, y)."""
        with self._lock:
            for tower in self.towers.values():
                if tower.distance_to((x, y)) < CLICK_RADIUS:
                    return tower
            return None

    def find_merge_partner(self, dragged_id: str, x: float, y: float) -> Tower | None:
        """Tower the dragged tower would merge into if dropped at (x, y)."""
        with self._lock:
            dragged = self.towers.get(dragged_id)
            if dragged is None:
                return None
            for tower in self.towers.values():
                if tower.tower_id == dragged_id:
                    continue
                if (tower.distance_to((x, y)) < MERGE_RADIUS
                        and tower.kind == dragged.kind
                        and tower.level == dragged.level):
                    return tower
            return None

    def merge_towers(
        self,
        dragged_id: str,
        stationary_id: str,
        drop: Point | None = None,
    ) -> IntentResult:
        """Merge two equal towers into one of the next level.

        The result takes the stationary tower's position and its slot in
        the tower order; the dragged tower is removed.  *drop* is where the
        dragged tower was released (defaults to its own position).
        """
        with self._lock:
            if self.is_over:
                return self._reject("merge_towers", RejectionReason.GAME_OVER)
            dragged = self.towers.get(dragged_id)
            stationary = self.towers.get(stationary_id)
            if dragged is None or stationary is None or dragged_id == stationary_id:
                return self._reject("merge_towers", RejectionReason.NOT_FOUND,
                                    dragged_id=dragged_id, stationary_id=stationary_id)
            if dragged.kind != stationary.kind:
                return self._reject("merge_towers", RejectionReason.TYPE_MISMATCH)
            if dragged.level != stationary.level:
                return self._reject("merge_towers", RejectionReason.LEVEL_MISMATCH)
            drop_point = drop if drop is not None else dragged.position
            if stationary.distance_to(drop_point) >= MERGE_RADIUS:
                return self._reject("merge_towers", RejectionReason.TOO_FAR)

            merged = Tower(
                kind=stationary.kind,
                position=stationary.position,
                level=stationary.level + 1,
            )
            rebuilt: dict[str, Tower] = {}
            for tid, tower in self.towers.items():
                if tid == dragged_id:
                    continue
                if tid == stationary_id:
                    rebuilt[merged.tower_id] = merged
                else:
                    rebuilt[tid] = tower
            self.towers = rebuilt
            burst(self.particles, merged.position, "hit", MERGE_BURST, self._rng)

            logger.debug(f"Merged {dragged_id} into {stationary_id} -> {merged.kind} L{merged.level}")
            self._event_bus.publish("tower_merged", {
                "tower_id": merged.tower_id,
                "kind": merged.kind,
                "level": merged.level,
                "consumed": [dragged_id, stationary_id],
                "position": {"x": merged.position[0], "y": merged.position[1]},
            })
            return IntentResult.ok("merge_towers", merged)

    # -- Game flow --------------------------------------------------------------

    def start_game(self) -> IntentResult:
        """Leave the menu and start wave 1."""
        with self._lock:
            if self.state != "menu":
                return self._reject("start_game", RejectionReason.NO_WAVE_AVAILABLE,
                                    state=self.state)
            return self.start_wave()

    def start_wave(self) -> IntentResult:
        """Start the next wave (also starts play from the menu)."""
        with self._lock:
            if self.is_over:
                return self._reject("start_wave", RejectionReason.GAME_OVER)
            if not self.waves.can_start_next_wave():
                return self._reject("start_wave", RejectionReason.NO_WAVE_AVAILABLE,
                                    wave=self.waves.current_wave)
            if self.state == "menu":
                self.state = "playing"
                self._publish_state_change()
            self.waves.start_wave()
            wave = self.waves.current
            self._event_bus.publish("wave_start", {
                "wave_number": wave.number,
                "total_waves": self.waves.total_waves,
                "enemy_count": wave.total_count,
                "bonus": wave.bonus,
            })
            return IntentResult.ok("start_wave")

    def pause(self) -> bool:
        with self._lock:
            if self.state != "playing":
                return False
            self.state = "paused"
            self._publish_state_change()
            return True

    def resume(self) -> bool:
        with self._lock:
            if self.state != "paused":
                return False
            self.state = "playing"
            self._publish_state_change()
            return True

    def toggle_pause(self) -> bool:
        """Flip playing/paused.  Returns True if the state changed."""
        with self._lock:
            return self.pause() or self.resume()

    def reset(self) -> None:
        """Back to the menu with a fresh economy and wave table."""
        with self._lock:
            self.state = "menu"
            self.gold = self._settings.starting_gold
            self.lives = self._settings.starting_lives
            self.score = 0
            self.kills = 0
            self.frame = 0
            self.elapsed = 0.0
            self.enemies = {}
            self.towers = {}
            self.projectiles = []
            self.particles = []
            self._pending.clear()
            self._results.clear()
            self.waves.reset()
            self._publish_state_change()

    def resize(self, width: float, height: float) -> None:
        """Re-lay the path for a new viewport; enemies keep their progress."""
        with self._lock:
            self.path.resize(width, height)
            for enemy in self.enemies.values():
                enemy.position = self.path.position_at_progress(enemy.progress)

    # -- Threaded driver --------------------------------------------------------

    def start(self, frame_rate: float | None = None) -> None:
        """Run advance_frame() on a daemon thread until stop()."""
        if self._running:
            return
        self._running = True
        rate = frame_rate or self._settings.frame_rate
        self._thread = threading.Thread(
            target=self._frame_loop, args=(rate,), name="sim-frame", daemon=True,
        )
        self._thread.start()
        logger.info(f"Simulation frame loop started ({rate:.0f} fps)")

    def stop(self) -> None:
        self._running = False
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
        logger.info("Simulation frame loop stopped")

    @property
    def running(self) -> bool:
        return self._running

    def _frame_loop(self, frame_rate: float) -> None:
        period = 1.0 / frame_rate
        max_dt = self._settings.max_frame_ms
        last = time.monotonic()
        while self._running:
            now = time.monotonic()
            dt = min((now - last) * 1000.0, max_dt)
            last = now
            try:
                self.advance_frame(dt)
            except Exception:
                logger.exception(f"Frame {self.frame} failed")
            sleep_for = period - (time.monotonic() - now)
            if sleep_for > 0:
                time.sleep(sleep_for)

    # -- Snapshot ---------------------------------------------------------------

    def get_state(self) -> dict:
        """Serializable snapshot for the renderer/API."""
        with self._lock:
            return {
                "state": self.state,
                "gold": self.gold,
                "lives": self.lives,
                "score": self.score,
                "kills": self.kills,
                "frame": self.frame,
                "elapsed_ms": self.elapsed,
                "wave": self.waves.current_wave,
                "total_waves": self.waves.total_waves,
                "waves": self.waves.get_state(),
                "tower_costs": tower_costs(),
                "path": self.path.to_dict(),
                "enemies": [e.to_dict() for e in self.enemies.values()],
                "towers": [t.to_dict(self.enemies) for t in self.towers.values()],
                "projectiles": [p.to_dict() for p in self.projectiles],
                "particles": [p.to_dict() for p in self.particles],
            }

    def _publish_state_change(self) -> None:
        self._event_bus.publish("game_state_change", {
            "state": self.state,
            "wave": self.waves.current_wave,
            "gold": self.gold,
            "lives": self.lives,
            "score": self.score,
        })
