"""Unit tests for SimulationEngine — economy, placement, merging, frames."""

from __future__ import annotations

import random
import time
from unittest.mock import MagicMock, patch

import pytest
from loguru import logger

from defense.simulation.engine import MAX_PENDING_RESULTS, SimulationEngine
from defense.simulation.enemy import Enemy
from defense.simulation.intents import MergeTowers, PlaceTower, RejectionReason, StartWave
from defense.simulation.waves import WaveDefinition


pytestmark = pytest.mark.unit

# Off-path spots on the default 1200x800 layout
SPOT_A = (300.0, 240.0)
SPOT_B = (300.0, 280.0)   # exactly PLACEMENT_MIN_DISTANCE from A
SPOT_C = (700.0, 400.0)
NEAR_START = (90.0, 460.0)


def _engine(settings, waves=None, bus=None):
    return SimulationEngine(settings, event_bus=bus, rng=random.Random(1), waves=waves)


def _walker(eid="walker", progress=0.0):
    return Enemy(
        enemy_id=eid, kind="ant", health=20, max_health=20,
        speed=0.000075, bounty=3, progress=progress,
    )


def _drain(q):
    events = []
    while not q.empty():
        events.append(q.get_nowait())
    return events


class TestInitialState:
    def test_defaults(self, engine):
        assert engine.state == "menu"
        assert engine.gold == 200
        assert engine.lives == 20
        assert engine.score == 0
        assert engine.waves.total_waves == 10

    def test_menu_does_not_advance(self, engine):
        engine.advance_frame(16)
        assert engine.frame == 0

    def test_get_state_shape(self, engine):
        state = engine.get_state()
        for key in ("state", "gold", "lives", "score", "wave", "total_waves",
                    "path", "enemies", "towers", "projectiles", "particles", "tower_costs"):
            assert key in state
        assert state["tower_costs"]["laser"] == 200


class TestPlacement:
    def test_place_tower_spends_gold(self, engine):
        result = engine.place_tower("archer", *SPOT_A)
        assert result.accepted
        assert engine.gold == 150
        assert engine.get_tower(result.tower.tower_id).position == SPOT_A

    def test_insufficient_funds_leaves_state_untouched(self, engine):
        engine.gold = 40
        result = engine.place_tower("archer", *SPOT_A)
        assert not result
        assert result.reason is RejectionReason.INSUFFICIENT_FUNDS
        assert engine.gold == 40
        assert engine.towers == {}

    def test_gold_never_negative(self, engine):
        for spot in (SPOT_A, SPOT_C, (960.0, 300.0), (700.0, 120.0), (1100.0, 650.0)):
            engine.place_tower("archer", *spot)
            assert engine.gold >= 0
        assert engine.gold == 0
        assert len(engine.towers) == 4

    def test_on_path(self, engine):
        assert engine.place_tower("archer", 50, 400).reason is RejectionReason.ON_PATH
        assert engine.gold == 200

    def test_overlapping(self, engine):
        engine.place_tower("archer", *SPOT_A)
        result = engine.place_tower("archer", 300, 270)
        assert result.reason is RejectionReason.OVERLAPPING

    def test_min_distance_is_exclusive(self, engine):
        engine.place_tower("archer", *SPOT_A)
        assert engine.place_tower("archer", *SPOT_B).accepted

    def test_unknown_kind(self, engine):
        assert engine.can_place("catapult", *SPOT_A) is RejectionReason.UNKNOWN_KIND

    def test_rejected_when_game_over(self, engine):
        engine.state = "defeat"
        assert engine.place_tower("archer", *SPOT_A).reason is RejectionReason.GAME_OVER

    def test_tower_at(self, engine):
        tower = engine.place_tower("archer", *SPOT_A).tower
        assert engine.tower_at(310, 250) is tower
        assert engine.tower_at(400, 400) is None

    def test_placement_event(self, engine, bus):
        q = bus.subscribe(["tower_placed", "intent_rejected"])
        engine.place_tower("archer", *SPOT_A)
        engine.place_tower("archer", 50, 400)
        events = _drain(q)
        assert [e["type"] for e in events] == ["tower_placed", "intent_rejected"]
        assert events[1]["data"]["reason"] == "on_path"


class TestMerge:
    def test_merge_creates_next_level_at_stationary_position(self, engine):
        a = engine.place_tower("archer", *SPOT_A).tower
        b = engine.place_tower("archer", *SPOT_B).tower
        result = engine.merge_towers(b.tower_id, a.tower_id, drop=(300, 250))
        assert result.accepted
        merged = result.tower
        assert merged.level == 2
        assert merged.position == SPOT_A
        assert merged.stats.damage == 12
        assert list(engine.towers) == [merged.tower_id]
        assert len(engine.particles) == 20

    def test_merged_tower_keeps_stationary_slot(self, engine):
        first = engine.place_tower("machinegun", *SPOT_C).tower
        a = engine.place_tower("archer", *SPOT_A).tower
        b = engine.place_tower("archer", *SPOT_B).tower
        merged = engine.merge_towers(b.tower_id, a.tower_id, drop=SPOT_A).tower
        assert list(engine.towers) == [first.tower_id, merged.tower_id]

    def test_merge_does_not_cost_gold(self, engine):
        a = engine.place_tower("archer", *SPOT_A).tower
        b = engine.place_tower("archer", *SPOT_B).tower
        engine.merge_towers(b.tower_id, a.tower_id, drop=SPOT_A)
        assert engine.gold == 100

    def test_too_far_without_drop(self, engine):
        a = engine.place_tower("archer", *SPOT_A).tower
        b = engine.place_tower("archer", *SPOT_B).tower
        result = engine.merge_towers(b.tower_id, a.tower_id)
        assert result.reason is RejectionReason.TOO_FAR
        assert len(engine.towers) == 2

    def test_type_mismatch(self, engine):
        a = engine.place_tower("archer", *SPOT_A).tower
        b = engine.place_tower("machinegun", *SPOT_B).tower
        result = engine.merge_towers(b.tower_id, a.tower_id, drop=SPOT_A)
        assert result.reason is RejectionReason.TYPE_MISMATCH

    def test_level_mismatch(self, engine):
        a = engine.place_tower("archer", *SPOT_A).tower
        b = engine.place_tower("archer", *SPOT_B).tower
        c = engine.place_tower("archer", *SPOT_C).tower
        level_two = engine.merge_towers(b.tower_id, a.tower_id, drop=SPOT_A).tower
        result = engine.merge_towers(c.tower_id, level_two.tower_id, drop=SPOT_A)
        assert result.reason is RejectionReason.LEVEL_MISMATCH

    def test_not_found(self, engine):
        a = engine.place_tower("archer", *SPOT_A).tower
        assert engine.merge_towers("nope", a.tower_id).reason is RejectionReason.NOT_FOUND
        assert engine.merge_towers(a.tower_id, a.tower_id).reason is RejectionReason.NOT_FOUND

    def test_find_merge_partner(self, engine):
        a = engine.place_tower("archer", *SPOT_A).tower
        b = engine.place_tower("archer", *SPOT_B).tower
        c = engine.place_tower("machinegun", *SPOT_C).tower
        assert engine.find_merge_partner(b.tower_id, 300, 250) is a
        assert engine.find_merge_partner(c.tower_id, 300, 250) is None
        assert engine.find_merge_partner(b.tower_id, 600, 600) is None


class TestGameFlow:
    def test_start_game(self, engine, bus):
        q = bus.subscribe(["wave_start", "game_state_change"])
        assert engine.start_game().accepted
        assert engine.state == "playing"
        assert engine.waves.current_wave == 1
        types = [e["type"] for e in _drain(q)]
        assert types == ["game_state_change", "wave_start"]

    def test_start_game_only_from_menu(self, engine):
        engine.start_game()
        assert not engine.start_game()

    def test_next_wave_blocked_while_in_progress(self, engine):
        engine.start_game()
        assert engine.start_wave().reason is RejectionReason.NO_WAVE_AVAILABLE

    def test_pause_stops_frames(self, engine):
        engine.start_game()
        engine.advance_frame(16)
        assert engine.toggle_pause()
        assert engine.state == "paused"
        engine.advance_frame(16)
        assert engine.frame == 1
        assert engine.toggle_pause()
        assert engine.state == "playing"

    def test_reset(self, engine):
        engine.place_tower("archer", *SPOT_A)
        engine.start_game()
        engine.advance_frame(1000)
        engine.reset()
        assert engine.state == "menu"
        assert engine.gold == 200
        assert engine.towers == {}
        assert engine.enemies == {}
        assert engine.waves.current_wave == 0

    def test_resize_moves_enemies(self, engine):
        walker = _walker(progress=0.5)
        engine.enemies[walker.enemy_id] = walker
        engine.resize(600, 400)
        assert walker.position == engine.path.position_at_progress(0.5)
        assert engine.path.width == 600


class TestQueuedIntents:
    def test_intents_apply_at_next_frame(self, engine):
        engine.submit(PlaceTower("archer", *SPOT_A))
        assert engine.towers == {}
        engine.advance_frame(16)
        assert len(engine.towers) == 1
        results = engine.drain_results()
        assert len(results) == 1 and results[0].accepted
        assert engine.drain_results() == []

    def test_start_wave_intent_begins_play(self, engine):
        engine.submit(StartWave())
        engine.advance_frame(16)
        assert engine.state == "playing"
        assert engine.frame == 1

    def test_undrained_results_are_capped(self, engine):
        for _ in range(MAX_PENDING_RESULTS + 50):
            engine.submit(MergeTowers("x", "y"))
        engine.advance_frame(16)
        results = engine.drain_results()
        assert len(results) == MAX_PENDING_RESULTS
        assert engine.drain_results() == []

    def test_rejected_intent_is_reported(self, engine):
        engine.submit(MergeTowers("x", "y"))
        engine.advance_frame(16)
        result = engine.drain_results()[0]
        assert result.reason is RejectionReason.NOT_FOUND
        assert result.to_dict()["reason"] == "not_found"


class TestEconomy:
    def test_kill_pays_exactly_once(self, settings):
        engine = _engine(settings, waves=[
            WaveDefinition(1, ["ant", "ant"], 15),
            WaveDefinition(2, ["ant"], 20),
        ])
        engine.start_game()
        for _ in range(10):
            engine.advance_frame(100)
        (ant,) = engine.get_enemies()
        for _ in range(4):
            ant.apply_damage(5)
        assert not ant.alive

        for _ in range(5):
            engine.advance_frame(100)
        assert engine.gold == 203
        assert engine.score == 6
        assert engine.kills == 1
        assert ant.enemy_id not in engine.enemies

        for _ in range(4):
            engine.advance_frame(100)
        assert engine.gold == 203

    def test_escape_costs_one_life(self, settings, bus):
        engine = _engine(settings, waves=[WaveDefinition(1, ["ant"], 15)], bus=bus)
        q = bus.subscribe(["enemy_escaped"])
        engine.start_game()
        walker = _walker(progress=0.999)
        engine.enemies[walker.enemy_id] = walker
        engine.advance_frame(100)
        assert engine.lives == 19
        assert walker.enemy_id not in engine.enemies
        engine.advance_frame(100)
        assert engine.lives == 19
        assert engine.gold == 200
        assert len(_drain(q)) == 1

    def test_defeat_is_terminal(self, settings, bus):
        settings.starting_lives = 1
        engine = _engine(settings, waves=[WaveDefinition(1, ["ant"], 15)], bus=bus)
        q = bus.subscribe(["game_over"])
        engine.start_game()
        engine.enemies["walker"] = _walker(progress=0.999)
        engine.advance_frame(100)
        assert engine.state == "defeat"
        assert engine.lives == 0
        (event,) = _drain(q)
        assert event["data"]["result"] == "defeat"

        engine.advance_frame(100)
        assert engine.frame == 1
        assert not engine.start_wave()


class TestFullGame:
    def test_victory_after_clearing_every_wave(self, settings, bus):
        engine = _engine(settings, waves=[
            WaveDefinition(1, ["ant", "ant", "ant", "caterpillar"], 15),
        ], bus=bus)
        q = bus.subscribe(["game_over", "wave_complete"])
        engine.start_game()
        for _ in range(200):
            engine.advance_frame(100)
            if engine.is_over:
                break
            for enemy in engine.get_enemies():
                if enemy.is_active:
                    enemy.apply_damage(10_000)

        assert engine.state == "victory"
        assert engine.waves.completed
        assert engine.kills == 4
        assert engine.lives == 20
        assert engine.gold == 200 + 3 + 3 + 3 + 6 + 15
        assert engine.score == 2 * 15 + 15
        assert [e["type"] for e in _drain(q)] == ["wave_complete", "game_over"]

    def test_laser_defends_and_last_kill_is_paid(self, settings):
        engine = _engine(settings, waves=[WaveDefinition(1, ["ant"], 15)])
        assert engine.place_tower("laser", *NEAR_START).accepted
        assert engine.gold == 0
        engine.start_game()
        for _ in range(20):
            engine.advance_frame(100)
            if engine.is_over:
                break
        assert engine.state == "victory"
        assert engine.gold == 3 + 15
        assert engine.score == 6 + 15
        assert engine.kills == 1


class TestEventPublishing:
    def test_merge_publishes_to_bus(self, settings):
        bus = MagicMock()
        engine = SimulationEngine(settings, event_bus=bus, rng=random.Random(1))
        a = engine.place_tower("archer", *SPOT_A).tower
        b = engine.place_tower("archer", *SPOT_B).tower
        merged = engine.merge_towers(b.tower_id, a.tower_id, drop=SPOT_A).tower

        event_type, data = bus.publish.call_args.args
        assert event_type == "tower_merged"
        assert data["tower_id"] == merged.tower_id
        assert data["consumed"] == [b.tower_id, a.tower_id]

    def test_frame_thread_drives_engine(self, settings):
        engine = SimulationEngine(settings, event_bus=MagicMock(), rng=random.Random(1))
        engine.start_game()
        with patch.object(engine, "advance_frame", wraps=engine.advance_frame) as spy:
            engine.start(frame_rate=200)
            try:
                deadline = time.monotonic() + 2.0
                while spy.call_count < 3 and time.monotonic() < deadline:
                    time.sleep(0.01)
            finally:
                engine.stop()
        assert spy.call_count >= 3
        assert not engine.running

    def test_frame_errors_are_logged_and_loop_survives(self, settings):
        engine = SimulationEngine(settings, event_bus=MagicMock(), rng=random.Random(1))
        messages = []
        sink_id = logger.add(messages.append, level="ERROR")
        calls = []

        def flaky(dt):
            calls.append(dt)
            if len(calls) == 1:
                raise RuntimeError("boom")

        with patch.object(engine, "advance_frame", side_effect=flaky):
            engine.start(frame_rate=200)
            try:
                deadline = time.monotonic() + 2.0
                while len(calls) < 3 and time.monotonic() < deadline:
                    time.sleep(0.01)
            finally:
                engine.stop()
                logger.remove(sink_id)
        assert len(calls) >= 3
        assert any("failed" in str(m) and "boom" in str(m) for m in messages)
