"""Unit tests for cosmetic particles."""

from __future__ import annotations

import math
import random

import pytest

from defense.simulation.particles import PARTICLE_LIFETIME, Particle, burst


pytestmark = pytest.mark.unit


class TestParticle:
    def test_emit_speed_ranges(self):
        rng = random.Random(11)
        for _ in range(50):
            p = Particle.emit((0, 0), "explosion", rng)
            assert 0.2 <= math.hypot(*p.velocity) <= 0.4 + 1e-9
            q = Particle.emit((0, 0), "hit", rng)
            assert 0.1 <= math.hypot(*q.velocity) <= 0.2 + 1e-9

    def test_seeded_emission_is_reproducible(self):
        a = Particle.emit((0, 0), "hit", random.Random(5))
        b = Particle.emit((0, 0), "hit", random.Random(5))
        assert a == b

    def test_moves_and_fades(self):
        p = Particle(position=(0, 0), velocity=(0.1, 0.0))
        p.update(250)
        assert p.position == pytest.approx((25.0, 0.0))
        assert p.fade == pytest.approx(0.5)
        assert p.alive

    def test_expires(self):
        p = Particle(position=(0, 0), velocity=(0.1, 0.0))
        p.update(PARTICLE_LIFETIME)
        assert not p.alive
        assert p.fade == 0.0


class TestBurst:
    def test_burst_appends_count(self):
        particles = []
        burst(particles, (5, 5), "explosion", 12, random.Random(1))
        assert len(particles) == 12
        assert all(p.kind == "explosion" and p.position == (5, 5) for p in particles)
