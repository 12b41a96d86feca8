"""Headless autoplay runner — play a full game without a renderer.

Usage:
    defense-headless [--seed N] [--fps 60] [--max-minutes 30] [--build archer,bomb]

Buys towers on the placement grid closest to the path whenever gold
allows, merges identical pairs, starts each wave as soon as the previous
one clears, and prints a summary.  Exit code 0 on victory, 1 otherwise.
"""

from __future__ import annotations

import argparse
import random
import sys

from loguru import logger

from defense.app.config import Settings
from defense.simulation import SimulationEngine
from defense.units import get_tower_type

# Spacing of the candidate placement grid (px)
GRID_SPACING = 40


def placement_spots(engine: SimulationEngine) -> list[tuple[float, float]]:
    """Grid points off the path, nearest to the path first."""
    path = engine.path
    spots = []
    for x in range(GRID_SPACING, int(path.width), GRID_SPACING):
        for y in range(GRID_SPACING, int(path.height), GRID_SPACING):
            point = (float(x), float(y))
            if not path.is_on_path(point):
                spots.append(point)
    spots.sort(key=path.distance_to_path)
    return spots


def try_build(engine: SimulationEngine, build_order: list[str], spots: list) -> int:
    """Buy as many towers as gold allows.  Returns how many were placed."""
    placed = 0
    progress = True
    while progress:
        progress = False
        for kind in build_order:
            if engine.gold < get_tower_type(kind).cost:
                continue
            spot = next((s for s in spots if engine.can_place(kind, *s) is None), None)
            if spot is not None and engine.place_tower(kind, *spot):
                placed += 1
                progress = True
    return placed


def try_merge(engine: SimulationEngine) -> int:
    """Merge every pair of identical towers once.  Returns merges done."""
    merged = 0
    seen: dict[tuple[str, int], str] = {}
    for tower in engine.get_towers():
        key = (tower.kind, tower.level)
        partner_id = seen.pop(key, None)
        if partner_id is None:
            seen[key] = tower.tower_id
            continue
        partner = engine.get_tower(partner_id)
        if partner is None:
            continue
        if engine.merge_towers(tower.tower_id, partner_id, drop=partner.position):
            merged += 1
    return merged


def run(engine: SimulationEngine, build_order: list[str], fps: float, max_minutes: float) -> dict:
    dt = 1000.0 / fps
    max_frames = int(max_minutes * 60 * fps)
    spots = placement_spots(engine)

    try_build(engine, build_order, spots)
    engine.start_game()
    for _ in range(max_frames):
        engine.advance_frame(dt)
        if engine.is_over:
            break
        if engine.waves.can_start_next_wave():
            try_merge(engine)
            try_build(engine, build_order, spots)
            engine.start_wave()

    return {
        "result": engine.state,
        "wave": engine.waves.current_wave,
        "total_waves": engine.waves.total_waves,
        "lives": engine.lives,
        "gold": engine.gold,
        "score": engine.score,
        "kills": engine.kills,
        "towers": len(engine.towers),
        "frames": engine.frame,
        "elapsed_s": round(engine.elapsed / 1000.0, 1),
    }


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Play Emoji Defense headless")
    ap.add_argument("--seed", type=int, default=None, help="RNG seed for waves and particles")
    ap.add_argument("--fps", type=float, default=60.0)
    ap.add_argument("--max-minutes", type=float, default=30.0, help="Simulated time limit")
    ap.add_argument("--build", default="archer,bomb,machinegun,laser",
                    help="Comma-separated tower kinds to buy, in priority order")
    ap.add_argument("--log-level", default="WARNING")
    args = ap.parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level=args.log_level.upper())

    build_order = [k.strip() for k in args.build.split(",") if k.strip()]
    unknown = [k for k in build_order if get_tower_type(k) is None]
    if unknown:
        ap.error(f"unknown tower kind(s): {', '.join(unknown)}")

    engine = SimulationEngine(Settings(rng_seed=args.seed), rng=random.Random(args.seed))
    summary = run(engine, build_order, args.fps, args.max_minutes)

    print(
        f"result={summary['result']} wave={summary['wave']}/{summary['total_waves']} "
        f"lives={summary['lives']} gold={summary['gold']} score={summary['score']} "
        f"kills={summary['kills']} towers={summary['towers']} time={summary['elapsed_s']}s"
    )
    return 0 if summary["result"] == "victory" else 1


if __name__ == "__main__":
    raise SystemExit(main())
