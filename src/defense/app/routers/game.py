"""Game control API — start, waves, place and merge towers, state."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

router = APIRouter(prefix="/api/game", tags=["game"])


class PlaceTowerRequest(BaseModel):
    kind: str  # archer, machinegun, bomb, laser
    x: float
    y: float


class MergeTowersRequest(BaseModel):
    dragged_id: str
    stationary_id: str
    drop: dict | None = None  # {"x": float, "y": float}


class TickRequest(BaseModel):
    dt: float = Field(default=16.0, gt=0, le=1000)
    frames: int = Field(default=1, ge=1, le=10_000)


class ResizeRequest(BaseModel):
    width: float = Field(gt=0)
    height: float = Field(gt=0)


def _get_engine(request: Request):
    """Retrieve the SimulationEngine from app state."""
    engine = getattr(request.app.state, "simulation_engine", None)
    if engine is None:
        raise HTTPException(503, "Simulation engine not available")
    return engine


def _accepted_or_409(result) -> dict:
    if not result.accepted:
        raise HTTPException(409, result.reason.value)
    return result.to_dict()


@router.get("/state")
async def get_game_state(request: Request):
    """Full snapshot: economy, wave progress, and every entity."""
    return _get_engine(request).get_state()


@router.post("/start")
async def start_game(request: Request):
    """Leave the menu and launch wave 1."""
    return _accepted_or_409(_get_engine(request).start_game())


@router.post("/wave")
async def start_next_wave(request: Request):
    """Start the next wave once the current one is cleared."""
    return _accepted_or_409(_get_engine(request).start_wave())


@router.post("/place")
async def place_tower(body: PlaceTowerRequest, request: Request):
    """Buy a tower at (x, y)."""
    engine = _get_engine(request)
    result = _accepted_or_409(engine.place_tower(body.kind, body.x, body.y))
    result["gold"] = engine.gold
    return result


@router.post("/merge")
async def merge_towers(body: MergeTowersRequest, request: Request):
    """Drop one tower onto an identical one to level it up."""
    engine = _get_engine(request)
    drop = None
    if body.drop is not None:
        try:
            drop = (float(body.drop["x"]), float(body.drop["y"]))
        except (KeyError, TypeError, ValueError):
            raise HTTPException(422, "drop must be {\"x\": float, \"y\": float}")
    result = _accepted_or_409(engine.merge_towers(body.dragged_id, body.stationary_id, drop))
    tower = engine.get_tower(result["tower_id"])
    result["level"] = tower.level if tower is not None else None
    return result


@router.post("/tick")
async def tick(body: TickRequest, request: Request):
    """Advance the simulation manually (for clients driving their own clock)."""
    engine = _get_engine(request)
    for _ in range(body.frames):
        engine.advance_frame(body.dt)
        if engine.is_over:
            break
    return {"state": engine.state, "frame": engine.frame}


@router.post("/pause")
async def toggle_pause(request: Request):
    engine = _get_engine(request)
    changed = engine.toggle_pause()
    return {"state": engine.state, "changed": changed}


@router.post("/reset")
async def reset_game(request: Request):
    """Back to the menu; clears towers, enemies and the economy."""
    engine = _get_engine(request)
    engine.reset()
    return {"status": "reset", "state": engine.state}


@router.post("/resize")
async def resize(body: ResizeRequest, request: Request):
    engine = _get_engine(request)
    engine.resize(body.width, body.height)
    return engine.path.to_dict()
