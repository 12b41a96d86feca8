"""EMOJI-DEFENSE — FastAPI application.

Hosts a single SimulationEngine on ``app.state.simulation_engine``.  A
browser canvas (or any other renderer) polls ``/api/game/state`` and
posts intents; the engine's frame thread advances the game in between.
"""

import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from defense import __version__
from defense.app.config import Settings, settings
from defense.app.routers import game_router
from defense.simulation import SimulationEngine


def configure_logging(level: str) -> None:
    """Route loguru to stderr at *level*."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def create_app(app_settings: Settings | None = None) -> FastAPI:
    cfg = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(cfg.log_level)
        logger.info("=" * 60)
        logger.info(f"  {cfg.app_name} v{__version__} - INITIALIZING")
        logger.info("=" * 60)

        engine = SimulationEngine(cfg)
        app.state.simulation_engine = engine
        logger.info(
            f"Simulation engine created ({cfg.viewport_width:.0f}x{cfg.viewport_height:.0f}, "
            f"{engine.waves.total_waves} waves)"
        )
        if cfg.autostart_loop:
            engine.start(cfg.frame_rate)

        yield

        logger.info("Stopping simulation engine...")
        engine.stop()
        app.state.simulation_engine = None

    app = FastAPI(title=cfg.app_name, version=__version__, lifespan=lifespan)
    app.include_router(game_router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "version": __version__}

    return app


app = create_app()
