"""Serve the game API: ``python -m defense.app``."""

import uvicorn

from defense.app.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "defense.app.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
