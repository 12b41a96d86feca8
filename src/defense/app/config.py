"""Configuration management using Pydantic settings."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables (DEFENSE_*)."""

    model_config = SettingsConfigDict(
        env_prefix="DEFENSE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "EMOJI-DEFENSE"
    debug: bool = False
    log_level: str = "INFO"

    # Viewport the path is laid out in (pixels)
    viewport_width: float = 1200.0
    viewport_height: float = 800.0
    path_width: float = 60.0

    # Economy
    starting_gold: int = 200
    starting_lives: int = 20

    # Timing
    spawn_interval_ms: float = 1000.0
    frame_rate: float = 60.0      # frames per second for the threaded driver
    max_frame_ms: float = 100.0   # clamp for a single frame's dt after stalls

    # Reproducible wave shuffles / particles when set
    rng_seed: Optional[int] = None

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    autostart_loop: bool = True   # run the frame driver thread on startup


settings = Settings()
