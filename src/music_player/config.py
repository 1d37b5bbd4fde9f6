"""Runtime configuration for the music player."""

import os
import tempfile

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def default_ipc_path() -> str:
    if os.name == "nt":
        return r"\\.\pipe\mpvsocket"
    return os.path.join(tempfile.gettempdir(), "mpvsocket")


class Settings(BaseSettings):
    """Environment-driven runtime settings."""

    model_config = SettingsConfigDict(env_prefix="MUSIC_PLAYER_", env_file=".env", extra="ignore")

    app_name: str = "music-player"
    log_level: str = "WARNING"
    player_binary: str = Field(default="mpv", description="mpv executable used for playback.")
    ipc_path: str = Field(
        default_factory=default_ipc_path,
        description="Named pipe (Windows) or Unix socket path for mpv's JSON IPC server.",
    )
    settle_seconds: float = Field(default=1.0, ge=0.0, description="Fixed wait after spawning mpv.")
    quit_grace_seconds: float = Field(default=0.1, ge=0.0, description="Wait between quit and force-kill.")
    initial_volume: int = Field(default=100, ge=0, le=150)
    resolver_binary: str = Field(default="yt-dlp", description="yt-dlp executable for search and resolution.")
    search_results: int = Field(default=3, ge=1)


settings = Settings()
