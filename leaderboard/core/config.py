# Pydantic settings

from pathlib import Path
import os
import sys

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _default_generator_command() -> list[str]:
    return [sys.executable, "-u", str(PROJECT_ROOT / "scripts" / "data_gen.py")]


class Settings(BaseSettings):
    """Application settings"""

    # App
    app_name: str = "House Points Leaderboard API"
    debug: bool = False
    cors_origins: list[str] = ["*"]

    # Database
    database_url: str = "sqlite+aiosqlite:///./leaderboard.db"

    # Data generator subprocess
    generator_command: list[str] = Field(default_factory=_default_generator_command)
    generator_cwd: str | None = None
    generator_stop_timeout: float = 5.0  # seconds

    # Reads
    recent_events_default_limit: int = 10

    model_config = SettingsConfigDict(
        # Use .env.local if it exists (for local dev), otherwise .env (for Docker)
        env_file=".env.local" if os.path.exists(".env.local") else ".env",
        case_sensitive=False
    )


settings = Settings()
