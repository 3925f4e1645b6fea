"""Application configuration."""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

MIRROR_FILE_NAME = "data.plist"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_key: str
    data_dir: Path = Path.home() / ".grumble"
    food_table: str = "food_list"
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def mirror_path(self) -> Path:
        """Location of the local mirror file."""
        return self.data_dir.expanduser() / MIRROR_FILE_NAME
