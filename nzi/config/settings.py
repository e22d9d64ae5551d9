"""
Process settings loaded from environment variables.
Uses pydantic-settings for validation and type coercion.

These are knobs for the running process (endpoints, timeouts, cache
freshness). User preferences live in the YAML config file instead.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "nzi-cli"


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="NZI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Files
    config_path: Optional[str] = None
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # Open-Meteo
    weather_base_url: str = "https://api.open-meteo.com/v1/forecast"
    weather_timeout_s: float = 5.0
    weather_ttl_s: float = 600.0

    # exchangerate-api
    exchange_base_url: str = "https://api.exchangerate-api.com/v4/latest"
    exchange_timeout_s: float = 10.0
    rate_ttl_s: float = 600.0

    # Refresh scheduling
    refresh_interval_s: float = 300.0
    startup_attempts: int = 3
    startup_min_wait_s: float = 0.5
    startup_max_wait_s: float = 4.0
    max_workers: int = 4

    # UI
    status_message_s: float = 5.0
    editor: Optional[str] = None

    @property
    def resolved_config_path(self) -> Path:
        """Return the config file path, honouring the override."""
        if self.config_path:
            return Path(self.config_path).expanduser()
        return DEFAULT_CONFIG_DIR / "config.yaml"

    @property
    def resolved_log_file(self) -> Path:
        if self.log_file:
            return Path(self.log_file).expanduser()
        return DEFAULT_CONFIG_DIR / "nzi.log"

    def fallback_editor(self) -> str:
        """Editor used when the config file does not name one."""
        return self.editor or os.environ.get("EDITOR") or "nvim"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
