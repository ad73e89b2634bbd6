"""
Configuration management for the service registry.

Uses pydantic-settings to load configuration from environment variables
and .env files.
"""

from functools import lru_cache
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Registry Configuration
    registry_dir: Path = Path("/var/lib/oniontree")

    # Watcher Configuration
    watch_settle_ms: int = 50  # milliseconds
    watch_poll_interval: float = 0.2  # seconds

    # API Configuration
    api_port: int = 8000
    log_level: str = "INFO"
    api_title: str = "Service Registry API"
    api_version: str = "1.0.0"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def get_registry_dir(self) -> Path:
        """Return the registry root with ``~`` expanded."""
        return self.registry_dir.expanduser()

    def get_settle_seconds(self) -> float:
        """Settle window as seconds."""
        return max(self.watch_settle_ms, 0) / 1000.0


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
