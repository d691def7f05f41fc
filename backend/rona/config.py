"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - get_settings() is cached (lru_cache): one instance per process
    - quicktest_validity defaults to 24h; the core never reads it directly

Design Decisions:
    - Defaults work out-of-the-box: on-disk SQLite under ./data
    - Durations as timedelta: env accepts seconds ("86400") or ISO 8601 ("PT24H")
"""

from datetime import timedelta
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rona.core.domain_types import QUICKTEST_VALIDITY


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database. "sqlite+aiosqlite://" (no path) is in-memory
    database_url: str = "sqlite+aiosqlite:///data/rona.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_busy_timeout_seconds: float = 30.0

    # Lifecycle
    quicktest_validity: timedelta = QUICKTEST_VALIDITY
    expiry_sweep_interval: timedelta = timedelta(seconds=10)
    expiry_sweep_enabled: bool = True

    # API
    host: str = "0.0.0.0"
    port: int = 8080
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
