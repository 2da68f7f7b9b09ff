# fitsched/core/config.py
import logging
import os
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def is_running_tests() -> bool:
    """
    Detect if code is running under pytest.

    PYTEST_CURRENT_TEST is set automatically by pytest during test runs, and is
    not expected to be present in production environments.
    """
    return os.getenv("PYTEST_CURRENT_TEST") is not None


logger = logging.getLogger(__name__)

# Load .env file only if not in CI
if not os.getenv("CI"):
    env_path = Path(__file__).parent.parent.parent / ".env"
    logger.debug(f"[CONFIG] Looking for .env at: {env_path}")
    load_dotenv(env_path)


class Settings(BaseSettings):
    environment: str = Field(default="development", description="development|staging|production")
    log_level: str = Field(default="INFO", description="Root log level")

    # Database
    database_url: str = Field(
        default="sqlite:///./fitsched.db", description="SQLAlchemy database URL"
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")

    # Cache settings
    cache_backend: Literal["memory", "redis"] = Field(
        default="memory", description="Recommendation/geocoding cache backend"
    )
    redis_url: Optional[str] = Field(default=None, description="Redis URL when cache_backend=redis")

    # Geocoding
    geocoding_provider: Literal["nominatim", "mock"] = Field(
        default="nominatim", description="Geocoding provider: nominatim|mock"
    )
    nominatim_base_url: str = Field(
        default="https://nominatim.openstreetmap.org/search",
        description="Nominatim search endpoint",
    )
    nominatim_user_agent: str = Field(
        default="fitsched/0.1 (gym scheduling service)",
        description="User-Agent sent to Nominatim, required by its usage policy",
    )
    geocoding_min_interval_seconds: float = Field(
        default=1.0, ge=0.0, description="Minimum spacing between geocoding requests"
    )
    geocoding_timeout_seconds: float = Field(default=10.0, gt=0.0)
    geocoding_cache_ttl_seconds: int = Field(
        default=86400, description="How long resolved coordinates stay cached"
    )

    # Recommendations
    recommendation_cache_ttl_seconds: int = Field(
        default=300, gt=0, description="Recommendation cache TTL (5 minutes)"
    )
    recommendation_limit: int = Field(default=10, gt=0, description="Max ranked results")

    # Booking policy
    cancellation_notice_minutes: int = Field(
        default=60, ge=0, description="Minimum notice required to cancel a training"
    )

    model_config = SettingsConfigDict(
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return (value or "INFO").strip().upper()

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
