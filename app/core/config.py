"""
Configuration settings for the ShareWheels ride-booking service.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator, Field
from typing import Optional
import logging

logger = logging.getLogger(__name__)

class Settings(BaseSettings):
    """Application settings loaded from the environment and .env."""

    # Environment
    ENVIRONMENT: str = Field(default="development", description="Application environment")
    DEBUG: bool = Field(default=False, description="Debug mode")

    # API Settings
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "ShareWheels"

    # Database Settings
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./sharewheels.db",
        description="Database connection URL"
    )

    # Booking workflow policy
    STRICT_SEAT_ACCOUNTING: bool = Field(
        default=False,
        description="Reject bookings and accepts that would oversell a ride"
    )
    STRICT_RIDE_STATUS_TRANSITIONS: bool = Field(
        default=False,
        description="Only allow scheduled -> started -> completed and scheduled -> cancelled"
    )
    VERIFY_BOOKING_PRICE: bool = Field(
        default=False,
        description="Reject bookings whose price is not seats * price per seat"
    )

    # Pagination
    DEFAULT_PAGE_SIZE: int = Field(default=50, ge=1, le=1000)
    MAX_PAGE_SIZE: int = Field(default=200, ge=1, le=1000)

    # Logging Settings
    LOG_LEVEL: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    LOG_FILE: Optional[str] = None

    # Security Headers
    CORS_ORIGINS: list = Field(default=["http://localhost:5173"], description="Allowed CORS origins")

    @field_validator('DATABASE_URL')
    @classmethod
    def validate_database_url(cls, v):
        if not v.startswith(('postgresql://', 'postgresql+asyncpg://', 'sqlite+aiosqlite://')):
            raise ValueError("DATABASE_URL must be a PostgreSQL or sqlite+aiosqlite URL")
        return v

    @field_validator('ENVIRONMENT')
    @classmethod
    def validate_environment(cls, v):
        allowed_envs = ['development', 'staging', 'production', 'test']
        if v not in allowed_envs:
            raise ValueError(f"ENVIRONMENT must be one of: {allowed_envs}")
        return v

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT == "production"

    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        validate_assignment=True,
        extra="ignore",
    )

# Global settings instance with error handling
try:
    settings = Settings()
    if settings.is_production() and settings.DEBUG:
        logger.warning("DEBUG mode is enabled in production environment")
except Exception as e:
    logger.error(f"Failed to load settings: {e}")
    raise
