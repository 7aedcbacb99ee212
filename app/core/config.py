"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, scheduler cadence, etc.)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from typing import Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"
    SERVICE_NAME: str = Field(
        default="wis-conversation-orchestrator",
        description="Service name reported by the health endpoint"
    )

    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="wis_platform",
        description="MongoDB database name"
    )
    MONGODB_CONNECT_RETRIES: int = Field(
        default=3,
        description="Connection attempts at startup before giving up"
    )
    MONGODB_MAX_POOL_SIZE: int = Field(default=50)
    CUSTOMERS_COLLECTION: str = Field(default="customers")
    PLANS_COLLECTION: str = Field(default="devotional_plans")
    CONVERSATIONS_COLLECTION: str = Field(default="conversations")
    OUTBOUND_COLLECTION: str = Field(
        default="outbound_messages",
        description="Outbox consumed by the message sender"
    )

    # Scheduler
    SCHEDULER_ENABLED: bool = Field(
        default=True,
        description="Run the periodic evaluators inside this process"
    )
    SCHEDULER_INTERVAL_SECONDS: int = Field(
        default=300,
        description="Seconds between scheduler ticks"
    )
    SCHEDULER_BATCH_LIMIT: int = Field(
        default=500,
        description="Maximum candidates loaded per evaluator per tick"
    )

    # Devotional plans
    PLAN_MESSAGE_INTERVAL_HOURS: int = Field(
        default=24,
        description="Hours between two plan day messages"
    )
    PLAN_TOTAL_DAYS: int = Field(
        default=7,
        description="Number of days in a standard devotional plan"
    )
    PLAN_DAY_ADVANCEMENT: Literal["external", "scheduler"] = Field(
        default="external",
        description="Who increments currentDay after a day message is queued"
    )

    # Outbound messages
    DETERMINISTIC_EVENT_MESSAGE_IDS: bool = Field(
        default=True,
        description="Derive welcome messageIds from the inbound event id"
    )
    WELCOME_MAX_RETRIES: int = Field(
        default=3,
        description="Delivery retries the sender may attempt for a welcome"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api/v1",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    @field_validator(
        "SCHEDULER_INTERVAL_SECONDS",
        "PLAN_MESSAGE_INTERVAL_HOURS",
        "PLAN_TOTAL_DAYS",
        "MONGODB_CONNECT_RETRIES",
    )
    @classmethod
    def validate_positive(cls, v):
        """Intervals and plan length must be positive."""
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"
        extra = "ignore"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if not settings.MONGODB_URL:
        errors.append("MONGODB_URL is required")

    if not settings.MONGODB_DB_NAME:
        errors.append("MONGODB_DB_NAME is required")

    if settings.is_production and settings.MONGODB_URL.startswith("mongodb://localhost"):
        errors.append("MONGODB_URL must point to a managed cluster in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
