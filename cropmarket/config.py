"""
Application configuration using Pydantic settings.
"""
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Storage Configuration
    storage_backend: str = Field(
        default="memory",
        description="Storage backend for crops and interests (memory or mongo)"
    )
    mongo_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    mongo_db_name: str = Field(
        default="cropmarket",
        description="MongoDB database name"
    )
    crops_collection: str = Field(
        default="allcrops",
        description="Collection holding crop listings"
    )
    interests_collection: str = Field(
        default="interests",
        description="Collection holding canonical interest records"
    )
    mongo_timeout_ms: int = Field(
        default=5000,
        description="Server selection timeout for MongoDB in milliseconds"
    )

    # Quantity compare-and-set retry
    max_quantity_update_attempts: int = Field(
        default=5,
        description="Maximum attempts for a conditional quantity update before reporting a conflict"
    )
    quantity_retry_wait_seconds: float = Field(
        default=0.0,
        description="Wait time in seconds between conditional quantity update attempts"
    )

    # Reconciliation
    max_reconcile_passes: int = Field(
        default=3,
        description="Rebuild passes per crop before it is left marked for a later reconciliation"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (use specific origins in production)"
    )

    # Rate Limiting
    rate_limit_enabled: bool = Field(
        default=True,
        description="Whether per-client rate limiting is applied"
    )
    rate_limit_requests: int = Field(
        default=100,
        description="Maximum requests per minute per client"
    )

    # Application Settings
    app_name: str = Field(
        default="Crop Marketplace API",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
