"""Configuration settings for the booking engine service."""

from decimal import Decimal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with Pydantic validation."""

    # Database settings
    database_url: str = Field(
        default="sqlite+aiosqlite:///./stay_engine.db",
        description="Async SQLAlchemy database URL"
    )

    # Environment settings
    environment: str = Field(
        default="development",
        description="Application environment"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Application log level"
    )

    otlp_endpoint: str | None = Field(
        default=None,
        description="OTLP collector endpoint for traces and metrics"
    )

    # Security settings
    bearer_token_secret: str = Field(
        default="change-me-to-a-long-random-secret-value",
        description="Secret key used to decode customer bearer tokens"
    )

    # CORS settings
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )

    # Server settings
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")

    # External catalog settings
    external_catalog_url: str | None = Field(
        default=None,
        description="Base URL of the payment provider product catalog"
    )

    external_catalog_api_key: str | None = Field(
        default=None,
        description="API key sent to the payment provider catalog"
    )

    external_catalog_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Timeout for a single catalog fetch"
    )

    catalog_cache_ttl_seconds: float = Field(
        default=5.0,
        ge=0,
        le=60,
        description="How long a fetched external catalog may be reused (0 disables caching)"
    )

    # Availability settings
    suggestion_start_offsets_days: list[int] = Field(
        default=[7, 14, 30],
        description="Forward offsets from today at which alternative stays start"
    )

    max_date_suggestions: int = Field(
        default=6,
        ge=1,
        description="Maximum number of alternative date ranges returned"
    )

    default_probe_durations: list[int] = Field(
        default=[3, 5, 7],
        description="Stay lengths probed when a package has no duration bounds"
    )

    # Pricing settings
    default_base_rate: Decimal = Field(
        default=Decimal("150"),
        ge=0,
        description="Nightly rate used when neither package nor property defines one"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        valid_environments = ["development", "staging", "production"]
        if v.lower() not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level value."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("cors_origins", "suggestion_start_offsets_days", "default_probe_durations", mode="before")
    @classmethod
    def parse_comma_separated(cls, v):
        """Accept comma separated strings for list settings."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @property
    def debug(self) -> bool:
        """Return True if in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Return True if in production mode."""
        return self.environment == "production"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Global settings instance
settings = Settings()
