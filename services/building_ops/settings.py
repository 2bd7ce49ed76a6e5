from services.common.settings import (
    AliasChoices,
    BaseSettings,
    Field,
    SettingsConfigDict,
)


class Settings(BaseSettings):
    """Building Ops Service settings and configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Database configuration
    db_url_building_ops: str = Field(
        ...,  # Required field - no default to prevent production mistakes
        description="Database connection URL",
        validation_alias=AliasChoices("DB_URL_BUILDING_OPS"),
    )

    # Service configuration
    SERVICE_NAME: str = Field(
        default="building-ops-service", description="Service name"
    )
    APP_VERSION: str = Field(default="0.1.0", description="Application version")
    ENVIRONMENT: str = Field(
        default="development",
        description="Environment (development, staging, production)",
    )
    DEBUG: bool = Field(default=False, description="Debug mode")

    # API Keys for service communication
    api_scheduler_building_ops_key: str = Field(
        ...,  # Required field - no default to prevent production mistakes
        description="Scheduler (cron) API key to access this service",
        validation_alias=AliasChoices("API_SCHEDULER_BUILDING_OPS_KEY"),
    )
    api_frontend_building_ops_key: str = Field(
        ...,  # Required field - no default to prevent production mistakes
        description="Portal frontend API key to access this service",
        validation_alias=AliasChoices("API_FRONTEND_BUILDING_OPS_KEY"),
    )

    # Engine configuration
    school_timezone: str = Field(
        default="America/New_York",
        description="Time zone used to decide what 'today' is",
        validation_alias=AliasChoices("SCHOOL_TIMEZONE"),
    )
    alias_cache_ttl_seconds: float = Field(
        default=300.0,
        description="How long a resource alias snapshot is served before refreshing",
        validation_alias=AliasChoices("ALIAS_CACHE_TTL_SECONDS"),
    )
    upsert_concurrency: int = Field(
        default=5,
        description="Maximum canonical event upserts in flight at once",
        validation_alias=AliasChoices("UPSERT_CONCURRENCY"),
    )
    upsert_max_attempts: int = Field(
        default=3,
        description="Attempts per canonical event upsert before it is reported failed",
        validation_alias=AliasChoices("UPSERT_MAX_ATTEMPTS"),
    )
    upsert_retry_base_delay: float = Field(
        default=0.2,
        description="Base delay in seconds for upsert retry backoff",
        validation_alias=AliasChoices("UPSERT_RETRY_BASE_DELAY"),
    )
    availability_warning_gap_minutes: int = Field(
        default=15,
        description="Neighbouring events this close to a slot produce a warning",
        validation_alias=AliasChoices("AVAILABILITY_WARNING_GAP_MINUTES"),
    )
    suggestion_limit: int = Field(
        default=10,
        description="Maximum match suggestions returned per event",
        validation_alias=AliasChoices("SUGGESTION_LIMIT"),
    )

    # Logging configuration
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")
    LOG_FORMAT: str = Field(default="json", description="Log format (json or text)")


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the global settings instance, creating it if necessary."""
    global _settings
    if _settings is None:
        _settings = Settings()  # type: ignore[call-arg]
    return _settings
