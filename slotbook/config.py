"""Application configuration."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="null",
    )

    # Application
    app_name: str = Field(default="Slotbook API", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=False, alias="DEBUG")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")

    # Server
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    # Database
    database_url: str = Field(..., alias="DATABASE_URL")
    db_statement_timeout_ms: int = Field(default=5000, alias="DB_STATEMENT_TIMEOUT_MS")
    db_lock_timeout_ms: int = Field(default=3000, alias="DB_LOCK_TIMEOUT_MS")

    # Redis
    redis_host: str = Field(..., alias="REDIS_HOST")
    redis_port: int = Field(..., alias="REDIS_PORT")
    redis_username: str = Field(default="default", alias="REDIS_USERNAME")
    redis_password: str = Field(default="", alias="REDIS_PASSWORD")
    redis_decode_responses: bool = Field(default=True, alias="REDIS_DECODE_RESPONSES")

    # JWT
    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=30, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Scheduling
    slot_lead_time_minutes: int = Field(default=30, alias="SLOT_LEAD_TIME_MINUTES")
    default_slot_duration_minutes: int = Field(default=60, alias="DEFAULT_SLOT_DURATION_MINUTES")
    max_appointment_duration_minutes: int = Field(
        default=480, alias="MAX_APPOINTMENT_DURATION_MINUTES"
    )
    slot_query_default_days: int = Field(default=30, alias="SLOT_QUERY_DEFAULT_DAYS")
    slot_query_max_days: int = Field(default=90, alias="SLOT_QUERY_MAX_DAYS")

    # Booking
    appointment_number_prefix: str = Field(default="APT", alias="APPOINTMENT_NUMBER_PREFIX")
    appointment_number_max_attempts: int = Field(
        default=10,
        alias="APPOINTMENT_NUMBER_MAX_ATTEMPTS",
        description="Collision checks before falling back to a random suffix",
    )
    booking_max_attempts: int = Field(default=3, alias="BOOKING_MAX_ATTEMPTS")
    read_retry_attempts: int = Field(default=3, alias="READ_RETRY_ATTEMPTS")

    # Meeting provisioning
    meeting_api_url: str | None = Field(
        default=None,
        alias="MEETING_API_URL",
        description="Base URL of the meeting service; provisioning is disabled when unset",
    )
    meeting_api_token: str = Field(default="", alias="MEETING_API_TOKEN")
    meeting_timeout_seconds: float = Field(default=10.0, alias="MEETING_TIMEOUT_SECONDS")

    # CORS
    cors_origins_str: str = Field(
        default="http://localhost:3000",
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins as a list."""
        if isinstance(self.cors_origins_str, str):
            return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]
        return [self.cors_origins_str]

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]


# Global settings instance
settings = get_settings()
