"""Application settings and configuration.

This module defines all configuration options for the Lorecraft auth service.
Settings are loaded from environment variables with sensible defaults; the two
token secrets have no default and must always be provided.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEVELOPMENT_ENVIRONMENT = "development"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="Lorecraft Auth", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Token signing
    jwt_secret: str = Field(alias="JWT_SECRET", min_length=16)
    refresh_secret: str = Field(alias="REFRESH_SECRET", min_length=16)
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60,
        ge=1,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )
    refresh_token_expire_days: int = Field(default=7, ge=1, alias="REFRESH_TOKEN_EXPIRE_DAYS")

    # Session and challenge lifetimes
    session_duration_hours: int = Field(default=24, ge=1, alias="SESSION_DURATION_HOURS")
    challenge_expiry_minutes: int = Field(default=5, ge=1, alias="CHALLENGE_EXPIRY_MINUTES")

    # Background expiry sweeps
    challenge_sweep_interval_seconds: float = Field(
        default=300.0,
        gt=0,
        alias="CHALLENGE_SWEEP_INTERVAL_SECONDS",
    )
    session_sweep_interval_seconds: float = Field(
        default=3600.0,
        gt=0,
        alias="SESSION_SWEEP_INTERVAL_SECONDS",
    )

    # Development shortcuts (require both flags, see dev_mode_active)
    environment: str = Field(default="production", alias="ENVIRONMENT")
    enable_dev_mode: bool = Field(default=False, alias="ENABLE_DEV_MODE")
    dev_session_minutes: int = Field(default=60, ge=1, alias="DEV_SESSION_MINUTES")

    # Text embedded in challenge messages
    site_name: str = Field(default="0N1 Lore Crafter", alias="SITE_NAME")
    site_domain: str = Field(default="lorecrafter.app", alias="SITE_DOMAIN")

    # Public path clients are pointed at to restart the handshake
    api_prefix: str = Field(default="/api/v1", alias="API_PREFIX")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def dev_mode_active(self) -> bool:
        """Return True only when the flag is set AND the environment is development."""
        return self.enable_dev_mode and self.environment.lower() == DEVELOPMENT_ENVIRONMENT

    @property
    def challenge_endpoint(self) -> str:
        """Return the path of the challenge issuance endpoint."""
        return f"{self.api_prefix}/auth/challenge"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()  # type: ignore[call-arg]
