"""Application settings and configuration.

This module defines all configuration options for the Wallet Gate service.
Settings are loaded from environment variables (or a `.env` file). Values that
have no safe default are required: a missing nonce TTL, timestamp tolerance or
secret key aborts the process at startup instead of failing per request.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application metadata
    app_name: str = Field(default="Wallet Gate", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=60,
        gt=0,
        alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # Sign-in nonces live this long in the cache
    auth_nonce_ttl_seconds: int = Field(gt=0, alias="AUTH_NONCE_TTL_SECONDS")

    # Accepted skew (past and future) for signed request timestamps
    signature_timestamp_tolerance_ms: int = Field(
        gt=0,
        alias="SIGNATURE_TIMESTAMP_TOLERANCE_MS",
    )

    # Cache configuration for nonce storage
    cache_backend: Literal["redis", "memory"] = Field(default="redis", alias="CACHE_BACKEND")
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")
    redis_socket_timeout_seconds: float = Field(
        default=2.0,
        alias="REDIS_SOCKET_TIMEOUT_SECONDS",
    )

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def access_token_expire_seconds(self) -> int:
        """Return the access token lifetime in seconds."""
        return self.access_token_expire_minutes * 60


settings = Settings()  # type: ignore[call-arg]
