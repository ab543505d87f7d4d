"""
Shared configuration management for the Session Verifier.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SESSION_",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    log_json: bool = Field(default=True)


class SessionConfig(BaseConfig):
    """Settings consumed by the session verifier and its collaborators."""

    service_name: str = Field(default="session")

    # Identity provider
    auth0_url: str = Field(default="https://example.auth0.com")
    exchange_timeout: float = Field(default=10.0, gt=0)

    # Expiry policy
    refresh_jwt_before_seconds: float = Field(default=300, ge=0, allow_inf_nan=False)
    configuration_url: Optional[str] = Field(default=None)
    configuration_cache_ttl: float = Field(default=300, ge=0)

    # Session record
    user_config_path: str = Field(default="~/.config/session-verifier/user-config.json")


def get_config(**overrides) -> SessionConfig:
    """Get configuration for the session verifier."""
    return SessionConfig(**overrides)
