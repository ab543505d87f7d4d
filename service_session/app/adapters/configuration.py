"""
Expiry policy providers.
"""

import time
from typing import Optional, Protocol

import httpx
from pydantic import BaseModel, ConfigDict, Field

from shared.config import SessionConfig
from shared.logging import get_logger


class ExpiryPolicy(BaseModel):
    """How long before expiry a token should be renewed."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    refresh_before_seconds: float = Field(default=0, ge=0, allow_inf_nan=False, alias="refreshJWTBeforeSeconds")


class ConfigurationProvider(Protocol):
    async def get_configuration(self) -> ExpiryPolicy: ...


class SettingsConfigurationProvider:
    """Serve the expiry policy from local settings."""

    def __init__(self, config: SessionConfig):
        self.config = config

    async def get_configuration(self) -> ExpiryPolicy:
        return ExpiryPolicy(refresh_before_seconds=self.config.refresh_jwt_before_seconds)


class RemoteConfigurationProvider:
    """Fetch the expiry policy from a JSON document and cache it."""

    def __init__(self, configuration_url: str, cache_ttl: float = 300, timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.configuration_url = configuration_url
        self.cache_ttl = cache_ttl
        self.timeout = timeout
        self.transport = transport
        self.logger = get_logger("session.configuration")

        self._policy_cache: Optional[ExpiryPolicy] = None
        self._cache_timestamp: float = 0

    async def get_configuration(self) -> ExpiryPolicy:
        """Get the policy from cache or fetch it."""
        current_time = time.time()

        if (self._policy_cache is not None and
                current_time - self._cache_timestamp < self.cache_ttl):
            return self._policy_cache

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(self.configuration_url)
                response.raise_for_status()
                policy = ExpiryPolicy.model_validate(response.json())

            self._policy_cache = policy
            self._cache_timestamp = current_time

            self.logger.info(
                "Expiry policy refreshed",
                refresh_before_seconds=policy.refresh_before_seconds
            )
            return policy

        except Exception as e:
            self.logger.error("Failed to fetch expiry policy", error=str(e))
            if self._policy_cache is not None:
                self.logger.warning("Using stale expiry policy due to fetch failure")
                return self._policy_cache
            raise

    def clear_cache(self):
        """Drop the cached policy."""
        self._policy_cache = None
        self._cache_timestamp = 0
