"""
Fixtures shared by the session service tests.
"""

import pytest
from prometheus_client import CollectorRegistry

from shared.metrics import MetricsCollector
from shared.test_helpers import FixedClock, InMemorySessionStore, MockTokenGenerator
from service_session.app.adapters.configuration import ExpiryPolicy


class StaticConfigurationProvider:
    """Configuration provider returning a fixed refresh window."""

    def __init__(self, refresh_before_seconds: float = 300):
        self.policy = ExpiryPolicy(refresh_before_seconds=refresh_before_seconds)
        self.calls = 0

    async def get_configuration(self):
        self.calls += 1
        return self.policy


@pytest.fixture
def clock():
    """Clock frozen at a known instant."""
    return FixedClock()


@pytest.fixture
def token_generator():
    return MockTokenGenerator()


@pytest.fixture
def configuration_provider():
    return StaticConfigurationProvider(refresh_before_seconds=300)


@pytest.fixture
def session_store():
    return InMemorySessionStore({"accessToken": "previous-token", "email": "user@example.com"})


@pytest.fixture
def metrics():
    """Metrics collector on a private registry."""
    registry = CollectorRegistry()
    return MetricsCollector("session-test", registry)
