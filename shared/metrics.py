"""
Shared metrics configuration for the Session Verifier.
"""

from prometheus_client import Counter, Histogram, CollectorRegistry, REGISTRY
from typing import Dict, Any, Optional
import time
import threading
from contextlib import contextmanager


class MetricsCollector:
    """Centralized metrics collector for session verification."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else REGISTRY
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up session metrics."""
        self._metrics["session_verifications_total"] = Counter(
            "session_verifications_total",
            "Total session verifications by outcome",
            ["outcome", "service"],
            registry=self.registry
        )

        self._metrics["token_exchanges_total"] = Counter(
            "token_exchanges_total",
            "Total token exchanges with the identity provider",
            ["status", "service"],
            registry=self.registry
        )

        self._metrics["token_exchange_duration_seconds"] = Histogram(
            "token_exchange_duration_seconds",
            "Token exchange duration in seconds",
            ["service"],
            registry=self.registry
        )

    def record_verification(self, outcome: str):
        """Record the outcome of one verify call."""
        self._metrics["session_verifications_total"].labels(
            outcome=outcome,
            service=self.service_name
        ).inc()

    def record_exchange(self, status: str):
        """Record a token exchange attempt."""
        self._metrics["token_exchanges_total"].labels(
            status=status,
            service=self.service_name
        ).inc()

    @contextmanager
    def time_exchange(self):
        """Context manager to time a token exchange."""
        start_time = time.time()
        try:
            yield
        finally:
            duration = time.time() - start_time
            self._metrics["token_exchange_duration_seconds"].labels(
                service=self.service_name
            ).observe(duration)


_default_collector: Optional[MetricsCollector] = None
_lock = threading.Lock()


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service.

    Only one collector may be bound to the global registry (prometheus refuses
    duplicate metric names), so it is created once and reused.
    """
    global _default_collector

    if registry is not None:
        return MetricsCollector(service_name, registry)

    with _lock:
        if _default_collector is None:
            _default_collector = MetricsCollector(service_name)
        return _default_collector
