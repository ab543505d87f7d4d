"""
Shared utilities for the Session Verifier.

Common building blocks consumed by the session service:

- config: Settings via pydantic-settings
- logging: Structured logging with trace correlation and secret redaction
- metrics: Prometheus metrics helpers
- tracing: OpenTelemetry span helpers
- errors: Canonical error types and responses
- test_helpers: Token factories and fakes for tests

Do not import from service_* packages into shared/.
"""
