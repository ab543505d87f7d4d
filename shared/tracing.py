"""Tracing helpers built on the OpenTelemetry API.

Without an SDK installed and configured by the host application the tracer
is a no-op, so spans cost nothing in tests or command-line use.
"""

from typing import Optional, Dict, Any
from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode


def get_tracer(name: str):
    """Get a tracer instance."""
    return trace.get_tracer(name)


@contextmanager
def traced_operation(tracer, name: str, attributes: Optional[Dict[str, Any]] = None):
    """Run a block inside a span, marking the span as failed on exceptions."""
    with tracer.start_as_current_span(
        name,
        attributes=attributes or {},
        record_exception=False,
        set_status_on_exception=False
    ) as span:
        try:
            yield span
        except Exception as exc:
            span.record_exception(exc)
            span.set_status(Status(StatusCode.ERROR, str(exc)))
            raise
