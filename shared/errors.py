"""
Shared error handling for the Session Verifier.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel

from opentelemetry import trace


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class SessionException(Exception):
    """Base exception for session verification failures."""

    requires_login = False

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        trace_id = None
        current_span = trace.get_current_span()
        if current_span and current_span.is_recording():
            span_context = current_span.get_span_context()
            if span_context.trace_id != 0:
                trace_id = f"{span_context.trace_id:032x}"

        return ErrorResponse(
            trace_id=trace_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class AuthenticationError(SessionException):
    """The session cannot be recovered; the user has to log in again."""

    requires_login = True

    def __init__(self, code: str = "AUTHENTICATION_ERROR", message: str = "Authentication failed",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(code, message, details)


class UnauthenticatedError(AuthenticationError):
    """No access token was supplied."""

    def __init__(self, message: str = "Unauthenticated, please login before using this service.",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__("UNAUTHENTICATED", message, details)


class MalformedTokenError(AuthenticationError):
    """Token could not be decoded or carries no expiry claim."""

    def __init__(self, message: str = "Malformed access token. Please login again.",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__("MALFORMED_TOKEN", message, details)


class TokenExpiredError(AuthenticationError):
    """Token expiry has been reached."""

    def __init__(self, message: str = "Unauthorised, your access token has expired. Please login again.",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__("TOKEN_EXPIRED", message, details)


class ConfigurationUnavailableError(SessionException):
    """Expiry policy could not be retrieved."""

    def __init__(self, message: str = "Configuration unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_UNAVAILABLE", message, details)


class ExchangeTransportError(SessionException):
    """The identity provider could not be reached."""

    def __init__(self, message: str = "Token exchange failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("EXCHANGE_TRANSPORT_ERROR", message, details)


class ExchangeRejectedError(SessionException):
    """The identity provider refused the exchange."""

    def __init__(self, message: str = "Token exchange rejected", error: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        if error is not None:
            details.setdefault("error", error)
        self.error = error
        super().__init__("EXCHANGE_REJECTED", message, details)


class SessionPersistenceError(SessionException):
    """The renewed token could not be written to the session store."""

    def __init__(self, message: str = "Failed to persist session", details: Optional[Dict[str, Any]] = None):
        super().__init__("SESSION_PERSISTENCE_ERROR", message, details)
