"""
Delegation endpoint client for token exchange.
"""

from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel

from shared.logging import get_logger
from shared.errors import ExchangeRejectedError, ExchangeTransportError

JWT_BEARER_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"


class DelegationRequest(BaseModel):
    """Body of a token exchange request."""
    client_id: str
    id_token: str
    scope: str = "passthrough"
    grant_type: str = JWT_BEARER_GRANT_TYPE
    api_type: str = "auth0"


class DelegationResponse(BaseModel):
    """Body returned by the delegation endpoint."""
    id_token: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None


class DelegationClient:
    """Client for exchanging a still-valid token for a new one."""

    def __init__(self, auth0_url: str, timeout: float = 10.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.auth0_url = auth0_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.logger = get_logger("session.delegation_client")

    @property
    def delegation_url(self) -> str:
        return f"{self.auth0_url}/delegation"

    async def exchange(self, token: str, client_id: str) -> str:
        """Trade ``token`` for a newly issued one.

        Exactly one request is sent. Network failures raise
        ExchangeTransportError, provider errors raise ExchangeRejectedError.
        """
        body = DelegationRequest(client_id=client_id, id_token=token)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.delegation_url, json=body.model_dump())
        except httpx.HTTPError as e:
            self.logger.error("Delegation endpoint unreachable", error=str(e))
            raise ExchangeTransportError(
                f"Unable to reach identity provider: {e}",
                details={"cause": str(e), "url": self.delegation_url}
            ) from e

        data = self._parse_body(response)

        if data.error:
            description = data.error_description or data.error
            self.logger.warning(
                "Token exchange rejected",
                error=data.error,
                status_code=response.status_code
            )
            raise ExchangeRejectedError(description, error=data.error)

        if not data.id_token:
            self.logger.warning("Token exchange response missing id_token", status_code=response.status_code)
            raise ExchangeRejectedError("Identity provider did not return a new token")

        self.logger.info("Token exchanged successfully", status_code=response.status_code)
        return data.id_token

    def _parse_body(self, response: httpx.Response) -> DelegationResponse:
        """Read the JSON body, mapping unusable responses to transport errors."""
        payload: Any
        try:
            payload = response.json()
        except ValueError:
            payload = None

        if isinstance(payload, dict) and payload.get("error"):
            return DelegationResponse.model_validate(self._error_fields(payload))

        if response.status_code >= 400 or not isinstance(payload, dict):
            self.logger.error(
                "Unexpected delegation response",
                status_code=response.status_code
            )
            raise ExchangeTransportError(
                f"Identity provider error: {response.status_code}",
                details={"status_code": response.status_code}
            )

        id_token = payload.get("id_token")
        if id_token is not None and not isinstance(id_token, str):
            self.logger.warning(
                "Token exchange returned a non-string id_token",
                id_token_type=type(id_token).__name__
            )
            raise ExchangeRejectedError(
                "Identity provider returned an invalid token",
                details={"id_token_type": type(id_token).__name__}
            )

        return DelegationResponse(id_token=id_token)

    @staticmethod
    def _error_fields(payload: Dict[str, Any]) -> Dict[str, Optional[str]]:
        fields = ("error", "error_description")
        return {
            key: (str(payload[key]) if payload.get(key) is not None else None)
            for key in fields
        }
