"""
Claim extraction for access tokens.

Signatures are NOT checked here. The identity provider validates the token
when it is exchanged, and resource servers validate it on use; this module
only reads the claims it needs to decide whether a token is worth sending.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import jwt

from shared.errors import MalformedTokenError
from shared.logging import get_logger

logger = get_logger("session.decoder")

_UNVERIFIED_OPTIONS = {
    "verify_signature": False,
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
}


@dataclass(frozen=True)
class DecodedToken:
    """Claims read from a token together with its expiry."""
    claims: Dict[str, Any]
    expires_at: datetime


def expiry_from_claims(claims: Dict[str, Any]) -> Optional[datetime]:
    """Convert the ``exp`` claim to an aware UTC datetime.

    Returns None when the claim is absent or not a number.
    """
    exp = claims.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(exp, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def decode_claims(token: str) -> DecodedToken:
    """Decode a JWT without verifying it and return its claims and expiry."""
    if not token:
        raise MalformedTokenError(details={"reason": "empty_token"})

    try:
        claims = jwt.decode(token, options=dict(_UNVERIFIED_OPTIONS))
    except jwt.InvalidTokenError as e:
        logger.warning("Token could not be decoded", error=str(e))
        raise MalformedTokenError(details={"reason": "undecodable"}) from e

    expires_at = expiry_from_claims(claims)
    if expires_at is None:
        logger.warning("Token has no usable exp claim", claims=sorted(claims))
        raise MalformedTokenError(details={"reason": "missing_exp"})

    return DecodedToken(claims=claims, expires_at=expires_at)
