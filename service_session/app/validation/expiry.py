"""
Expiry evaluation for access tokens.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def is_expired(expiry_time: Optional[datetime], offset_seconds: float = 0,
               now: Optional[datetime] = None) -> bool:
    """Return True if ``expiry_time`` falls before ``now + offset_seconds``.

    A missing expiry time always counts as expired. With an offset of zero
    this answers "is the token unusable right now"; with a positive offset
    it answers "will it expire within the lookahead window".
    """
    if expiry_time is None:
        return True
    if offset_seconds is None:
        offset_seconds = 0
    if offset_seconds < 0:
        raise ValueError("offset_seconds must be non-negative")

    current = now if now is not None else utc_now()
    try:
        horizon = current + timedelta(seconds=offset_seconds)
    except OverflowError:
        # Window reaches past datetime.max, so every token falls inside it.
        return True
    return expiry_time < horizon
