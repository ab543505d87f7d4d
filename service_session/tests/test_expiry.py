"""
Unit tests for the expiry evaluator.
"""

import pytest
from datetime import datetime, timedelta, timezone

from service_session.app.validation.expiry import is_expired, utc_now
from shared.test_helpers import FIXED_NOW


class TestIsExpired:
    """Test cases for is_expired."""

    def test_missing_expiry_is_always_expired(self):
        assert is_expired(None) is True
        assert is_expired(None, 0, now=FIXED_NOW) is True
        assert is_expired(None, 3600, now=FIXED_NOW) is True

    def test_future_expiry_is_valid(self):
        assert is_expired(FIXED_NOW + timedelta(seconds=1), now=FIXED_NOW) is False

    def test_past_expiry_is_expired(self):
        assert is_expired(FIXED_NOW - timedelta(seconds=1), now=FIXED_NOW) is True

    def test_expiry_equal_to_now_is_not_expired(self):
        """Comparison is strictly less-than."""
        assert is_expired(FIXED_NOW, now=FIXED_NOW) is False

    def test_offset_moves_the_boundary(self):
        expiry = FIXED_NOW + timedelta(seconds=100)

        assert is_expired(expiry, 0, now=FIXED_NOW) is False
        assert is_expired(expiry, 300, now=FIXED_NOW) is True
        assert is_expired(expiry, 100, now=FIXED_NOW) is False
        assert is_expired(expiry, 100.5, now=FIXED_NOW) is True

    def test_far_expiry_outside_window(self):
        assert is_expired(FIXED_NOW + timedelta(seconds=1000), 300, now=FIXED_NOW) is False

    def test_none_offset_treated_as_zero(self):
        assert is_expired(FIXED_NOW + timedelta(seconds=5), None, now=FIXED_NOW) is False

    def test_negative_offset_rejected(self):
        with pytest.raises(ValueError):
            is_expired(FIXED_NOW, -1, now=FIXED_NOW)

    def test_defaults_to_current_time(self):
        assert is_expired(utc_now() + timedelta(hours=1)) is False
        assert is_expired(datetime(2000, 1, 1, tzinfo=timezone.utc)) is True

    @pytest.mark.parametrize("offset", [1e12, 1e15, float("inf")])
    def test_window_past_datetime_max_is_expired(self, offset):
        assert is_expired(FIXED_NOW + timedelta(days=3650), offset, now=FIXED_NOW) is True
