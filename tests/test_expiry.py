"""
Tests for expiry classification and display banding.
"""

import pytest
from datetime import date, datetime

from pharmascan import ExpiryStatus, classify_expiry
from pharmascan.expiry import days_until
from inventory.utils import expiry_band, months_until, parse_operator_date

TODAY = date(2026, 1, 1)


class TestClassifyExpiry:
    """Three-way status plus UNKNOWN."""

    @pytest.mark.parametrize("expiry,expected", [
        (date(2025, 12, 31), ExpiryStatus.EXPIRED),
        (date(2026, 3, 1), ExpiryStatus.EXPIRING),
        (date(2027, 1, 1), ExpiryStatus.OK),
        (None, ExpiryStatus.UNKNOWN),
    ])
    def test_reference_cases(self, expiry, expected):
        assert classify_expiry(expiry, TODAY, 90) == expected

    def test_today_is_expiring(self):
        assert classify_expiry(TODAY, TODAY, 90) == ExpiryStatus.EXPIRING

    def test_threshold_inclusive(self):
        assert classify_expiry(date(2026, 4, 1), TODAY, 90) == ExpiryStatus.EXPIRING
        assert classify_expiry(date(2026, 4, 2), TODAY, 90) == ExpiryStatus.OK

    def test_default_threshold(self):
        assert classify_expiry(date(2026, 3, 31), TODAY) == ExpiryStatus.EXPIRING

    def test_zero_threshold(self):
        assert classify_expiry(date(2026, 1, 2), TODAY, 0) == ExpiryStatus.OK
        assert classify_expiry(TODAY, TODAY, 0) == ExpiryStatus.EXPIRING

    def test_time_of_day_ignored(self):
        late = datetime(2026, 1, 1, 23, 59)
        assert classify_expiry(date(2026, 1, 1), late, 90) == ExpiryStatus.EXPIRING
        assert classify_expiry(datetime(2025, 12, 31, 23, 59), TODAY) == ExpiryStatus.EXPIRED

    def test_days_until(self):
        assert days_until(date(2026, 3, 1), TODAY) == 59
        assert days_until(date(2025, 12, 31), TODAY) == -1


class TestExpiryBand:
    """Display-only sub-banding."""

    @pytest.mark.parametrize("expiry,expected", [
        (None, "unknown"),
        (date(2025, 6, 1), "expired"),
        (date(2026, 1, 31), "short"),
        (date(2026, 2, 1), "medium"),
        (date(2026, 3, 31), "medium"),
        (date(2026, 12, 1), "ok"),
    ])
    def test_bands(self, expiry, expected):
        assert expiry_band(expiry, TODAY) == expected

    def test_months_until(self):
        assert months_until(date(2026, 7, 15), TODAY) == 6
        assert months_until(date(2028, 1, 1), TODAY) == 24


class TestOperatorDates:
    """Dates typed on the product panel."""

    @pytest.mark.parametrize("text,expected", [
        ("30/06/2026", date(2026, 6, 30)),
        ("2026-06-30", date(2026, 6, 30)),
        ("30 Jun 2026", date(2026, 6, 30)),
        ("01/02/2027", date(2027, 2, 1)),
    ])
    def test_parsed(self, text, expected):
        assert parse_operator_date(text) == expected

    @pytest.mark.parametrize("text", ["", "   ", None, "not a date", "31/02/2026"])
    def test_unparseable(self, text):
        assert parse_operator_date(text) is None
