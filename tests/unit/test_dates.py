"""Unit tests for date helpers."""

from datetime import date

import pytest

from crt_monitor.utils.dates import (
    arrival_hour,
    departure_hour,
    is_within_sale_window,
    parse_hhmm,
)


class TestTimes:
    """Test time parsing."""

    def test_parse_hhmm(self):
        """Test valid and invalid times."""
        assert parse_hhmm("08:15") == (8, 15)
        assert parse_hhmm("----") is None
        assert parse_hhmm("") is None
        assert parse_hhmm(None) is None

    def test_departure_hour(self):
        """Test the departure hour."""
        assert departure_hour("07:59") == 7
        assert departure_hour("--") is None

    @pytest.mark.parametrize(
        "depart,arrive,duration,expected",
        [
            ("08:00", "12:30", "04:30", 12),
            ("22:30", "01:30", "03:00", 25),
            ("20:00", "06:00", "10:00", 30),
            ("22:30", "01:30", "", 25),
            ("08:00", "12:30", "", 12),
            ("08:00", "----", "", None),
        ],
    )
    def test_arrival_hour(self, depart, arrive, duration, expected):
        """Test arrival hours past midnight."""
        assert arrival_hour(depart, arrive, duration) == expected


class TestSaleWindow:
    """Test the ticket sale window."""

    def test_window_bounds(self):
        """Test today through fifteen days ahead."""
        today = date(2026, 2, 1)
        assert is_within_sale_window(date(2026, 2, 1), today)
        assert is_within_sale_window(date(2026, 2, 16), today)
        assert not is_within_sale_window(date(2026, 2, 17), today)
        assert not is_within_sale_window(date(2026, 1, 31), today)
