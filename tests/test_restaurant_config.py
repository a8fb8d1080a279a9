"""
Tests for working-window parsing and evaluation.
Covers same-day and overnight windows, inclusive bounds and bad definitions.
"""

import pytest
from datetime import datetime

import pytz

from core.restaurant_config import (
    WorkingWindow,
    check_working_hours,
    is_within_window,
    parse_clock_time,
    validate_window_definition,
)
from domain.enums import ErrorKind
from domain.errors import MalformedInputError, PolicyViolationError


BANGKOK = pytz.timezone("Asia/Bangkok")


def at(hour, minute=0, second=0):
    """Bangkok wall-clock instant on a fixed day."""
    return BANGKOK.localize(datetime(2025, 6, 1, hour, minute, second))


# ============================================================================
# Clock Time Parsing Tests
# ============================================================================

@pytest.mark.unit
class TestParseClockTime:
    """Tests for HH:MM / HH:MM:SS parsing."""

    @pytest.mark.parametrize("value,expected", [
        ("00:00", 0),
        ("10:00", 36000),
        ("23:59:59", 86399),
        ("03:00:30", 10830),
    ])
    def test_valid_values(self, value, expected):
        assert parse_clock_time(value) == expected

    @pytest.mark.parametrize("value", ["24:00", "12:60", "12:00:60", "noon", "", None, "12", "1200", "9:30", "09:3", "009:30"])
    def test_invalid_values(self, value):
        assert parse_clock_time(value) is None


# ============================================================================
# Same-Day Window Tests
# ============================================================================

@pytest.mark.unit
class TestSameDayWindow:
    """Tests for a 10:00 - 22:00 window."""

    @pytest.mark.parametrize("instant", [at(10, 0), at(22, 0), at(15, 30), at(21, 59, 59)])
    def test_inside(self, instant):
        assert is_within_window(instant, "10:00", "22:00", "Asia/Bangkok")

    @pytest.mark.parametrize("instant", [at(9, 59, 59), at(22, 0, 1), at(2, 0), at(23, 0)])
    def test_outside(self, instant):
        assert not is_within_window(instant, "10:00", "22:00", "Asia/Bangkok")

    def test_evaluated_in_restaurant_zone(self):
        """03:00 UTC is 10:00 in Bangkok."""
        instant = pytz.utc.localize(datetime(2025, 6, 1, 3, 0))
        assert is_within_window(instant, "10:00", "22:00", "Asia/Bangkok")
        assert not is_within_window(instant, "10:00", "22:00", "Europe/London")


# ============================================================================
# Overnight Window Tests
# ============================================================================

@pytest.mark.unit
class TestOvernightWindow:
    """Tests for a 20:00 - 03:00 window."""

    @pytest.mark.parametrize("instant", [at(20, 0), at(23, 30), at(0, 0), at(2, 0), at(3, 0)])
    def test_inside(self, instant):
        assert is_within_window(instant, "20:00", "03:00", "Asia/Bangkok")

    @pytest.mark.parametrize("instant", [at(3, 0, 1), at(12, 0), at(19, 59, 59)])
    def test_outside(self, instant):
        assert not is_within_window(instant, "20:00", "03:00", "Asia/Bangkok")


# ============================================================================
# Bad Definition Tests
# ============================================================================

@pytest.mark.unit
class TestBadDefinitions:
    """Unparsable bounds or zones always evaluate to closed."""

    @pytest.mark.parametrize("open_time,close_time", [
        ("25:00", "22:00"),
        ("10:00", "late"),
        (None, "22:00"),
    ])
    def test_bad_bounds_are_closed(self, open_time, close_time):
        assert not is_within_window(at(12, 0), open_time, close_time, "Asia/Bangkok")

    def test_unknown_zone_is_closed(self):
        assert not is_within_window(at(12, 0), "10:00", "22:00", "Atlantis/Capital")

    def test_validate_window_definition_collects_errors(self):
        result = validate_window_definition("25:00", "22:00", "Atlantis/Capital")
        assert not result.is_valid
        assert {e.code for e in result.errors} == {"INVALID_CLOCK_TIME", "UNKNOWN_TIMEZONE"}
        assert all(e.kind == ErrorKind.MALFORMED_INPUT for e in result.errors)
        with pytest.raises(MalformedInputError):
            result.raise_for_errors()

    def test_validate_window_definition_accepts_overnight(self):
        assert validate_window_definition("20:00", "03:00:00", "Asia/Bangkok").is_valid


# ============================================================================
# WorkingWindow Tests
# ============================================================================

@pytest.mark.unit
class TestWorkingWindow:
    """Tests for the WorkingWindow value object and its check."""

    def test_properties(self):
        window = WorkingWindow("20:00", "03:00", "Asia/Bangkok")
        assert window.is_valid
        assert window.is_overnight
        assert window.label == "20:00 - 03:00"
        assert window.contains(at(1, 0))

    def test_same_day_is_not_overnight(self):
        assert not WorkingWindow("10:00", "22:00", "Asia/Bangkok").is_overnight

    def test_check_passes_inside(self):
        assert check_working_hours(at(12, 0), WorkingWindow("10:00", "22:00", "Asia/Bangkok")).is_valid

    def test_check_rejection_carries_bounds(self):
        result = check_working_hours(at(23, 0), WorkingWindow("10:00", "22:00", "Asia/Bangkok"))
        assert not result.is_valid

        error = result.errors[0]
        assert error.kind == ErrorKind.POLICY_VIOLATION
        assert error.code == "OUTSIDE_WORKING_HOURS"
        assert error.message == "Reservation time is outside restaurant working hours (10:00 - 22:00)"
        assert error.details["local_time"] == "23:00:00"
        assert error.details["timezone"] == "Asia/Bangkok"

        with pytest.raises(PolicyViolationError):
            result.raise_for_errors()
