"""
Restaurant working-window configuration and evaluation.
One fixed daily open/close window per restaurant, evaluated in the
restaurant's own timezone, with support for windows that wrap past midnight.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import logging
import re

from core.utils_datetime import get_timezone, seconds_since_midnight, to_local
from domain.enums import ErrorKind, ValidationCategory
from domain.models import CLOCK_TIME_PATTERN
from domain.validation import ValidationError, ValidationResult


logger = logging.getLogger(__name__)

CLOCK_TIME = re.compile(CLOCK_TIME_PATTERN)


def parse_clock_time(value: Optional[str]) -> Optional[int]:
    """
    Parse "HH:MM" or "HH:MM:SS" into seconds since midnight.

    Hours are two digits, 00-23.

    Returns:
        Seconds since midnight, or None if unparsable or out of range
    """
    if not value or not isinstance(value, str):
        return None

    match = CLOCK_TIME.match(value.strip())
    if not match:
        return None

    hour = int(match.group(1))
    minute = int(match.group(2))
    second = int(match.group(4)) if match.group(4) else 0

    return hour * 3600 + minute * 60 + second


def is_within_window(instant: datetime, open_local: str, close_local: str, zone: str) -> bool:
    """
    Check whether an instant falls inside a daily working window.

    Bounds are inclusive. When open > close the window is overnight and
    the closed period is the interval strictly between close and open.
    Unparsable bounds or an unknown zone evaluate to closed.
    """
    open_seconds = parse_clock_time(open_local)
    close_seconds = parse_clock_time(close_local)
    if open_seconds is None or close_seconds is None:
        return False

    if get_timezone(zone) is None:
        return False

    local_seconds = seconds_since_midnight(to_local(instant, zone))

    if open_seconds <= close_seconds:
        return open_seconds <= local_seconds <= close_seconds

    return local_seconds >= open_seconds or local_seconds <= close_seconds


@dataclass(frozen=True)
class WorkingWindow:
    """Daily open/close window in a restaurant's local time."""
    open_time: str
    close_time: str
    timezone: str

    @property
    def open_seconds(self) -> Optional[int]:
        return parse_clock_time(self.open_time)

    @property
    def close_seconds(self) -> Optional[int]:
        return parse_clock_time(self.close_time)

    @property
    def is_valid(self) -> bool:
        """Both bounds parse and the zone is known."""
        return (
            self.open_seconds is not None
            and self.close_seconds is not None
            and get_timezone(self.timezone) is not None
        )

    @property
    def is_overnight(self) -> bool:
        """Check if the window wraps past midnight."""
        if not self.is_valid:
            return False
        return self.open_seconds > self.close_seconds

    @property
    def label(self) -> str:
        """Human-readable bounds, e.g. "10:00 - 22:00"."""
        return f"{self.open_time} - {self.close_time}"

    def contains(self, instant: datetime) -> bool:
        """Check if the restaurant accepts reservations at this instant."""
        return is_within_window(instant, self.open_time, self.close_time, self.timezone)

    @classmethod
    def for_restaurant(cls, restaurant) -> "WorkingWindow":
        """Build the window from a restaurant record."""
        return cls(
            open_time=restaurant.open_time,
            close_time=restaurant.close_time,
            timezone=restaurant.timezone,
        )


def check_working_hours(instant: datetime, window: WorkingWindow) -> ValidationResult:
    """
    Validate a reservation instant against a restaurant's working window.

    Returns:
        ValidationResult carrying the evaluated bounds on rejection
    """
    result = ValidationResult(is_valid=True)

    if window.contains(instant):
        return result

    local_time = None
    if get_timezone(window.timezone) is not None:
        local_time = to_local(instant, window.timezone).strftime('%H:%M:%S')

    logger.info(
        "Reservation instant outside working hours",
        extra={"window": window.label, "timezone": window.timezone, "local_time": local_time}
    )

    result.add_error(ValidationError(
        category=ValidationCategory.WORKING_HOURS,
        kind=ErrorKind.POLICY_VIOLATION,
        message=f"Reservation time is outside restaurant working hours ({window.label})",
        field="dateTime",
        code="OUTSIDE_WORKING_HOURS",
        details={
            "open_time": window.open_time,
            "close_time": window.close_time,
            "timezone": window.timezone,
            "overnight": window.is_overnight,
            "local_time": local_time,
        }
    ))
    return result


def validate_window_definition(open_time: str, close_time: str, timezone: str) -> ValidationResult:
    """Validate a window being set or changed on a restaurant."""
    result = ValidationResult(is_valid=True)

    for field_name, value in (("open_time", open_time), ("close_time", close_time)):
        if parse_clock_time(value) is None:
            result.add_error(ValidationError(
                category=ValidationCategory.WORKING_HOURS,
                kind=ErrorKind.MALFORMED_INPUT,
                message=f"{field_name} must use 24h HH:MM or HH:MM:SS format",
                field=field_name,
                code="INVALID_CLOCK_TIME",
                details={"value": value}
            ))

    if get_timezone(timezone) is None:
        result.add_error(ValidationError(
            category=ValidationCategory.WORKING_HOURS,
            kind=ErrorKind.MALFORMED_INPUT,
            message=f"Unknown timezone: {timezone}",
            field="timezone",
            code="UNKNOWN_TIMEZONE",
            details={"value": timezone}
        ))

    return result
