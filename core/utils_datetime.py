"""
DateTime utilities for normalizing incoming reservation timestamps.
Resolves loosely formatted input into offset-aware instants and converts
them between UTC storage and restaurant-local wall-clock time.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional
import re
import pytz

from domain.errors import MalformedInputError


UTC = pytz.utc

# Local time followed directly by a 2-digit:2-digit offset with no sign,
# e.g. "2025-11-02T19:00:0007:00" or "2025-11-02T19:0007:00".
GLUED_OFFSET_WITH_SECONDS = re.compile(
    r'^(\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2}(?:\.\d{1,6})?)(\d{2}:\d{2})$'
)
GLUED_OFFSET_MINUTES_ONLY = re.compile(
    r'^(\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2})(\d{2}:\d{2})$'
)

# Explicit UTC marker or numeric offset at the end of the value
EXPLICIT_OFFSET = re.compile(r'(?:[Zz]|[+-]\d{2}(?::?\d{2})?)$')

# Wall-clock shapes accepted by the restaurant-zone fallback
LOCAL_FORMATS = (
    '%Y-%m-%dT%H:%M:%S.%f',
    '%Y-%m-%dT%H:%M:%S',
    '%Y-%m-%dT%H:%M',
    '%Y-%m-%d %H:%M:%S',
    '%Y-%m-%d %H:%M',
)


@dataclass(frozen=True)
class TimestampResult:
    """Tagged outcome of timestamp normalization."""
    is_valid: bool
    raw: Any
    instant: Optional[datetime] = None
    normalized_text: Optional[str] = None
    error: Optional[str] = None


class SystemClock:
    """Clock backed by the real UTC time."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """Clock pinned to a single instant; used by tests and replays."""

    def __init__(self, instant: datetime):
        self.instant = to_storage_instant(instant)

    def now(self) -> datetime:
        return self.instant

    def advance(self, **kwargs) -> None:
        """Move the pinned instant forward by a timedelta(**kwargs)."""
        self.instant = self.instant + timedelta(**kwargs)


def get_timezone(zone: str) -> Optional[pytz.BaseTzInfo]:
    """Resolve an IANA zone name, returning None for unknown zones."""
    if not zone or not isinstance(zone, str):
        return None
    try:
        return pytz.timezone(zone)
    except pytz.UnknownTimeZoneError:
        return None


def repair_glued_offset(text: str) -> str:
    """
    Insert the missing '+' in a glued-on offset.

    Values that already carry an explicit marker, or that do not match
    one of the recoverable shapes, are returned unchanged.
    """
    for pattern in (GLUED_OFFSET_WITH_SECONDS, GLUED_OFFSET_MINUTES_ONLY):
        match = pattern.match(text)
        if match:
            return f"{match.group(1)}+{match.group(2)}"
    return text


def _parse_offset_aware(text: str) -> Optional[datetime]:
    """Stage 1: ISO-8601 with an explicit offset."""
    if not EXPLICIT_OFFSET.search(text):
        return None

    candidate = text
    if candidate[-1] in 'Zz':
        candidate = candidate[:-1] + '+00:00'

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        return None
    return parsed.astimezone(UTC)


def _parse_wall_clock(text: str, tz: pytz.BaseTzInfo) -> Optional[datetime]:
    """Stage 2: naive wall-clock time localized in the restaurant zone."""
    naive = None
    for fmt in LOCAL_FORMATS:
        try:
            naive = datetime.strptime(text, fmt)
            break
        except ValueError:
            continue

    if naive is None:
        return None

    try:
        local = tz.localize(naive, is_dst=None)
    except pytz.NonExistentTimeError:
        # Skipped by a forward DST jump
        return None
    except pytz.AmbiguousTimeError:
        # Repeated hour after a backward jump resolves to its first occurrence
        local = tz.localize(naive, is_dst=True)

    return local.astimezone(UTC)


def normalize_timestamp(raw: Any, fallback_zone: str) -> TimestampResult:
    """
    Resolve a loosely formatted timestamp into a precise UTC instant.

    Args:
        raw: Incoming timestamp value (expected to be a string)
        fallback_zone: Restaurant IANA zone used for values without an offset

    Returns:
        TimestampResult; is_valid is False with a reason when nothing parses
    """
    if not isinstance(raw, str):
        return TimestampResult(is_valid=False, raw=raw, error="Timestamp must be a string")

    text = raw.strip()
    if not text:
        return TimestampResult(is_valid=False, raw=raw, error="Timestamp is empty")

    text = repair_glued_offset(text)

    instant = _parse_offset_aware(text)
    if instant is not None:
        return TimestampResult(is_valid=True, raw=raw, instant=instant, normalized_text=text)

    tz = get_timezone(fallback_zone)
    if tz is None:
        return TimestampResult(
            is_valid=False,
            raw=raw,
            normalized_text=text,
            error=f"Unknown timezone: {fallback_zone}"
        )

    instant = _parse_wall_clock(text, tz)
    if instant is not None:
        return TimestampResult(is_valid=True, raw=raw, instant=instant, normalized_text=text)

    return TimestampResult(
        is_valid=False,
        raw=raw,
        normalized_text=text,
        error=f"Invalid dateTime: {raw}"
    )


def parse_timestamp_or_raise(raw: Any, fallback_zone: str, field: str = "dateTime") -> datetime:
    """Normalize a timestamp, raising MalformedInputError when it cannot be resolved."""
    result = normalize_timestamp(raw, fallback_zone)
    if not result.is_valid:
        raise MalformedInputError(
            result.error,
            code="INVALID_DATETIME",
            details={"field": field, "value": raw, "timezone": fallback_zone},
        )
    return result.instant


def to_storage_instant(dt: datetime) -> datetime:
    """
    Convert an instant to aware UTC for storage.

    Naive values are treated as already being UTC.
    """
    if dt.tzinfo is None:
        return UTC.localize(dt)
    return dt.astimezone(UTC)


def to_local(dt: datetime, zone: str) -> datetime:
    """Convert an instant to wall-clock time in the named zone."""
    tz = get_timezone(zone)
    if tz is None:
        raise MalformedInputError(
            f"Unknown timezone: {zone}",
            code="UNKNOWN_TIMEZONE",
            details={"timezone": zone},
        )
    return to_storage_instant(dt).astimezone(tz)


def seconds_since_midnight(dt: datetime) -> int:
    """Seconds elapsed since local midnight of the given wall-clock value."""
    return dt.hour * 3600 + dt.minute * 60 + dt.second
