"""
Reservation status state machine.

booked -> cancelled   owner or admin, no time gate
booked -> completed   admin always; owner only once the scheduled instant has passed
completed/cancelled   terminal, unless reopening is enabled for admins
"""

from datetime import datetime
from typing import Optional, Union

from core.utils_datetime import to_storage_instant
from domain.enums import ErrorKind, ReservationStatus, ValidationCategory
from domain.validation import ValidationError, ValidationResult


def parse_status(value: Union[str, ReservationStatus, None]) -> Optional[ReservationStatus]:
    """Resolve a requested status, returning None for values outside the state set."""
    if isinstance(value, ReservationStatus):
        return value
    if not isinstance(value, str):
        return None
    try:
        return ReservationStatus(value.strip().lower())
    except ValueError:
        return None


def validate_transition(
    current: Union[str, ReservationStatus],
    requested: Union[str, ReservationStatus, None],
    scheduled_instant: datetime,
    actor_is_admin: bool,
    now: datetime,
    allow_reopen: bool = False,
) -> ValidationResult:
    """
    Decide whether a reservation may move from its current status to the requested one.

    Args:
        current: Status the reservation is in now
        requested: Status the caller asks for
        scheduled_instant: Reservation instant the completion gate compares against;
            pass the new instant when the same request reschedules
        actor_is_admin: Whether the caller holds admin rights
        now: Single clock sample for this request
        allow_reopen: Let admins move terminal reservations back to booked

    Returns:
        ValidationResult; the accepted target status is in normalized_data["status"]
    """
    result = ValidationResult(is_valid=True)

    current_status = ReservationStatus(current)
    target = parse_status(requested)

    if target is None:
        result.add_error(ValidationError(
            category=ValidationCategory.STATUS,
            kind=ErrorKind.MALFORMED_INPUT,
            message=f"Invalid reservation status: {requested}",
            field="status",
            code="INVALID_STATUS",
            details={"allowed": [s.value for s in ReservationStatus]}
        ))
        return result

    details = {"from": current_status.value, "to": target.value}

    if target == current_status:
        result.normalized_data["status"] = target
        return result

    if current_status.is_terminal:
        if allow_reopen and actor_is_admin and target == ReservationStatus.BOOKED:
            result.normalized_data["status"] = target
            return result

        result.add_error(ValidationError(
            category=ValidationCategory.STATUS,
            kind=ErrorKind.POLICY_VIOLATION,
            message=f"Reservation is already {current_status.value}",
            field="status",
            code="TERMINAL_STATE",
            details=details
        ))
        return result

    if target == ReservationStatus.COMPLETED and not actor_is_admin:
        scheduled = to_storage_instant(scheduled_instant)
        now = to_storage_instant(now)
        if now < scheduled:
            result.add_error(ValidationError(
                category=ValidationCategory.STATUS,
                kind=ErrorKind.POLICY_VIOLATION,
                message="Cannot mark reservation as completed before its scheduled time",
                field="status",
                code="COMPLETED_BEFORE_SCHEDULE",
                details={
                    **details,
                    "scheduled_at": scheduled.isoformat(),
                    "now": now.isoformat(),
                }
            ))
            return result

    result.normalized_data["status"] = target
    return result
