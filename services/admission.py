"""
Reservation admission policy: ownership, per-user quota and listing scope.
"""

from dataclasses import dataclass
from typing import Optional

from domain.enums import ErrorKind, ValidationCategory
from domain.validation import ValidationError, ValidationResult


DEFAULT_MAX_ACTIVE_RESERVATIONS = 3


@dataclass(frozen=True)
class ListingScope:
    """Query shape for listing reservations; None means unrestricted."""
    user_id: Optional[str]
    restaurant_id: Optional[int]


def check_admission(
    actor_id: str,
    actor_is_admin: bool,
    target_owner_id: Optional[str],
    current_active_count: int,
    max_active: int = DEFAULT_MAX_ACTIVE_RESERVATIONS,
) -> ValidationResult:
    """
    Check whether a reservation may be created for target_owner_id.

    Non-admins may only book for themselves and may hold at most
    max_active booked reservations system-wide. Admins are exempt from both.
    """
    result = ValidationResult(is_valid=True)

    if not target_owner_id:
        result.add_error(ValidationError(
            category=ValidationCategory.INPUT,
            kind=ErrorKind.MALFORMED_INPUT,
            message="user is required in request body",
            field="user",
            code="USER_REQUIRED"
        ))
        return result

    if actor_is_admin:
        return result

    if target_owner_id != actor_id:
        result.add_error(ValidationError(
            category=ValidationCategory.OWNERSHIP,
            kind=ErrorKind.UNAUTHORIZED,
            message=f"User {actor_id} is not authorized to create a reservation for user {target_owner_id}",
            field="user",
            code="NOT_OWNER",
            details={"actor_id": actor_id, "owner_id": target_owner_id}
        ))
        return result

    if current_active_count >= max_active:
        result.add_error(ValidationError(
            category=ValidationCategory.QUOTA,
            kind=ErrorKind.POLICY_VIOLATION,
            message=f"The user with ID {target_owner_id} has already made {max_active} reservations",
            field="user",
            code="QUOTA_EXCEEDED",
            details={"active_count": current_active_count, "max_active": max_active}
        ))

    return result


def check_ownership(
    actor_id: str,
    actor_is_admin: bool,
    owner_id: str,
    action: str,
) -> ValidationResult:
    """Only the owner or an admin may act on a specific reservation."""
    result = ValidationResult(is_valid=True)

    if actor_is_admin or actor_id == owner_id:
        return result

    result.add_error(ValidationError(
        category=ValidationCategory.OWNERSHIP,
        kind=ErrorKind.UNAUTHORIZED,
        message=f"User {actor_id} is not authorized to {action} this reservation",
        code="NOT_OWNER",
        details={"actor_id": actor_id, "owner_id": owner_id, "action": action}
    ))
    return result


def listing_scope(
    actor_id: str,
    actor_is_admin: bool,
    restaurant_id: Optional[int] = None,
) -> ListingScope:
    """Non-admins see only their own reservations; admins see everyone's."""
    if actor_is_admin:
        return ListingScope(user_id=None, restaurant_id=restaurant_id)
    return ListingScope(user_id=actor_id, restaurant_id=restaurant_id)
