"""Domain enums for the restaurant booking core."""

from enum import Enum


class ReservationStatus(str, Enum):
    """Reservation status enumeration."""

    BOOKED = "booked"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        """Completed and cancelled reservations have no further transitions."""
        return self in (ReservationStatus.COMPLETED, ReservationStatus.CANCELLED)


class UserRole(str, Enum):
    """Roles known to the identity layer."""

    USER = "user"
    ADMIN = "admin"


class ErrorKind(str, Enum):
    """Abstract error kinds, independent of any transport status code."""

    MALFORMED_INPUT = "malformed_input"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    POLICY_VIOLATION = "policy_violation"
    TRANSIENT = "transient"


class ValidationCategory(str, Enum):
    """Validation error categories."""

    DATE_TIME = "datetime"
    WORKING_HOURS = "working_hours"
    STATUS = "status"
    OWNERSHIP = "ownership"
    QUOTA = "quota"
    REVIEW = "review"
    INPUT = "input"


class ReviewMutationKind(str, Enum):
    """Review mutations that invalidate a restaurant's rating aggregate."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
