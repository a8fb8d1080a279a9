"""Domain layer for the restaurant booking core."""

from .enums import (
    ReservationStatus,
    UserRole,
    ErrorKind,
    ValidationCategory,
    ReviewMutationKind,
)
from .errors import (
    BookingError,
    MalformedInputError,
    NotFoundError,
    UnauthorizedError,
    PolicyViolationError,
    TransientError,
)
from .models import (
    Actor,
    RestaurantCreate,
    RestaurantUpdate,
    RestaurantRecord,
    ReservationCreate,
    ReservationUpdate,
    ReservationRecord,
    ReviewCreate,
    ReviewUpdate,
    ReviewRecord,
    RatingAggregate,
    Page,
)
from .validation import ValidationError, ValidationResult, parse_model

__all__ = [
    # Enums
    "ReservationStatus",
    "UserRole",
    "ErrorKind",
    "ValidationCategory",
    "ReviewMutationKind",
    # Errors
    "BookingError",
    "MalformedInputError",
    "NotFoundError",
    "UnauthorizedError",
    "PolicyViolationError",
    "TransientError",
    # Models
    "Actor",
    "RestaurantCreate",
    "RestaurantUpdate",
    "RestaurantRecord",
    "ReservationCreate",
    "ReservationUpdate",
    "ReservationRecord",
    "ReviewCreate",
    "ReviewUpdate",
    "ReviewRecord",
    "RatingAggregate",
    "Page",
    # Validation
    "ValidationError",
    "ValidationResult",
    "parse_model",
]
