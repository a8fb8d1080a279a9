"""Domain exceptions raised by the booking core."""

from typing import Any, Dict, Optional

from .enums import ErrorKind


class BookingError(Exception):
    """Base class for every rejection produced by the booking core."""

    kind: ErrorKind = ErrorKind.MALFORMED_INPUT

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Caller-facing diagnostic payload."""
        return {
            "kind": self.kind.value,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class MalformedInputError(BookingError):
    """Unparsable timestamp, missing required field, or out-of-range value."""

    kind = ErrorKind.MALFORMED_INPUT


class NotFoundError(BookingError):
    """Referenced restaurant, reservation, or review does not exist."""

    kind = ErrorKind.NOT_FOUND


class UnauthorizedError(BookingError):
    """Actor lacks ownership or admin rights for the requested operation."""

    kind = ErrorKind.UNAUTHORIZED


class PolicyViolationError(BookingError):
    """Outside working hours, quota exceeded, invalid transition, missing precondition."""

    kind = ErrorKind.POLICY_VIOLATION


class TransientError(BookingError):
    """Underlying storage failure; the operation may be retried."""

    kind = ErrorKind.TRANSIENT


ERROR_TYPES = {
    ErrorKind.MALFORMED_INPUT: MalformedInputError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.UNAUTHORIZED: UnauthorizedError,
    ErrorKind.POLICY_VIOLATION: PolicyViolationError,
    ErrorKind.TRANSIENT: TransientError,
}
