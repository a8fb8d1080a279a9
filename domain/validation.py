"""
Validation result types shared by the rule engines.
Rule functions collect errors here; services turn them into exceptions.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from .enums import ErrorKind, ValidationCategory
from .errors import ERROR_TYPES, MalformedInputError
from .models import DOMAIN_ERROR_TYPES


M = TypeVar("M", bound=BaseModel)


@dataclass
class ValidationError:
    """Represents a single rejection reason."""
    category: ValidationCategory
    kind: ErrorKind
    message: str
    field: Optional[str] = None
    code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


@dataclass
class ValidationResult:
    """Result of validation with all errors."""
    is_valid: bool = True
    errors: List[ValidationError] = field(default_factory=list)
    normalized_data: Dict[str, Any] = field(default_factory=dict)

    def add_error(self, error: ValidationError):
        """Add an error and mark as invalid."""
        self.errors.append(error)
        self.is_valid = False

    def raise_for_errors(self) -> None:
        """Raise the first error as its typed exception."""
        if self.is_valid:
            return
        first = self.errors[0]
        exc_type = ERROR_TYPES[first.kind]
        details = dict(first.details or {})
        if first.field:
            details.setdefault("field", first.field)
        raise exc_type(first.message, code=first.code, details=details)


def parse_model(
    model: Type[M],
    data: Dict[str, Any],
    code: str,
    context: Optional[Dict[str, Any]] = None,
) -> M:
    """
    Validate a payload against a pydantic model.

    Args:
        model: Model class to validate against
        data: Raw payload
        code: Error code used for generic field errors
        context: Validation context handed to the model's validators

    Returns:
        The validated model instance

    Raises:
        MalformedInputError: When the payload does not validate. Errors raised
            by the model's own rules keep their message and name the code;
            anything else is listed per field.
    """
    try:
        return model.model_validate(data, context=context)
    except PydanticValidationError as e:
        errors = [
            {
                "field": ".".join(str(p) for p in err["loc"]),
                "message": err["msg"],
                "type": err["type"],
            }
            for err in e.errors()
        ]
        first = errors[0]
        if first["type"] in DOMAIN_ERROR_TYPES:
            message, code = first["message"], first["type"].upper()
        else:
            message = "; ".join(f"{err['field']}: {err['message']}" for err in errors)
        raise MalformedInputError(
            message,
            code=code,
            details={"field": first["field"], "errors": errors},
        ) from e
