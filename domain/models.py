"""Domain models using Pydantic v2 for the restaurant booking core."""

from datetime import datetime
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
)
from pydantic_core import PydanticCustomError

from .enums import ReservationStatus, UserRole


# HH:MM or HH:MM:SS, 00:00:00 - 23:59:59
CLOCK_TIME_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)(:([0-5]\d))?$"

MIN_STARS = 0
MAX_STARS = 5
STARS_MESSAGE = "stars must be a number between 0 and 5"
DEFAULT_MESSAGE_MAX_LENGTH = 500

# Error types raised by model rules; their messages are reported as-is
INVALID_STARS = "invalid_stars"
MESSAGE_TOO_LONG = "message_too_long"
DOMAIN_ERROR_TYPES = frozenset({INVALID_STARS, MESSAGE_TOO_LONG})

T = TypeVar("T")


class Actor(BaseModel):
    """The authenticated caller, as resolved by the identity layer."""

    id: str = Field(..., min_length=1)
    is_admin: bool = False

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_role(cls, actor_id: str, role: str) -> "Actor":
        """Build an actor from a role string; the only place roles are compared."""
        return cls(id=actor_id, is_admin=(role == UserRole.ADMIN.value))


class RestaurantBase(BaseModel):
    """Base restaurant model with common fields."""

    name: str = Field(..., min_length=1, max_length=50)
    address: str = Field(..., min_length=1)
    district: str = Field(..., min_length=1)
    province: str = Field(..., min_length=1)
    postalcode: str = Field(..., min_length=1, max_length=5)
    tel: Optional[str] = None
    open_time: str = Field(..., pattern=CLOCK_TIME_PATTERN, description="Local opening time")
    close_time: str = Field(..., pattern=CLOCK_TIME_PATTERN, description="Local closing time")
    timezone: Optional[str] = Field(None, description="IANA timezone identifier")
    image: str = "no-photo.jpg"

    model_config = ConfigDict(
        str_strip_whitespace=True,
        from_attributes=True,
    )


class RestaurantCreate(RestaurantBase):
    """Model for creating a restaurant."""

    pass


class RestaurantUpdate(BaseModel):
    """Model for updating a restaurant. Rating aggregates are not writable."""

    name: Optional[str] = Field(None, min_length=1, max_length=50)
    address: Optional[str] = Field(None, min_length=1)
    district: Optional[str] = Field(None, min_length=1)
    province: Optional[str] = Field(None, min_length=1)
    postalcode: Optional[str] = Field(None, min_length=1, max_length=5)
    tel: Optional[str] = None
    open_time: Optional[str] = Field(None, pattern=CLOCK_TIME_PATTERN)
    close_time: Optional[str] = Field(None, pattern=CLOCK_TIME_PATTERN)
    timezone: Optional[str] = None
    image: Optional[str] = None

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")


class RestaurantRecord(RestaurantBase):
    """Complete restaurant record from database."""

    id: int
    timezone: str
    average_rating: float = 0.0
    review_count: int = Field(0, ge=0)


class ReservationCreate(BaseModel):
    """Raw create request; date_time is normalized by the service."""

    user: Optional[str] = None
    date_time: Optional[str] = None

    model_config = ConfigDict(str_strip_whitespace=True)


class ReservationUpdate(BaseModel):
    """Model for updating an existing reservation."""

    date_time: Optional[str] = None
    status: Optional[str] = None

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")


class ReservationRecord(BaseModel):
    """Complete reservation record from database."""

    id: int
    user_id: str
    restaurant_id: int
    date_time: datetime
    status: ReservationStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ReviewBase(BaseModel):
    """Review fields and their rules; the message limit comes from the validation context."""

    stars: Optional[float] = Field(None, strict=True, allow_inf_nan=False)
    message: Optional[str] = None

    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("stars", mode="wrap")
    @classmethod
    def stars_in_range(cls, v: Any, handler: ValidatorFunctionWrapHandler) -> Optional[float]:
        """Stars are a real number in [0, 5]; booleans and numeric strings are refused."""
        if isinstance(v, bool):
            raise PydanticCustomError(INVALID_STARS, STARS_MESSAGE)
        try:
            stars = handler(v)
        except ValidationError:
            raise PydanticCustomError(INVALID_STARS, STARS_MESSAGE)
        if stars is None:
            return None
        if not MIN_STARS <= stars <= MAX_STARS:
            raise PydanticCustomError(INVALID_STARS, STARS_MESSAGE)
        return float(stars)

    @field_validator("message")
    @classmethod
    def message_within_limit(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        """Treat blank messages as absent and cap the length."""
        if not v:
            return None
        limit = (info.context or {}).get("message_max_length", DEFAULT_MESSAGE_MAX_LENGTH)
        if len(v) > limit:
            raise PydanticCustomError(
                MESSAGE_TOO_LONG,
                "Review message cannot exceed {max_length} characters",
                {"max_length": limit},
            )
        return v


class ReviewCreate(ReviewBase):
    """Validated review payload."""

    restaurant_id: int
    stars: float = Field(..., strict=True, allow_inf_nan=False)


class ReviewUpdate(ReviewBase):
    """Model for updating a review; only the fields that were sent change."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")


class ReviewRecord(BaseModel):
    """Complete review record from database."""

    id: int
    user_id: str
    restaurant_id: int
    stars: float
    message: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class RatingAggregate(BaseModel):
    """Denormalized rating summary cached on a restaurant."""

    average_rating: float = 0.0
    review_count: int = Field(0, ge=0)

    model_config = ConfigDict(frozen=True)


class Page(BaseModel, Generic[T]):
    """A page of list results."""

    total: int
    page: int
    pages: int
    items: List[T]
