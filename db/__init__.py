"""Database layer for the restaurant booking core."""

from .base import Base, TimestampMixin, UTCDateTime
from .models_sqlalchemy import Restaurant, Reservation, Review
from .session import (
    create_engine,
    create_session_factory,
    init_db,
    drop_db,
)
from .repositories import RestaurantRepository, ReservationRepository, ReviewRepository
from .events import ReviewMutation, ReviewMutationDispatcher

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "UTCDateTime",
    # Models
    "Restaurant",
    "Reservation",
    "Review",
    # Session
    "create_engine",
    "create_session_factory",
    "init_db",
    "drop_db",
    # Repositories
    "RestaurantRepository",
    "ReservationRepository",
    "ReviewRepository",
    # Events
    "ReviewMutation",
    "ReviewMutationDispatcher",
]
