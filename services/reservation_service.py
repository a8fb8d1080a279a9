"""
Reservation Service for managing restaurant reservations.
Runs admission, working-hours and status checks before anything is persisted.
"""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import Settings, get_settings
from core.restaurant_config import WorkingWindow, check_working_hours
from core.utils_datetime import SystemClock, parse_timestamp_or_raise
from db.models_sqlalchemy import Reservation, Restaurant
from db.repositories import ReservationRepository, RestaurantRepository
from domain.enums import ReservationStatus
from domain.errors import MalformedInputError, NotFoundError, TransientError
from domain.models import Actor, ReservationCreate, ReservationUpdate
from services.admission import check_admission, check_ownership, listing_scope
from services.reservation_state import validate_transition


logger = logging.getLogger(__name__)


class ReservationService:
    """Service for managing restaurant reservations."""

    def __init__(self, db_session: Session, clock=None, settings: Optional[Settings] = None):
        """
        Initialize the reservation service.

        Args:
            db_session: SQLAlchemy database session
            clock: Object with now() returning an aware instant (defaults to system UTC)
            settings: Application settings (defaults to the global settings)
        """
        self.db = db_session
        self.clock = clock or SystemClock()
        self.settings = settings or get_settings()
        self.reservations = ReservationRepository(db_session)
        self.restaurants = RestaurantRepository(db_session)

    def _get_restaurant(self, restaurant_id) -> Restaurant:
        restaurant = self.restaurants.get(restaurant_id)
        if restaurant is None:
            raise NotFoundError(
                f"No restaurant with the id of {restaurant_id}",
                code="RESTAURANT_NOT_FOUND",
                details={"restaurant_id": restaurant_id},
            )
        return restaurant

    def _get_reservation(self, reservation_id) -> Reservation:
        reservation = self.reservations.get(reservation_id)
        if reservation is None:
            raise NotFoundError(
                f"No reservation with the id of {reservation_id}",
                code="RESERVATION_NOT_FOUND",
                details={"reservation_id": reservation_id},
            )
        return reservation

    def _commit(self, action: str, **context: Any) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action} reservation: {e}", extra=context)
            raise TransientError(
                f"Cannot {action} reservation",
                code="STORAGE_FAILURE",
                details=context,
            ) from e

    def list_reservations(self, actor: Actor, restaurant_id: Optional[int] = None) -> List[Reservation]:
        """
        List reservations visible to the actor.

        Non-admins get only their own; admins get all. Either may scope to one restaurant.
        """
        scope = listing_scope(actor.id, actor.is_admin, restaurant_id)
        return self.reservations.list(user_id=scope.user_id, restaurant_id=scope.restaurant_id)

    def get_reservation(self, actor: Actor, reservation_id) -> Reservation:
        """
        Get a reservation by ID.

        Raises:
            NotFoundError: If reservation not found
            UnauthorizedError: If the actor is neither owner nor admin
        """
        reservation = self._get_reservation(reservation_id)
        check_ownership(actor.id, actor.is_admin, reservation.user_id, "view").raise_for_errors()
        return reservation

    def add_reservation(self, actor: Actor, restaurant_id, data: ReservationCreate) -> Reservation:
        """
        Create a new booked reservation.

        Args:
            actor: Caller identity
            restaurant_id: Restaurant being booked
            data: Raw request carrying the owner and a timestamp string

        Returns:
            Created Reservation object

        Raises:
            NotFoundError: Restaurant does not exist
            MalformedInputError: Missing/unparsable dateTime or missing user
            PolicyViolationError: Outside working hours or quota exceeded
            UnauthorizedError: Non-admin booking on behalf of someone else
        """
        restaurant = self._get_restaurant(restaurant_id)

        if not data.date_time:
            raise MalformedInputError("dateTime is required", code="DATETIME_REQUIRED",
                                      details={"field": "dateTime"})

        instant = parse_timestamp_or_raise(data.date_time, restaurant.timezone)

        check_working_hours(instant, WorkingWindow.for_restaurant(restaurant)).raise_for_errors()

        active_count = 0
        if data.user:
            counted = None if self.settings.quota_counts_finished else ReservationStatus.BOOKED
            active_count = self.reservations.count_for_user(data.user, counted)

        check_admission(
            actor.id,
            actor.is_admin,
            data.user,
            active_count,
            self.settings.max_active_reservations,
        ).raise_for_errors()

        reservation = Reservation(
            user_id=data.user,
            restaurant_id=restaurant.id,
            date_time=instant,
            status=ReservationStatus.BOOKED.value,
        )
        self.db.add(reservation)
        self._commit("create", restaurant_id=restaurant.id, user_id=data.user)
        self.db.refresh(reservation)

        logger.info(
            f"Created reservation {reservation.id}",
            extra={"restaurant_id": restaurant.id, "user_id": data.user, "actor_id": actor.id}
        )
        return reservation

    def update_reservation(self, actor: Actor, reservation_id, data: ReservationUpdate) -> Reservation:
        """
        Reschedule and/or change the status of a reservation.

        Both changes are validated first and then applied together.

        Raises:
            NotFoundError: Reservation (or its restaurant, when rescheduling) not found
            UnauthorizedError: Actor is neither owner nor admin
            MalformedInputError: Unparsable dateTime or unknown status
            PolicyViolationError: Outside working hours or transition not allowed
        """
        reservation = self._get_reservation(reservation_id)
        check_ownership(actor.id, actor.is_admin, reservation.user_id, "update").raise_for_errors()

        now = self.clock.now()
        changes: Dict[str, Any] = {}

        if data.date_time is not None:
            restaurant = self._get_restaurant(reservation.restaurant_id)
            instant = parse_timestamp_or_raise(data.date_time, restaurant.timezone)
            check_working_hours(instant, WorkingWindow.for_restaurant(restaurant)).raise_for_errors()
            changes["date_time"] = instant

        if data.status is not None:
            result = validate_transition(
                reservation.status,
                data.status,
                changes.get("date_time", reservation.date_time),
                actor.is_admin,
                now,
                allow_reopen=self.settings.allow_terminal_reopen,
            )
            result.raise_for_errors()
            changes["status"] = result.normalized_data["status"].value

        for key, value in changes.items():
            setattr(reservation, key, value)

        self._commit("update", reservation_id=reservation.id)
        self.db.refresh(reservation)

        logger.info(
            f"Updated reservation {reservation.id}",
            extra={"fields": sorted(changes), "actor_id": actor.id}
        )
        return reservation

    def mark_completed(self, actor: Actor, reservation_id) -> Reservation:
        """Mark a reservation as attended."""
        return self.update_reservation(
            actor, reservation_id, ReservationUpdate(status=ReservationStatus.COMPLETED.value)
        )

    def cancel_reservation(self, actor: Actor, reservation_id) -> Reservation:
        """Cancel a booked reservation."""
        return self.update_reservation(
            actor, reservation_id, ReservationUpdate(status=ReservationStatus.CANCELLED.value)
        )

    def delete_reservation(self, actor: Actor, reservation_id) -> None:
        """
        Permanently delete a reservation.

        Raises:
            NotFoundError: If reservation not found
            UnauthorizedError: If the actor is neither owner nor admin
        """
        reservation = self._get_reservation(reservation_id)
        check_ownership(actor.id, actor.is_admin, reservation.user_id, "delete").raise_for_errors()

        self.db.delete(reservation)
        self._commit("delete", reservation_id=reservation_id)

        logger.info(f"Deleted reservation {reservation_id}", extra={"actor_id": actor.id})
