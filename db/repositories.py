"""Point lookups and scoped listings over the booking tables."""

from typing import List, Optional, Tuple

from sqlalchemy import desc
from sqlalchemy.orm import Session

from .models_sqlalchemy import Reservation, Restaurant, Review
from domain.enums import ReservationStatus


class RestaurantRepository:
    """Queries for restaurants."""

    def __init__(self, session: Session):
        self.db = session

    def get(self, restaurant_id) -> Optional[Restaurant]:
        return self.db.get(Restaurant, restaurant_id)

    def get_by_name(self, name: str) -> Optional[Restaurant]:
        return self.db.query(Restaurant).filter(Restaurant.name == name).first()

    def list(self) -> List[Restaurant]:
        return self.db.query(Restaurant).order_by(Restaurant.id).all()


class ReservationRepository:
    """Queries for reservations."""

    def __init__(self, session: Session):
        self.db = session

    def get(self, reservation_id) -> Optional[Reservation]:
        return self.db.get(Reservation, reservation_id)

    def list(
        self,
        user_id: Optional[str] = None,
        restaurant_id: Optional[int] = None,
        status: Optional[ReservationStatus] = None,
    ) -> List[Reservation]:
        """
        List reservations, optionally scoped by owner, restaurant and status.

        Args:
            user_id: Only reservations owned by this user
            restaurant_id: Only reservations at this restaurant
            status: Only reservations in this status

        Returns:
            List of Reservation objects ordered by scheduled instant
        """
        query = self.db.query(Reservation)

        if user_id is not None:
            query = query.filter(Reservation.user_id == user_id)

        if restaurant_id is not None:
            query = query.filter(Reservation.restaurant_id == restaurant_id)

        if status is not None:
            query = query.filter(Reservation.status == ReservationStatus(status).value)

        return query.order_by(Reservation.date_time, Reservation.id).all()

    def count_for_user(self, user_id: str, status: Optional[ReservationStatus] = None) -> int:
        query = self.db.query(Reservation).filter(Reservation.user_id == user_id)
        if status is not None:
            query = query.filter(Reservation.status == ReservationStatus(status).value)
        return query.count()

    def has_completed(self, user_id: str, restaurant_id: int) -> bool:
        """Check whether the user attended at least once at the restaurant."""
        return (
            self.db.query(Reservation.id)
            .filter(
                Reservation.user_id == user_id,
                Reservation.restaurant_id == restaurant_id,
                Reservation.status == ReservationStatus.COMPLETED.value,
            )
            .first()
            is not None
        )


class ReviewRepository:
    """Queries for reviews."""

    def __init__(self, session: Session):
        self.db = session

    def get(self, review_id) -> Optional[Review]:
        return self.db.get(Review, review_id)

    def stars_for_restaurant(self, restaurant_id: int) -> List[float]:
        """Live star values backing a restaurant's aggregate."""
        rows = (
            self.db.query(Review.stars)
            .filter(Review.restaurant_id == restaurant_id)
            .all()
        )
        return [row[0] for row in rows]

    def page(
        self,
        restaurant_id: Optional[int] = None,
        user_id: Optional[str] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Tuple[List[Review], int]:
        """
        Newest-first page of reviews plus the total matching count.
        """
        query = self.db.query(Review)

        if restaurant_id is not None:
            query = query.filter(Review.restaurant_id == restaurant_id)

        if user_id is not None:
            query = query.filter(Review.user_id == user_id)

        total = query.count()
        items = (
            query.order_by(desc(Review.created_at), desc(Review.id))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return items, total
