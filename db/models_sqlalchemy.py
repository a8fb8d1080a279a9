"""SQLAlchemy models for the restaurant booking core tables."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UTCDateTime
from domain.enums import ReservationStatus


class Restaurant(Base):
    """Restaurant table model with its working window and rating aggregate."""

    __tablename__ = "restaurants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    district: Mapped[str] = mapped_column(String(100), nullable=False)
    province: Mapped[str] = mapped_column(String(100), nullable=False)
    postalcode: Mapped[str] = mapped_column(String(5), nullable=False)
    tel: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    image: Mapped[str] = mapped_column(String(255), nullable=False, default="no-photo.jpg")

    open_time: Mapped[str] = mapped_column(String(8), nullable=False)
    close_time: Mapped[str] = mapped_column(String(8), nullable=False)
    timezone: Mapped[str] = mapped_column(String(64), nullable=False)

    # Aggregates for fast read; written only by the rating aggregator
    average_rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    review_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    reservations: Mapped[List["Reservation"]] = relationship(
        back_populates="restaurant",
        cascade="all, delete-orphan",
    )
    reviews: Mapped[List["Review"]] = relationship(
        back_populates="restaurant",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        """String representation of Restaurant."""
        return (
            f"<Restaurant(id={self.id}, name='{self.name}', "
            f"window='{self.open_time}-{self.close_time}', tz='{self.timezone}')>"
        )


class Reservation(Base, TimestampMixin):
    """Reservation table model."""

    __tablename__ = "reservations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    restaurant_id: Mapped[int] = mapped_column(
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    date_time: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=ReservationStatus.BOOKED.value,
        index=True,
    )

    restaurant: Mapped["Restaurant"] = relationship(back_populates="reservations")

    __table_args__ = (
        Index("ix_reservations_user_status", "user_id", "status"),
        Index("ix_reservations_user_restaurant_status", "user_id", "restaurant_id", "status"),
    )

    def __repr__(self) -> str:
        """String representation of Reservation."""
        return (
            f"<Reservation(id={self.id}, user='{self.user_id}', "
            f"restaurant={self.restaurant_id}, date_time={self.date_time}, "
            f"status='{self.status}')>"
        )


class Review(Base, TimestampMixin):
    """Review table model."""

    __tablename__ = "reviews"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    restaurant_id: Mapped[int] = mapped_column(
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    stars: Mapped[float] = mapped_column(Float, nullable=False)

    message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    restaurant: Mapped["Restaurant"] = relationship(back_populates="reviews")

    def __repr__(self) -> str:
        """String representation of Review."""
        return (
            f"<Review(id={self.id}, user='{self.user_id}', "
            f"restaurant={self.restaurant_id}, stars={self.stars})>"
        )
