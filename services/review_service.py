"""
Review Service: attendance-gated review creation plus listing and moderation.
Every committed create/update/delete is published so rating aggregates follow.
"""
import logging
import math
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import Settings, get_settings
from db.events import ReviewMutation, ReviewMutationDispatcher
from db.models_sqlalchemy import Review
from db.repositories import ReservationRepository, RestaurantRepository, ReviewRepository
from domain.enums import ReviewMutationKind
from domain.errors import (
    MalformedInputError,
    NotFoundError,
    PolicyViolationError,
    TransientError,
    UnauthorizedError,
)
from domain.models import Actor, Page, ReviewCreate, ReviewUpdate
from domain.validation import parse_model


logger = logging.getLogger(__name__)


class ReviewService:
    """Service for managing restaurant reviews."""

    def __init__(
        self,
        db_session: Session,
        dispatcher: Optional[ReviewMutationDispatcher] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize the review service.

        Args:
            db_session: SQLAlchemy database session
            dispatcher: Receives committed review mutations (rating aggregation)
            settings: Application settings (defaults to the global settings)
        """
        self.db = db_session
        self.dispatcher = dispatcher or ReviewMutationDispatcher()
        self.settings = settings or get_settings()
        self.reviews = ReviewRepository(db_session)
        self.reservations = ReservationRepository(db_session)
        self.restaurants = RestaurantRepository(db_session)

    def _context(self) -> Dict[str, Any]:
        return {"message_max_length": self.settings.review_message_max_length}

    def _get_review(self, review_id) -> Review:
        review = self.reviews.get(review_id)
        if review is None:
            raise NotFoundError("Review not found", code="REVIEW_NOT_FOUND",
                                details={"review_id": review_id})
        return review

    @staticmethod
    def _require_author(actor: Actor, review: Review, action: str) -> None:
        if actor.is_admin or actor.id == review.user_id:
            return
        raise UnauthorizedError(
            f"Not authorized to {action} this review",
            code="NOT_OWNER",
            details={"actor_id": actor.id, "owner_id": review.user_id, "action": action},
        )

    def _commit(self, action: str, **context: Any) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to {action} review: {e}", extra=context)
            raise TransientError(f"Cannot {action} review", code="STORAGE_FAILURE",
                                 details=context) from e

    def _publish(self, kind: ReviewMutationKind, review_id: int, restaurant_id: int) -> None:
        self.dispatcher.publish(ReviewMutation(
            kind=kind,
            review_id=review_id,
            restaurant_ids=(restaurant_id,),
        ))

    def create_review(
        self,
        actor: Optional[Actor],
        restaurant_id: Any = None,
        stars: Any = None,
        message: Optional[str] = None,
    ) -> Review:
        """
        Create a review for a restaurant the author has visited.

        Checked in order: authentication, required fields, restaurant existence,
        completed-reservation existence.

        Raises:
            UnauthorizedError: No authenticated actor
            MalformedInputError: Missing restaurant/stars or stars out of range
            NotFoundError: Restaurant not found
            PolicyViolationError: Author has no completed reservation there
        """
        if actor is None:
            raise UnauthorizedError("Not authenticated", code="NOT_AUTHENTICATED")

        if restaurant_id is None or restaurant_id == "":
            raise MalformedInputError("restaurant is required", code="RESTAURANT_REQUIRED",
                                      details={"field": "restaurant"})

        if stars is None:
            raise MalformedInputError("stars is required (0-5)", code="STARS_REQUIRED",
                                      details={"field": "stars"})

        payload = parse_model(
            ReviewCreate,
            {"restaurant_id": restaurant_id, "stars": stars, "message": message},
            code="INVALID_REVIEW",
            context=self._context(),
        )

        restaurant = self.restaurants.get(payload.restaurant_id)
        if restaurant is None:
            raise NotFoundError("Restaurant not found", code="RESTAURANT_NOT_FOUND",
                                details={"restaurant_id": payload.restaurant_id})

        if not self.reservations.has_completed(actor.id, restaurant.id):
            raise PolicyViolationError(
                "User can leave a review only after having at least one "
                "completed reservation at this restaurant",
                code="NO_COMPLETED_RESERVATION",
                details={"user_id": actor.id, "restaurant_id": restaurant.id},
            )

        review = Review(
            user_id=actor.id,
            restaurant_id=restaurant.id,
            stars=payload.stars,
            message=payload.message,
        )
        self.db.add(review)
        self._commit("create", restaurant_id=restaurant.id, user_id=actor.id)

        review_id, affected = review.id, restaurant.id
        logger.info(f"Created review {review_id}", extra={"restaurant_id": affected, "user_id": actor.id})

        self._publish(ReviewMutationKind.CREATED, review_id, affected)
        return review

    def list_reviews(
        self,
        restaurant_id: Optional[int] = None,
        user_id: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> Page:
        """
        Get reviews, newest first, optionally filtered by restaurant and/or author.
        """
        page = max(int(page or 1), 1)
        limit = max(int(limit or self.settings.reviews_page_size), 1)

        items, total = self.reviews.page(
            restaurant_id=restaurant_id,
            user_id=user_id,
            offset=(page - 1) * limit,
            limit=limit,
        )
        return Page(total=total, page=page, pages=math.ceil(total / limit), items=items)

    def get_review(self, review_id) -> Review:
        """Get a single review by ID."""
        return self._get_review(review_id)

    def update_review(
        self,
        actor: Actor,
        review_id,
        stars: Any = None,
        message: Optional[str] = None,
    ) -> Review:
        """
        Update a review's stars and/or message.

        Raises:
            NotFoundError: Review not found
            UnauthorizedError: Actor is neither author nor admin
            MalformedInputError: Stars out of range or message too long
        """
        review = self._get_review(review_id)
        self._require_author(actor, review, "update")

        sent = {key: value for key, value in (("stars", stars), ("message", message)) if value is not None}
        changes = parse_model(ReviewUpdate, sent, code="INVALID_REVIEW",
                              context=self._context()).model_dump(exclude_unset=True)

        for key, value in changes.items():
            setattr(review, key, value)

        review_id, affected = review.id, review.restaurant_id
        self._commit("update", review_id=review_id)

        logger.info(f"Updated review {review_id}", extra={"fields": sorted(changes), "actor_id": actor.id})

        self._publish(ReviewMutationKind.UPDATED, review_id, affected)
        return review

    def delete_review(self, actor: Actor, review_id) -> None:
        """
        Delete a review.

        Raises:
            NotFoundError: Review not found
            UnauthorizedError: Actor is neither author nor admin
        """
        review = self._get_review(review_id)
        self._require_author(actor, review, "delete")

        review_id, affected = review.id, review.restaurant_id
        self.db.delete(review)
        self._commit("delete", review_id=review_id)

        logger.info(f"Deleted review {review_id}", extra={"restaurant_id": affected, "actor_id": actor.id})

        self._publish(ReviewMutationKind.DELETED, review_id, affected)
