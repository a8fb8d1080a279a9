"""
Rating aggregator: keeps a restaurant's averageRating/reviewCount in step
with its live review set. Runs after review mutations have committed.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from sqlalchemy.orm import sessionmaker

from core.config import Settings, get_settings
from db.events import ReviewMutation, ReviewMutationDispatcher
from db.repositories import RestaurantRepository, ReviewRepository
from domain.models import RatingAggregate


logger = logging.getLogger(__name__)


def recompute_aggregate(stars: Iterable[float], decimal_places: int = 2) -> RatingAggregate:
    """
    Mean of the star values rounded half-up, plus the review count.

    An empty review set has an average of exactly 0.
    """
    values = [Decimal(str(s)) for s in stars]
    if not values:
        return RatingAggregate(average_rating=0.0, review_count=0)

    mean = sum(values) / len(values)
    quantum = Decimal(1).scaleb(-decimal_places)
    average = mean.quantize(quantum, rounding=ROUND_HALF_UP)

    return RatingAggregate(average_rating=float(average), review_count=len(values))


class RatingAggregator:
    """Recomputes and stores restaurant rating aggregates."""

    def __init__(self, session_factory: sessionmaker, decimal_places: Optional[int] = None):
        """
        Args:
            session_factory: Factory for sessions independent of the triggering mutation
            decimal_places: Rounding precision (defaults to settings)
        """
        self.session_factory = session_factory
        if decimal_places is None:
            decimal_places = get_settings().rating_decimal_places
        self.decimal_places = decimal_places

    def recompute(self, restaurant_id: int) -> Optional[RatingAggregate]:
        """
        Rebuild one restaurant's aggregate from its current reviews.

        Returns:
            The stored aggregate, or None if the restaurant no longer exists
        """
        with self.session_factory() as session:
            restaurant = RestaurantRepository(session).get(restaurant_id)
            if restaurant is None:
                logger.warning(
                    "Skipping aggregate for missing restaurant",
                    extra={"restaurant_id": restaurant_id}
                )
                return None

            stars = ReviewRepository(session).stars_for_restaurant(restaurant_id)
            aggregate = recompute_aggregate(stars, self.decimal_places)

            restaurant.average_rating = aggregate.average_rating
            restaurant.review_count = aggregate.review_count
            session.commit()

        logger.info(
            "Rating aggregate recomputed",
            extra={
                "restaurant_id": restaurant_id,
                "average_rating": aggregate.average_rating,
                "review_count": aggregate.review_count,
            }
        )
        return aggregate

    def handle_review_mutation(self, event: ReviewMutation) -> None:
        """
        Refresh every restaurant the mutation touched.

        A failure leaves that aggregate stale until the next mutation;
        it is logged and does not affect the committed review change.
        """
        for restaurant_id in event.restaurant_ids:
            try:
                self.recompute(restaurant_id)
            except Exception:
                logger.exception(
                    "Rating aggregate recompute failed; aggregate left stale",
                    extra={
                        "restaurant_id": restaurant_id,
                        "review_id": event.review_id,
                        "kind": event.kind.value,
                    }
                )


def build_review_dispatcher(settings: Optional[Settings] = None) -> ReviewMutationDispatcher:
    """Dispatcher that runs handlers inline, or on a worker thread when aggregate_async is set."""
    settings = settings or get_settings()
    executor = None
    if settings.aggregate_async:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="rating-aggregator")
    return ReviewMutationDispatcher(executor=executor)


def attach_rating_aggregator(
    dispatcher: ReviewMutationDispatcher,
    session_factory: sessionmaker,
    settings: Optional[Settings] = None,
) -> RatingAggregator:
    """Subscribe a RatingAggregator to committed review mutations."""
    settings = settings or get_settings()
    aggregator = RatingAggregator(session_factory, settings.rating_decimal_places)
    dispatcher.subscribe(aggregator.handle_review_mutation)
    logger.info(
        "Rating aggregator attached",
        extra={"background": dispatcher.executor is not None}
    )
    return aggregator
