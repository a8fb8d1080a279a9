"""
Tests for rating aggregate computation and post-commit recomputation.
"""

import pytest
from concurrent.futures import ThreadPoolExecutor

from core.config import Settings
from db.events import ReviewMutation, ReviewMutationDispatcher
from db.models_sqlalchemy import Restaurant, Review
from domain.enums import ReviewMutationKind
from services.rating_aggregator import (
    RatingAggregator,
    attach_rating_aggregator,
    build_review_dispatcher,
    recompute_aggregate,
)


@pytest.mark.unit
class TestRecomputeAggregate:
    """Tests for the pure mean-and-count computation."""

    def test_empty_set(self):
        aggregate = recompute_aggregate([])
        assert aggregate.average_rating == 0
        assert aggregate.review_count == 0

    def test_mean(self):
        aggregate = recompute_aggregate([5, 4, 3])
        assert aggregate.average_rating == 4.0
        assert aggregate.review_count == 3

    def test_rounds_to_two_places(self):
        assert recompute_aggregate([5, 4, 4]).average_rating == 4.33
        assert recompute_aggregate([5, 5, 4]).average_rating == 4.67

    def test_rounds_half_up(self):
        # 4.125 is exact in binary; half-up gives 4.13, banker's rounding would give 4.12
        assert recompute_aggregate([4.125]).average_rating == 4.13

    def test_custom_precision(self):
        assert recompute_aggregate([5, 4, 4], decimal_places=1).average_rating == 4.3

    def test_fractional_stars(self):
        assert recompute_aggregate([0, 2.5, 5]).average_rating == 2.5


@pytest.mark.integration
class TestRatingAggregator:
    """Tests for recomputation against stored reviews."""

    def _add_reviews(self, db_session, restaurant, stars):
        reviews = [Review(user_id=f"u{i}", restaurant_id=restaurant.id, stars=s) for i, s in enumerate(stars)]
        db_session.add_all(reviews)
        db_session.commit()
        return reviews

    def test_recompute_writes_aggregate(self, db_session, session_factory, restaurant):
        self._add_reviews(db_session, restaurant, [5, 4, 3])

        aggregate = RatingAggregator(session_factory, 2).recompute(restaurant.id)

        assert aggregate.average_rating == 4.0
        db_session.expire_all()
        assert restaurant.average_rating == 4.0
        assert restaurant.review_count == 3

    def test_recompute_missing_restaurant(self, session_factory):
        assert RatingAggregator(session_factory, 2).recompute(999) is None

    def test_recompute_only_counts_own_reviews(self, db_session, session_factory, restaurant, night_restaurant):
        self._add_reviews(db_session, restaurant, [2])
        self._add_reviews(db_session, night_restaurant, [5, 5])

        aggregate = RatingAggregator(session_factory, 2).recompute(restaurant.id)

        assert aggregate.average_rating == 2.0
        assert aggregate.review_count == 1

    def test_handler_failure_is_contained(self, db_session, session_factory, restaurant, monkeypatch):
        """A failing recompute for one restaurant does not stop the others."""
        self._add_reviews(db_session, restaurant, [3])
        aggregator = RatingAggregator(session_factory, 2)
        original = aggregator.recompute
        calls = []

        def flaky(restaurant_id):
            calls.append(restaurant_id)
            if restaurant_id == -1:
                raise RuntimeError("storage unavailable")
            return original(restaurant_id)

        monkeypatch.setattr(aggregator, "recompute", flaky)
        aggregator.handle_review_mutation(
            ReviewMutation(kind=ReviewMutationKind.UPDATED, review_id=1, restaurant_ids=(-1, restaurant.id))
        )

        assert calls == [-1, restaurant.id]
        db_session.expire_all()
        assert db_session.get(Restaurant, restaurant.id).average_rating == 3.0


@pytest.mark.unit
class TestDispatcher:
    """Tests for post-commit event delivery."""

    def test_publish_inline(self):
        dispatcher = ReviewMutationDispatcher()
        received = []
        dispatcher.subscribe(received.append)

        event = ReviewMutation(kind=ReviewMutationKind.CREATED, review_id=1, restaurant_ids=(7,))
        dispatcher.publish(event)

        assert received == [event]

    def test_unsubscribe(self):
        dispatcher = ReviewMutationDispatcher()
        received = []
        dispatcher.subscribe(received.append)
        dispatcher.unsubscribe(received.append)

        dispatcher.publish(ReviewMutation(kind=ReviewMutationKind.DELETED, review_id=1, restaurant_ids=(7,)))

        assert received == []

    def test_handler_errors_do_not_reach_publisher(self):
        dispatcher = ReviewMutationDispatcher()
        received = []

        def broken(event):
            raise ValueError("boom")

        dispatcher.subscribe(broken)
        dispatcher.subscribe(received.append)

        dispatcher.publish(ReviewMutation(kind=ReviewMutationKind.CREATED, review_id=1, restaurant_ids=(7,)))

        assert len(received) == 1

    def test_publish_on_executor(self):
        received = []
        with ThreadPoolExecutor(max_workers=1) as executor:
            dispatcher = ReviewMutationDispatcher(executor=executor)
            dispatcher.subscribe(received.append)
            dispatcher.publish(ReviewMutation(kind=ReviewMutationKind.CREATED, review_id=1, restaurant_ids=(7,)))

        assert len(received) == 1


@pytest.mark.unit
class TestWiring:

    def test_build_dispatcher_inline_by_default(self, settings):
        assert build_review_dispatcher(settings).executor is None

    def test_build_dispatcher_async(self):
        dispatcher = build_review_dispatcher(Settings(aggregate_async=True))
        assert dispatcher.executor is not None
        dispatcher.executor.shutdown()

    def test_attach_subscribes(self, session_factory, settings):
        dispatcher = ReviewMutationDispatcher()
        aggregator = attach_rating_aggregator(dispatcher, session_factory, settings)
        assert aggregator.decimal_places == 2
        assert aggregator.handle_review_mutation in dispatcher._handlers
