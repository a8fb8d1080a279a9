"""Pytest configuration and fixtures for restaurant booking core tests."""
import pytest
from datetime import datetime

import pytz

from core.config import Settings
from core.utils_datetime import FixedClock
from db.events import ReviewMutationDispatcher
from db.models_sqlalchemy import Reservation, Restaurant
from db.session import create_engine, create_session_factory, drop_db, init_db
from domain.enums import ReservationStatus
from domain.models import Actor
from services.rating_aggregator import attach_rating_aggregator
from services.reservation_service import ReservationService
from services.restaurant_service import RestaurantService
from services.review_service import ReviewService


BANGKOK = pytz.timezone("Asia/Bangkok")


def bangkok(year, month, day, hour, minute=0, second=0):
    """Aware instant for a Bangkok wall-clock time."""
    return BANGKOK.localize(datetime(year, month, day, hour, minute, second))


@pytest.fixture(scope="function")
def settings():
    """Settings pinned for tests, independent of the environment."""
    return Settings(
        app_env="testing",
        database_url="sqlite:///:memory:",
        default_timezone="Asia/Bangkok",
        max_active_reservations=3,
        allow_terminal_reopen=False,
        rating_decimal_places=2,
        review_message_max_length=500,
        reviews_page_size=10,
        aggregate_async=False,
    )


@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite database engine for testing."""
    engine = create_engine("sqlite:///:memory:", echo=False)
    init_db(engine)
    yield engine
    drop_db(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory bound to the test engine."""
    return create_session_factory(db_engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Create a database session for testing."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture(scope="function")
def clock():
    """Clock pinned to noon, 1 June 2025, Bangkok time."""
    return FixedClock(bangkok(2025, 6, 1, 12, 0))


@pytest.fixture(scope="function")
def user():
    return Actor(id="user-1")


@pytest.fixture(scope="function")
def other_user():
    return Actor(id="user-2")


@pytest.fixture(scope="function")
def admin():
    return Actor(id="admin-1", is_admin=True)


@pytest.fixture(scope="function")
def restaurant(db_session):
    """Same-day restaurant open 10:00 - 22:00 in Bangkok."""
    record = Restaurant(
        name="Krua Thai",
        address="12 Sukhumvit Rd",
        district="Watthana",
        province="Bangkok",
        postalcode="10110",
        tel="02-000-0000",
        open_time="10:00",
        close_time="22:00",
        timezone="Asia/Bangkok",
    )
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture(scope="function")
def night_restaurant(db_session):
    """Overnight restaurant open 20:00 - 03:00 in Bangkok."""
    record = Restaurant(
        name="Late Noodles",
        address="99 Khao San Rd",
        district="Phra Nakhon",
        province="Bangkok",
        postalcode="10200",
        open_time="20:00",
        close_time="03:00",
        timezone="Asia/Bangkok",
    )
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture(scope="function")
def reservation_service(db_session, clock, settings):
    """Create a reservation service instance for testing."""
    return ReservationService(db_session, clock=clock, settings=settings)


@pytest.fixture(scope="function")
def restaurant_service(db_session, settings):
    return RestaurantService(db_session, settings=settings)


@pytest.fixture(scope="function")
def dispatcher():
    """Inline dispatcher so aggregates are settled when a call returns."""
    return ReviewMutationDispatcher()


@pytest.fixture(scope="function")
def aggregator(dispatcher, session_factory, settings):
    return attach_rating_aggregator(dispatcher, session_factory, settings)


@pytest.fixture(scope="function")
def review_service(db_session, dispatcher, aggregator, settings):
    """Review service wired to a rating aggregator."""
    return ReviewService(db_session, dispatcher=dispatcher, settings=settings)


@pytest.fixture(scope="function")
def make_reservation(db_session):
    """Factory fixture inserting a reservation directly, bypassing admission."""
    def _create(restaurant, user_id="user-1", when=None, status=ReservationStatus.BOOKED):
        reservation = Reservation(
            user_id=user_id,
            restaurant_id=restaurant.id,
            date_time=when or bangkok(2025, 6, 1, 19, 0),
            status=ReservationStatus(status).value,
        )
        db_session.add(reservation)
        db_session.commit()
        return reservation
    return _create
