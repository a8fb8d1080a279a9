"""Database session management for the restaurant booking core."""

from typing import Optional

from sqlalchemy import create_engine as sa_create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.config import get_settings


def create_engine(url: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    """
    Create SQLAlchemy engine.

    Args:
        url: Database URL (defaults to settings.database_url)
        echo: Whether to log all SQL statements

    Returns:
        SQLAlchemy engine
    """
    settings = get_settings()
    url = url or settings.database_url
    echo = settings.database_echo if echo is None else echo

    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url:
            # Every session must see the same in-memory database
            kwargs["poolclass"] = StaticPool
        return sa_create_engine(url, echo=echo, **kwargs)

    return sa_create_engine(url, echo=echo, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to an engine."""
    return sessionmaker(
        bind=engine,
        class_=Session,
        autocommit=False,
        autoflush=False,
    )


def init_db(engine: Engine) -> None:
    """Initialize database by creating all tables."""
    from .base import Base
    from . import models_sqlalchemy  # noqa: F401

    Base.metadata.create_all(bind=engine)


def drop_db(engine: Engine) -> None:
    """Drop all database tables. Use with caution!"""
    from .base import Base

    Base.metadata.drop_all(bind=engine)
