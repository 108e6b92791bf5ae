"""
Database engine and session management.

One SQLAlchemy engine per process; API requests get a session through the
``get_session`` dependency and the Streamlit UI opens its own.
"""
import logging
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config.settings import get_settings

logger = logging.getLogger(__name__)

Base = declarative_base()

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def build_engine(database_url: str) -> Engine:
    """Create an engine; in-memory SQLite shares one connection."""
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url == "sqlite://":
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        url = get_settings().database_url
        _engine = build_engine(url)
        logger.info("Database engine created for %s", url.split("@")[-1])
    return _engine


def get_session_factory() -> sessionmaker:
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)
    return _session_factory


def init_db(engine: Optional[Engine] = None):
    """Create all tables."""
    from . import models  # noqa: F401  registers tables on Base

    Base.metadata.create_all(bind=engine or get_engine())


def get_session() -> Iterator[Session]:
    """FastAPI dependency yielding a session per request."""
    session = get_session_factory()()
    try:
        yield session
    finally:
        session.close()
