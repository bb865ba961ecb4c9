"""
Database setup for Wheel of Destiny.
Uses SQLite locally; use DATABASE_URL (e.g. Heroku Postgres) for production.
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from wheel_of_destiny.config import DATABASE_URL

Base = declarative_base()


def make_engine(url: str = DATABASE_URL) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across threads."""
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)
    # SQLite needs check_same_thread=False; Postgres does not use that arg
    connect_args = {"check_same_thread": False}
    if url in ("sqlite://", "sqlite:///:memory:"):
        return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
    return create_engine(url, connect_args=connect_args)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


engine = make_engine()
SessionLocal = make_session_factory(engine)


def init_db(bind: Engine | None = None):
    """Create all tables."""
    from wheel_of_destiny.api import models  # noqa: F401  registers the tables
    Base.metadata.create_all(bind=bind or engine)
