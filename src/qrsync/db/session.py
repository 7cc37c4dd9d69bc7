"""Engine and session helpers for marker persistence."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from qrsync.db import models  # noqa: F401  registers tables on Base.metadata
from qrsync.db.base import Base

SQLITE_BUSY_TIMEOUT_SECONDS = 15


def build_engine(database_url: str) -> Engine:
    """Create a SQLAlchemy engine for the configured database URL."""
    connect_args: dict[str, object] = {}
    if database_url.startswith("sqlite"):
        # Webhook invocations write the marker from worker threads concurrently.
        connect_args["check_same_thread"] = False
        connect_args["timeout"] = SQLITE_BUSY_TIMEOUT_SECONDS

    return create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Build a session factory with explicit transaction settings."""
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        class_=Session,
    )


def create_schema(engine: Engine) -> None:
    """Create missing tables; migrations remain the source of truth outside local envs."""
    Base.metadata.create_all(bind=engine)
