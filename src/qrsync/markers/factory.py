import logging
from typing import cast

from sqlalchemy.orm import Session, sessionmaker

from qrsync.core.config import Settings
from qrsync.markers.base import MarkerStore
from qrsync.markers.inmemory import InMemoryMarkerStore
from qrsync.markers.redis import RedisMarkerStore
from qrsync.markers.sql import SqlMarkerStore

logger = logging.getLogger(__name__)


def create_marker_store(
    settings: Settings,
    *,
    session_factory: sessionmaker[Session] | None = None,
) -> MarkerStore:
    """Create the configured dedup marker backend."""
    if settings.marker_backend == "inmemory":
        logger.warning(
            "Using in-memory update marker; duplicate suppression does not survive restarts"
        )
        return InMemoryMarkerStore()
    if settings.marker_backend == "redis":
        return RedisMarkerStore(cast(str, settings.redis_url))
    if settings.marker_backend == "database":
        if session_factory is None:
            raise ValueError("MARKER_BACKEND=database requires a database session factory")
        return SqlMarkerStore(session_factory)

    raise ValueError(f"Unsupported MARKER_BACKEND: {settings.marker_backend}")
