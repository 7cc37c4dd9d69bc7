"""Relational marker store built on a single-row conditional UPDATE."""

from __future__ import annotations

import logging

from sqlalchemy import select, text, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from qrsync.db.models import UpdateMarker
from qrsync.markers.base import MarkerStore

logger = logging.getLogger(__name__)


class SqlMarkerStore(MarkerStore):
    """Marker store backed by the `update_markers` table."""

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def get(self, key: str) -> int | None:
        with self._session_factory() as session:
            return session.execute(
                select(UpdateMarker.value).where(UpdateMarker.key == key)
            ).scalar_one_or_none()

    def _conditional_update(self, session: Session, key: str, value: int) -> bool:
        result = session.execute(
            update(UpdateMarker)
            .where(UpdateMarker.key == key, UpdateMarker.value < value)
            .values(value=value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def advance(self, key: str, value: int) -> bool:
        """Advance with `UPDATE ... WHERE value < :new`, inserting the row on first use."""
        with self._session_factory() as session:
            if self._conditional_update(session, key, value):
                session.commit()
                return True

            exists = session.execute(
                select(UpdateMarker.key).where(UpdateMarker.key == key)
            ).scalar_one_or_none()
            if exists is not None:
                session.rollback()
                return False

            session.add(UpdateMarker(key=key, value=value))
            try:
                session.commit()
                return True
            except IntegrityError:
                # Another invocation created the row first; compete on the update instead.
                session.rollback()

            advanced = self._conditional_update(session, key, value)
            session.commit()
            return advanced

    def ping(self) -> bool:
        try:
            with self._session_factory() as session:
                session.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.warning("Database marker store ping failed", exc_info=True)
            return False
        return True
