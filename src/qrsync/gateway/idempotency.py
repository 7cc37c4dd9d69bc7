"""Duplicate-update suppression backed by a persisted high-water mark."""

from __future__ import annotations

import asyncio
import logging

from qrsync.markers.base import DEFAULT_MARKER_KEY, MarkerStore

logger = logging.getLogger(__name__)


class IdempotencyGate:
    """Admit each update id at most once, in increasing order.

    The marker advances before any processing happens, so a failed update is
    not replayed by this service; redeliveries of it are skipped.
    """

    def __init__(self, store: MarkerStore, *, key: str = DEFAULT_MARKER_KEY) -> None:
        self._store = store
        self._key = key

    @property
    def key(self) -> str:
        return self._key

    def should_process(self, update_id: int) -> bool:
        """Advance the marker to `update_id` if it is new; False means skip."""
        advanced = self._store.advance(self._key, update_id)
        if not advanced:
            logger.debug("Update %s is not newer than marker '%s'", update_id, self._key)
        return advanced

    async def should_process_async(self, update_id: int) -> bool:
        return await asyncio.to_thread(self.should_process, update_id)
