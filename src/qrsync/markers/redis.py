import logging
import time
from collections.abc import Callable
from typing import Any

from redis import Redis
from redis.client import Pipeline
from redis.exceptions import RedisError

from qrsync.core.exceptions import MarkerStoreError
from qrsync.markers.base import MarkerStore

logger = logging.getLogger(__name__)


class RedisMarkerStore(MarkerStore):
    """Redis-backed marker store using WATCH/MULTI for compare-and-set."""

    def __init__(
        self,
        redis_url: str,
        *,
        client: Redis | None = None,
        namespace: str = "qrsync",
        max_attempts: int = 3,
        backoff_seconds: float = 0.1,
    ) -> None:
        self._client = client or Redis.from_url(redis_url, decode_responses=True)
        self._namespace = namespace
        self._max_attempts = max_attempts
        self._backoff_seconds = backoff_seconds

    def _marker_key(self, key: str) -> str:
        return f"{self._namespace}:marker:{key}"

    def _execute_with_retry(self, operation: Callable[[], Any]) -> Any:
        """Retry read-only operations with exponential backoff."""
        last_error: Exception | None = None
        for attempt in range(1, self._max_attempts + 1):
            try:
                return operation()
            except RedisError as exc:
                last_error = exc
                if attempt == self._max_attempts:
                    break
                delay = self._backoff_seconds * (2 ** (attempt - 1))
                time.sleep(delay)
        if last_error is not None:
            raise last_error
        raise RuntimeError("Marker operation failed without an exception")

    @staticmethod
    def _parse(raw_value: str | bytes | None, *, key: str) -> int | None:
        if raw_value is None:
            return None
        try:
            return int(raw_value)
        except ValueError as exc:
            raise MarkerStoreError(f"Marker '{key}' holds a non-integer value") from exc

    def get(self, key: str) -> int | None:
        raw_value = self._execute_with_retry(lambda: self._client.get(self._marker_key(key)))
        return self._parse(raw_value, key=key)

    def advance(self, key: str, value: int) -> bool:
        """Set the marker inside a WATCHed transaction; WatchError conflicts are re-run."""
        marker_key = self._marker_key(key)

        # Never wrapped in _execute_with_retry: EXEC may apply before its reply is lost.
        def _compare_and_set(pipe: Pipeline) -> bool:
            current = self._parse(pipe.get(marker_key), key=key)
            if current is not None and value <= current:
                return False
            pipe.multi()
            pipe.set(marker_key, value)
            return True

        advanced = self._client.transaction(
            _compare_and_set,
            marker_key,
            value_from_callable=True,
        )
        return bool(advanced)

    def ping(self) -> bool:
        """Return True when Redis responds to ping within retry budget."""
        try:
            return bool(self._execute_with_retry(lambda: self._client.ping()))
        except RedisError:
            logger.warning("Redis marker store ping failed", exc_info=True)
            return False

    def close(self) -> None:
        self._client.close()
