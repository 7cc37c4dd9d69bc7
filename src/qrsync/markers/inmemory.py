from threading import Lock

from qrsync.markers.base import MarkerStore


class InMemoryMarkerStore(MarkerStore):
    """Process-local marker store for local/dev usage and tests."""

    def __init__(self, initial: dict[str, int] | None = None) -> None:
        self._values: dict[str, int] = dict(initial or {})
        self._lock = Lock()

    def get(self, key: str) -> int | None:
        with self._lock:
            return self._values.get(key)

    def advance(self, key: str, value: int) -> bool:
        """Compare-and-set under the store lock."""
        with self._lock:
            current = self._values.get(key)
            if current is not None and value <= current:
                return False
            self._values[key] = value
            return True

    def ping(self) -> bool:
        return True
