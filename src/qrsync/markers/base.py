from typing import Protocol

DEFAULT_MARKER_KEY = "latest_update_id"


class MarkerStore(Protocol):
    """Contract for the persisted high-water mark of processed update ids."""

    def get(self, key: str) -> int | None:
        """Return the current marker value, or None when the record does not exist."""

    def advance(self, key: str, value: int) -> bool:
        """Atomically set the marker to `value` only if it is strictly greater.

        A missing record counts as lower than any value. Returns True when the
        marker moved, False when the current value is already >= `value`.
        """

    def ping(self) -> bool:
        """Return whether the store is healthy enough for readiness checks."""
