"""Shared exception tuples for marker store error handling."""

from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError

from qrsync.core.exceptions import MarkerStoreError

MARKER_STORE_EXCEPTIONS: tuple[type[Exception], ...] = (
    MarkerStoreError,
    RedisError,
    SQLAlchemyError,
    TimeoutError,
    ConnectionError,
    OSError,
)
