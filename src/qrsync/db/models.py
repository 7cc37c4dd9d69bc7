"""Relational models for dedup marker persistence."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from qrsync.db.base import Base


class UpdateMarker(Base):
    """High-water mark of processed Telegram update ids, one row per key."""

    __tablename__ = "update_markers"

    key: Mapped[str] = mapped_column(String(length=128), primary_key=True)
    value: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
