"""Declarative base shared by all relational models."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Root class for ORM models."""
