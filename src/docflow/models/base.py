"""Declarative base for DocFlow models."""

from datetime import UTC, datetime

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all ORM models."""


def utcnow() -> datetime:
    """Timezone-aware current time, used as a Python-side column default."""
    return datetime.now(UTC)
