"""Base model class for all database models.

This module provides the base declarative class and common mixins
for all SQLAlchemy models in the application.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models.

    Provides common configuration and type annotation support
    for SQLAlchemy 2.0+ models.
    """

    # Type annotation map for common types
    type_annotation_map = {
        datetime: DateTime(timezone=True),
    }


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps to models.

    Timestamps are produced client-side so that the values are known
    after flush without a refresh round-trip.
    """

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        """Timestamp when the record was created."""
        return mapped_column(
            DateTime(timezone=True),
            nullable=False,
            default=_utcnow,
            comment="Timestamp when the record was created",
        )

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        """Timestamp when the record was last updated."""
        return mapped_column(
            DateTime(timezone=True),
            nullable=False,
            default=_utcnow,
            onupdate=_utcnow,
            comment="Timestamp when the record was last updated",
        )
