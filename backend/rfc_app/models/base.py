"""SQLAlchemy base classes and common mixins.

Defines the declarative base and the created_at mixin shared by all
tables.
"""

from datetime import datetime

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class CreatedAtMixin:
    """Mixin that adds an immutable created_at column.

    Attributes:
        created_at: Timestamp when the record was created. Set by the
            database on insert (``CURRENT_TIMESTAMP``, second resolution).
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        server_default=func.now(),
        nullable=True,
    )
