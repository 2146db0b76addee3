"""
Declarative base and shared columns for all ORM models.
"""

from datetime import datetime, timezone

from sqlalchemy import TIMESTAMP, Integer, Numeric
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for grant program tables."""


class GrantRecordMixin:
    """Surrogate key and timestamps carried by every program table."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow
    )


# Money columns are returned as floats
Money = Numeric(15, 2, asdecimal=False)
