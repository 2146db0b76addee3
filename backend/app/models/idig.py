"""
IDIG database model.
"""

from typing import Optional

from sqlalchemy import String, Text, Integer, Index
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db.base import Base, GrantRecordMixin, Money


class IdigGrant(GrantRecordMixin, Base):
    """One IDIG project. Status comes straight from the import (Ongoing, Completed, ...)."""

    __tablename__ = "idig_grants"

    project_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    project_title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    year_awarded: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    hei_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    hei_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    region: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    priority_area: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    budget_approved: Mapped[float] = mapped_column(Money, nullable=False, default=0)
    amount_released: Mapped[float] = mapped_column(Money, nullable=False, default=0)

    status: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Dates are kept as exported
    start_date: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    end_date: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    extension_date: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    __table_args__ = (
        Index("idx_idig_year", "year_awarded"),
    )

    def __repr__(self) -> str:
        return f"<IdigGrant(id={self.id}, project_id={self.project_id})>"
