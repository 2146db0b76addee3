"""
GIA (Grants-in-Aid) database model.
"""

from typing import Optional

from sqlalchemy import String, Text, Integer, Index
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db.base import Base, GrantRecordMixin, Money


class GiaGrant(GrantRecordMixin, Base):
    """
    One GIA project.

    ``status`` is derived at ingest from the allocated, obligated and
    disbursed amounts and is never edited afterwards.
    """

    __tablename__ = "gia_grants"

    count_no: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    grant_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    year_awarded: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    uii: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Institution
    hei_name: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    hei_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    region: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Project
    project_title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    priority_area: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    psced_field_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    psced_field_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Money stages
    budget_approved: Mapped[float] = mapped_column(Money, nullable=False, default=0)
    mooe: Mapped[float] = mapped_column(Money, nullable=False, default=0)
    co_equipment: Mapped[float] = mapped_column(Money, nullable=False, default=0)
    amount_allocated: Mapped[float] = mapped_column(Money, nullable=False, default=0)
    amount_obligated: Mapped[float] = mapped_column(Money, nullable=False, default=0)
    amount_disbursed: Mapped[float] = mapped_column(Money, nullable=False, default=0)

    status: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    __table_args__ = (
        Index("idx_gia_year", "year_awarded"),
        Index("idx_gia_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<GiaGrant(id={self.id}, uii={self.uii}, status={self.status})>"
