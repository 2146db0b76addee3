"""
NAFES database model.
"""

from typing import Optional

from sqlalchemy import String, Text, Integer, Index
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db.base import Base, GrantRecordMixin, Money


class NafesGrant(GrantRecordMixin, Base):
    """One NAFES project. Same reporting shape as LAKAS, replaced wholesale on upload."""

    __tablename__ = "nafes_grants"

    control_no: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    year_obligated: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    region: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    hei: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    hei_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    program_title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    research_platform: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    budget_approved: Mapped[float] = mapped_column(Money, nullable=False, default=0)
    budget_released: Mapped[float] = mapped_column(Money, nullable=False, default=0)

    status: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_nafes_year", "year_obligated"),
        Index("idx_nafes_control_no", "control_no"),
    )

    def __repr__(self) -> str:
        return f"<NafesGrant(id={self.id}, control_no={self.control_no})>"
