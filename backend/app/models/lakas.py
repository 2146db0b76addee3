"""
LAKAS database model.
"""

from typing import Optional

from sqlalchemy import String, Text, Integer, Index
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.db.base import Base, GrantRecordMixin, Money


class LakasGrant(GrantRecordMixin, Base):
    """
    One LAKAS program or project, keyed by its CHED control number.

    Re-uploads update existing rows by ``control_no`` instead of inserting
    duplicates.
    """

    __tablename__ = "lakas_grants"

    # Natural key
    control_no: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, unique=True)

    incharge: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    year_obligated: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    year_released: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    region: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    platform: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Institution
    hei: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    hei_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    collaborating_hei: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Project description
    program_title: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    number_of_projects: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    brief_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    objectives: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    research_platform: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Money
    budget_approved: Mapped[float] = mapped_column(Money, nullable=False, default=0)
    budget_released: Mapped[float] = mapped_column(Money, nullable=False, default=0)
    lddap_ada_no: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    amount_to_liquidate: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Timeline, kept as exported
    date_obligated: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    date_granted: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    receipt_received: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    date_started: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    date_ended: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    extension_start_date: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    extension_end_date: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    duration: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Beneficiaries and people
    individual_beneficiaries: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    total_beneficiaries: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    actual_beneficiaries: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    principal_investigator: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    team_members: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    contact_numbers: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    email_addresses: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Monitoring
    ceb_reso_no: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    field_visit: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    encoder_remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date_submitted_terminal: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    date_submitted_financial: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    project_accomplishments: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    documents: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_lakas_year", "year_obligated"),
    )

    def __repr__(self) -> str:
        return f"<LakasGrant(control_no={self.control_no}, status={self.status})>"
