"""
Grant program registry.

Each program is described once, as data: its table, its CSV import format,
how it is loaded (replace-all or upsert) and how its dashboard charts are
aggregated. Routes, loaders and repositories are built from these
descriptions instead of being written per program.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Type

from backend.app.db.base import Base
from backend.app.errors import UnknownProgramError
from backend.app.models import GiaGrant, IdigGrant, LakasGrant, NafesGrant
from backend.app.services.normalizers import (
    PLATFORM_HEI_TYPE_DEFAULT,
    PLATFORM_HEI_TYPE_RULES,
    classify_hei_type,
    derive_status,
)
from backend.app.services.row_mapper import FieldMapping, money, text, year

# Load modes
LOAD_REPLACE = "replace"
LOAD_UPSERT = "upsert"

# Chart orderings
ORDER_AMOUNT_DESC = "amount_desc"
ORDER_COUNT_DESC = "count_desc"
ORDER_LABEL_ASC = "label_asc"

# Chart dimensions
PRIORITY_AREA = "priority_area"
REGION = "region"
HEI_TYPE = "hei_type"
STATUS = "status"
YEARLY = "yearly"

DIMENSIONS = (PRIORITY_AREA, REGION, HEI_TYPE, STATUS)


@dataclass(frozen=True)
class AggregationSpec:
    """
    One grouped chart query.

    Rows whose grouping column or any ``required`` column is blank are left
    out of the chart.
    """
    column: str
    label_key: str
    order: str
    amount_column: Optional[str] = None
    count_key: str = "projects"
    extra_sums: Tuple[Tuple[str, str], ...] = ()
    required: Tuple[str, ...] = ()
    trim: bool = True


@dataclass(frozen=True)
class StatusCount:
    """Named count of rows whose status is (or is not) in ``statuses``."""
    key: str
    statuses: Tuple[str, ...]
    negate: bool = False


@dataclass(frozen=True)
class OverviewSpec:
    sums: Tuple[Tuple[str, str], ...]
    status_counts: Tuple[StatusCount, ...]
    count_key: str = "totalGrants"


@dataclass(frozen=True)
class Program:
    """Everything the API needs to know about one grant program."""
    key: str
    label: str
    model: Type[Base]
    fields: FieldMapping
    year_column: str
    load_mode: str
    overview: OverviewSpec
    aggregations: Mapping[str, AggregationSpec]
    derive: Callable[[Dict[str, Any]], Dict[str, Any]]
    # Rows must have these columns filled to appear anywhere on the dashboard
    base_required: Tuple[str, ...] = ()
    # Projects are counted as distinct trimmed values of this column instead of rows
    distinct_column: Optional[str] = None
    upsert_key: Optional[str] = None
    upsert_update_columns: Tuple[str, ...] = ()

    @property
    def table_name(self) -> str:
        return self.model.__tablename__


# ---------------------------------------------------------------------------
# Derived fields
# ---------------------------------------------------------------------------

def _derive_gia(record: Dict[str, Any]) -> Dict[str, Any]:
    record["hei_type"] = classify_hei_type(record.get("hei_name"))
    record["status"] = derive_status(
        record["amount_allocated"],
        record["amount_obligated"],
        record["amount_disbursed"],
    )
    return record


def _derive_idig(record: Dict[str, Any]) -> Dict[str, Any]:
    record["hei_type"] = classify_hei_type(record.get("hei_name"))
    return record


def _derive_platform(record: Dict[str, Any]) -> Dict[str, Any]:
    record["hei_type"] = classify_hei_type(
        record.get("hei"),
        rules=PLATFORM_HEI_TYPE_RULES,
        default=PLATFORM_HEI_TYPE_DEFAULT,
    )
    return record


# ---------------------------------------------------------------------------
# Import formats
# ---------------------------------------------------------------------------

GIA_FIELDS: FieldMapping = {
    "count_no": text("Count", "count_no"),
    "grant_name": text("Grant", "grant_name", default="GIA"),
    "year_awarded": year("Year Awarded", "year_awarded"),
    "uii": text("UII", "uii"),
    "hei_name": text("HEI Name", "hei_name"),
    "region": text("Region", "region"),
    "project_title": text("Project Title", "project_title"),
    "budget_approved": money("AMOUNT", "Amount", "budget_approved"),
    "priority_area": text("Priority Area", "priority_area"),
    "psced_field_description": text("PSCED Detailed Field Description", "psced_field_description"),
    "psced_field_code": text("PSCED Detailed Field Code", "psced_field_code"),
    "mooe": money("MOOE", "mooe"),
    "co_equipment": money("CO (Equipment Outlay)", "co_equipment"),
    "amount_allocated": money("ALLOCATED", "Allocated", "amount_allocated"),
    "amount_obligated": money("OBLIGATED", "Obligated", "amount_obligated"),
    "amount_disbursed": money("DISBURSED", "Disbursed", "amount_disbursed"),
}

IDIG_FIELDS: FieldMapping = {
    "project_id": text("Project ID", "project_id"),
    "project_title": text("Project Title", "project_title"),
    "year_awarded": year("Year", "year_awarded"),
    "hei_name": text("HEI Name", "hei_name"),
    "region": text("Region", "region"),
    "priority_area": text("Priority Area", "priority_area"),
    "budget_approved": money("Budget", "budget_approved"),
    "amount_released": money("Amount Released", "amount_released"),
    "status": text("Status", "status"),
    "remarks": text("Remarks", "remarks"),
    "start_date": text("Start Date", "start_date"),
    "end_date": text("End Date", "end_date"),
    "extension_date": text("Extension Date", "extension_date"),
}

# Headers as they appear in the CHED LAKAS tracking sheet export
LAKAS_FIELDS: FieldMapping = {
    "control_no": text("Control No.", "control_no"),
    "incharge": text("Incharge", "incharge"),
    "year_obligated": year("YEAR OBLIGATED", "year_obligated"),
    "year_released": year("YEAR RELEASED", "year_released"),
    "region": text("REG", "region"),
    "platform": text("NUCAF/PIAF/ASSAP", "platform"),
    "hei": text("HEI", "hei"),
    "program_title": text(
        "PROGRAM/PROJECT TITLE\n(With Link to Documents)",
        "PROGRAM/PROJECT TITLE",
        "program_title",
    ),
    "number_of_projects": text("NUMBER OF PROJECTS", "number_of_projects"),
    "brief_description": text("BRIEF DESCRIPTION / RATIONALE", "brief_description"),
    "objectives": text("OBJECTIVES", "objectives"),
    "research_platform": text("CHED RESEARCH PLATFORM", "research_platform"),
    "budget_approved": money("BUDGET APPROVED ", "BUDGET APPROVED", "budget_approved"),
    "budget_released": money("BUDGET RELEASED", "budget_released"),
    "lddap_ada_no": text("LDDAP-ADA NO.", "lddap_ada_no"),
    "date_obligated": text("DATE OBLIGATED", "date_obligated"),
    "date_granted": text("DATE GRANTED", "date_granted"),
    "receipt_received": text("Receipt Received", "receipt_received"),
    "date_started": text("DATE STARTED", "date_started"),
    "date_ended": text("DATE ENDED", "date_ended"),
    "extension_start_date": text("EXTENSION START DATE", "extension_start_date"),
    "extension_end_date": text("EXTENSION END DATE", "extension_end_date"),
    "duration": text("DURATION", "duration"),
    "status": text("STATUS", "status"),
    "individual_beneficiaries": text("INDIVIDUAL BENEFICIARIES", "individual_beneficiaries"),
    "total_beneficiaries": text("TOTAL NO. OF INDIVIDUAL BENEFICIARIES", "total_beneficiaries"),
    "collaborating_hei": text("COLLABORATING HEI/S", "collaborating_hei"),
    "principal_investigator": text("NAME OF PRINCIPAL INVESTIGATOR/S", "principal_investigator"),
    "team_members": text("TEAM MEMBER/S", "team_members"),
    "contact_numbers": text("CONTACT NUMBER/S", "contact_numbers"),
    "email_addresses": text("EMAIL ADDRESS/ES", "email_addresses"),
    "ceb_reso_no": text("CEB RESO NO. APPROVAL", "ceb_reso_no"),
    "field_visit": text("M&E FIELD VISIT", "field_visit"),
    "encoder_remarks": text("OTHER ENCODER REMARKS", "encoder_remarks"),
    "date_submitted_terminal": text(
        "Date Submitted Terminal Report? (with soft copy)", "date_submitted_terminal"
    ),
    "date_submitted_financial": text("Date Submitted Financial Report?", "date_submitted_financial"),
    "amount_to_liquidate": text("Amount to Liquidate", "amount_to_liquidate"),
    "remarks": text("Remarks", "remarks"),
    "actual_beneficiaries": text("Actual Beneficiaries", "actual_beneficiaries"),
    "project_accomplishments": text("Project Accomplishments/Highlights", "project_accomplishments"),
    "documents": text("Documents", "documents"),
}

NAFES_FIELDS: FieldMapping = {
    "control_no": text("Control No.", "CONTROL NO.", "control_no"),
    "year_obligated": year("YEAR OBLIGATED", "Year", "year_obligated"),
    "region": text("REG", "Region", "region"),
    "hei": text("HEI", "HEI Name", "hei"),
    "program_title": text("PROGRAM/PROJECT TITLE", "Project Title", "program_title"),
    "research_platform": text("CHED RESEARCH PLATFORM", "Priority Area", "research_platform"),
    "budget_approved": money("BUDGET APPROVED", "BUDGET APPROVED ", "Budget", "budget_approved"),
    "budget_released": money("BUDGET RELEASED", "Amount Released", "budget_released"),
    "status": text("STATUS", "Status", "status"),
    "remarks": text("Remarks", "remarks"),
}


# ---------------------------------------------------------------------------
# Dashboard queries
# ---------------------------------------------------------------------------

_GIA_COMPLETE = ("priority_area", "hei_type", "status")

GIA_AGGREGATIONS: Mapping[str, AggregationSpec] = {
    PRIORITY_AREA: AggregationSpec(
        "priority_area", "area", ORDER_AMOUNT_DESC,
        amount_column="amount_disbursed", required=_GIA_COMPLETE,
    ),
    REGION: AggregationSpec(
        "region", "region", ORDER_LABEL_ASC,
        amount_column="amount_disbursed", required=_GIA_COMPLETE,
    ),
    HEI_TYPE: AggregationSpec(
        "hei_type", "type", ORDER_AMOUNT_DESC,
        amount_column="amount_disbursed", required=_GIA_COMPLETE,
    ),
    STATUS: AggregationSpec(
        "status", "status", ORDER_AMOUNT_DESC,
        amount_column="amount_disbursed", required=_GIA_COMPLETE,
    ),
    YEARLY: AggregationSpec(
        "year_awarded", "year", ORDER_LABEL_ASC,
        amount_column="amount_disbursed", trim=False,
    ),
}

IDIG_AGGREGATIONS: Mapping[str, AggregationSpec] = {
    PRIORITY_AREA: AggregationSpec("priority_area", "area", ORDER_AMOUNT_DESC, amount_column="amount_released"),
    REGION: AggregationSpec("region", "region", ORDER_LABEL_ASC, amount_column="amount_released"),
    HEI_TYPE: AggregationSpec("hei_type", "type", ORDER_AMOUNT_DESC, amount_column="amount_released"),
    STATUS: AggregationSpec("status", "status", ORDER_AMOUNT_DESC, amount_column="amount_released"),
    YEARLY: AggregationSpec(
        "year_awarded", "year", ORDER_LABEL_ASC, amount_column="amount_released", trim=False,
    ),
}

_RELEASED = (("released", "budget_released"),)

PLATFORM_AGGREGATIONS: Mapping[str, AggregationSpec] = {
    PRIORITY_AREA: AggregationSpec(
        "research_platform", "name", ORDER_COUNT_DESC,
        amount_column="budget_approved", extra_sums=_RELEASED,
    ),
    REGION: AggregationSpec(
        "region", "region", ORDER_COUNT_DESC,
        amount_column="budget_approved", extra_sums=_RELEASED,
    ),
    HEI_TYPE: AggregationSpec(
        "hei_type", "name", ORDER_COUNT_DESC,
        amount_column="budget_approved", extra_sums=_RELEASED, required=("hei",),
    ),
    STATUS: AggregationSpec("status", "name", ORDER_COUNT_DESC, count_key="value"),
    YEARLY: AggregationSpec(
        "year_obligated", "year", ORDER_LABEL_ASC,
        amount_column="budget_approved", extra_sums=_RELEASED, trim=False,
    ),
}

GIA_OVERVIEW = OverviewSpec(
    sums=(
        ("totalAmount", "budget_approved"),
        ("totalAllocated", "amount_allocated"),
        ("totalDisbursed", "amount_disbursed"),
    ),
    status_counts=(
        StatusCount("disbursedProjects", ("Disbursed",)),
        StatusCount("obligatedProjects", ("Obligated",)),
        StatusCount("allocatedProjects", ("Allocated",)),
        StatusCount("amountProjects", ("Amount",)),
    ),
)

IDIG_OVERVIEW = OverviewSpec(
    sums=(
        ("totalAmount", "budget_approved"),
        ("totalReleased", "amount_released"),
    ),
    status_counts=(
        StatusCount("activeProjects", ("Ongoing",)),
        StatusCount("completedProjects", ("Completed",)),
    ),
)

PLATFORM_OVERVIEW = OverviewSpec(
    sums=(
        ("totalAmount", "budget_approved"),
        ("totalReleased", "budget_released"),
    ),
    status_counts=(
        StatusCount("activeProjects", ("Completed", "Withdrawn"), negate=True),
        StatusCount("completedProjects", ("Completed",)),
    ),
)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

PROGRAMS: Dict[str, Program] = {
    "gia": Program(
        key="gia",
        label="GIA",
        model=GiaGrant,
        fields=GIA_FIELDS,
        year_column="year_awarded",
        load_mode=LOAD_REPLACE,
        overview=GIA_OVERVIEW,
        aggregations=GIA_AGGREGATIONS,
        derive=_derive_gia,
    ),
    "idig": Program(
        key="idig",
        label="IDIG",
        model=IdigGrant,
        fields=IDIG_FIELDS,
        year_column="year_awarded",
        load_mode=LOAD_REPLACE,
        overview=IDIG_OVERVIEW,
        aggregations=IDIG_AGGREGATIONS,
        derive=_derive_idig,
    ),
    "lakas": Program(
        key="lakas",
        label="LAKAS",
        model=LakasGrant,
        fields=LAKAS_FIELDS,
        year_column="year_obligated",
        load_mode=LOAD_UPSERT,
        overview=PLATFORM_OVERVIEW,
        aggregations=PLATFORM_AGGREGATIONS,
        derive=_derive_platform,
        base_required=("control_no",),
        distinct_column="control_no",
        upsert_key="control_no",
        upsert_update_columns=(
            "incharge",
            "year_obligated",
            "region",
            "platform",
            "hei",
            "hei_type",
            "budget_approved",
            "status",
        ),
    ),
    "nafes": Program(
        key="nafes",
        label="NAFES",
        model=NafesGrant,
        fields=NAFES_FIELDS,
        year_column="year_obligated",
        load_mode=LOAD_REPLACE,
        overview=PLATFORM_OVERVIEW,
        aggregations=PLATFORM_AGGREGATIONS,
        derive=_derive_platform,
        base_required=("control_no",),
        distinct_column="control_no",
    ),
}


def get_program(key: str) -> Program:
    """
    Look up a program by its URL key (case-insensitive).

    Raises:
        UnknownProgramError: If no program has that key
    """
    program = PROGRAMS.get(key.lower())
    if program is None:
        raise UnknownProgramError(f"Unknown grant program: {key}")
    return program
