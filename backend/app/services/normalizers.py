"""
Normalization of raw spreadsheet cells into typed values.

All functions here are pure and never raise on bad input: unparseable
cells become 0 (money) or None (text, year).
"""

import math
import re
from typing import Optional, Sequence, Tuple

import structlog

logger = structlog.get_logger()

# Ordered rules: first matching keyword wins
HEI_TYPE_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("SUC", ("STATE UNIVERSITY", "STATE COLLEGE")),
    ("Technical", ("TECHNICAL", "POLYTECHNIC")),
    ("Private", ("PRIVATE",)),
)
HEI_TYPE_DEFAULT = "Other"

# Buckets used by the LAKAS and NAFES dashboards
PLATFORM_HEI_TYPE_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("State Universities", ("STATE UNIVERSITY", "STATE COLLEGE")),
    ("Local Colleges", ("POLYTECHNIC", "COLLEGE")),
)
PLATFORM_HEI_TYPE_DEFAULT = "Private HEIs"

# Status stages, most advanced first
STATUS_DISBURSED = "Disbursed"
STATUS_OBLIGATED = "Obligated"
STATUS_ALLOCATED = "Allocated"
STATUS_AMOUNT = "Amount"

_NULL_MARKERS = {"", "N/A", "NA", "-"}
_NON_NUMERIC = re.compile(r"[^\d.\-]")
_ACCOUNTING_NEGATIVE = re.compile(r"^[^\d(]*\(.*\)$")
_LEADING_INT = re.compile(r"^\s*(\d+)")


def is_blank(value: Optional[str]) -> bool:
    """True for None and cells that hold nothing but whitespace."""
    return value is None or str(value).strip() == ""


def parse_currency(raw: object) -> float:
    """
    Parse a money cell such as ``"₱1,234.56"``.

    Currency symbols, thousands separators and any other non-numeric
    characters are stripped. Accounting negatives such as ``"(1,500.00)"``
    count as negative and give 0. A dash inside the number, as in ``"1-2"``,
    leaves an unparseable string and also gives 0.

    Args:
        raw: Cell value (string, number or None)

    Returns:
        Non-negative amount, 0 when the cell is empty, "N/A" or unparseable
    """
    if raw is None:
        return 0.0

    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        value = float(raw)
    else:
        text = str(raw).strip()
        if text.upper() in _NULL_MARKERS:
            return 0.0

        if _ACCOUNTING_NEGATIVE.match(text):
            logger.debug("currency_out_of_range", raw=text)
            return 0.0

        cleaned = _NON_NUMERIC.sub("", text)
        try:
            value = float(cleaned)
        except ValueError:
            logger.debug("currency_parse_failed", raw=text)
            return 0.0

    if math.isnan(value) or math.isinf(value) or value < 0:
        logger.debug("currency_out_of_range", raw=raw)
        return 0.0

    return value


def parse_year(raw: object) -> Optional[int]:
    """
    Parse a fiscal year cell.

    Reads the leading digits, so ``"2021.0"`` and ``"2021 (2nd sem)"`` both
    give 2021. Zero and non-numeric cells give None.
    """
    if raw is None:
        return None

    match = _LEADING_INT.match(str(raw))
    if not match:
        return None

    year = int(match.group(1))
    return year or None


def clean_text(raw: Optional[str]) -> Optional[str]:
    """Return None for blank cells, the value unchanged otherwise."""
    if is_blank(raw):
        return None
    return str(raw)


def classify_hei_type(
    name: Optional[str],
    rules: Sequence[Tuple[str, Sequence[str]]] = HEI_TYPE_RULES,
    default: str = HEI_TYPE_DEFAULT,
) -> str:
    """
    Classify a higher education institution by its name.

    Args:
        name: Free-text HEI name
        rules: Ordered ``(category, keywords)`` pairs, matched case-insensitively
        default: Category used when no keyword matches

    Returns:
        The first category whose keywords appear in the name
    """
    if is_blank(name):
        return default

    upper = str(name).upper()
    for category, keywords in rules:
        if any(keyword.upper() in upper for keyword in keywords):
            return category

    return default


def derive_status(allocated: float, obligated: float, disbursed: float) -> str:
    """
    Derive the furthest pipeline stage reached by a GIA project.

    A project with nothing allocated but something obligated is still
    Obligated; a gap in an earlier stage never downgrades the status.
    """
    if disbursed > 0:
        return STATUS_DISBURSED
    if obligated > 0 and disbursed == 0:
        return STATUS_OBLIGATED
    if allocated > 0 and obligated == 0 and disbursed == 0:
        return STATUS_ALLOCATED
    return STATUS_AMOUNT
