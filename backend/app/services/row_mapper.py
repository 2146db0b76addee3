"""
Declarative mapping from CSV rows to grant records.

Each program describes its import format as ``{field: FieldSpec}``. A field
takes the value of the first header alias that is present and non-blank in
the row; supporting a new export layout only means adding aliases.
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from backend.app.services.normalizers import (
    clean_text,
    is_blank,
    parse_currency,
    parse_year,
)

TEXT = "text"
MONEY = "money"
YEAR = "year"

_CONVERTERS: Dict[str, Callable[[Any], Any]] = {
    TEXT: clean_text,
    MONEY: parse_currency,
    YEAR: parse_year,
}


@dataclass(frozen=True)
class FieldSpec:
    """How one logical field is read from a CSV row."""
    aliases: Tuple[str, ...]
    kind: str = TEXT
    default: Optional[Any] = None

    def __post_init__(self):
        if self.kind not in _CONVERTERS:
            raise ValueError(f"Unknown field kind: {self.kind}")


def text(*aliases: str, default: Optional[str] = None) -> FieldSpec:
    return FieldSpec(aliases=aliases, kind=TEXT, default=default)


def money(*aliases: str) -> FieldSpec:
    return FieldSpec(aliases=aliases, kind=MONEY)


def year(*aliases: str) -> FieldSpec:
    return FieldSpec(aliases=aliases, kind=YEAR)


FieldMapping = Mapping[str, FieldSpec]


def first_present(row: Mapping[str, Optional[str]], aliases: Tuple[str, ...]) -> Optional[str]:
    """Return the first non-blank cell among ``aliases``."""
    for alias in aliases:
        value = row.get(alias)
        if not is_blank(value):
            return value
    return None


def map_row(row: Mapping[str, Optional[str]], mapping: FieldMapping) -> Dict[str, Any]:
    """
    Map one parsed CSV row onto a fixed-schema record.

    Args:
        row: Header -> cell mapping as produced by ``csv.DictReader``
        mapping: Field specs for the target program

    Returns:
        Dict of column values; missing text is None (or the field default),
        missing money is 0
    """
    record: Dict[str, Any] = {}

    for name, spec in mapping.items():
        raw = first_present(row, spec.aliases)
        if raw is None and spec.default is not None:
            record[name] = spec.default
            continue
        record[name] = _CONVERTERS[spec.kind](raw)

    return record
