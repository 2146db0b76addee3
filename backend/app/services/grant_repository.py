"""
Per-program data access: dashboard aggregations and bulk writes.

One ``GrantRepository`` serves any program table; everything that differs
between programs (grouping columns, amount columns, completeness filters,
ordering, response keys) comes from the program's declarative description.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import and_, asc, case, desc, func, insert
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from backend.app.db.base import utcnow
from backend.app.services.normalizers import is_blank
from backend.app.services.programs import (
    ORDER_AMOUNT_DESC,
    ORDER_COUNT_DESC,
    ORDER_LABEL_ASC,
    YEARLY,
    AggregationSpec,
    Program,
)

logger = structlog.get_logger()


class GrantRepository:
    """Queries and writes for one program's table."""

    def __init__(self, db: Session, program: Program):
        self.db = db
        self.program = program
        self.model = program.model

    # ------------------------------------------------------------------
    # Expression helpers
    # ------------------------------------------------------------------

    def _column(self, name: str):
        return getattr(self.model, name)

    def _filled(self, name: str):
        """Column is neither NULL nor blank."""
        column = self._column(name)
        return and_(column.isnot(None), func.trim(column) != "")

    def _base_filters(self, year: Optional[int]) -> List[Any]:
        filters = [self._filled(name) for name in self.program.base_required]
        if year is not None:
            filters.append(self._column(self.program.year_column) == year)
        return filters

    def _project_count(self):
        if self.program.distinct_column:
            return func.count(func.distinct(func.trim(self._column(self.program.distinct_column))))
        return func.count(self.model.id)

    def _sum(self, name: str):
        return func.coalesce(func.sum(self._column(name)), 0)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def count(self) -> int:
        """Total rows in the table, with no completeness filter."""
        return self.db.query(func.count(self.model.id)).scalar() or 0

    def overview(self, year: Optional[int] = None) -> Dict[str, Any]:
        """
        Summary card totals.

        Args:
            year: Restrict to one fiscal year, or None for all years

        Returns:
            Dict with the project count, money totals and one named count per
            tracked status
        """
        spec = self.program.overview
        status = func.trim(self.model.status)

        columns = [self._project_count().label(spec.count_key)]
        for key, column in spec.sums:
            columns.append(self._sum(column).label(key))
        for tracked in spec.status_counts:
            condition = (
                status.not_in(tracked.statuses) if tracked.negate
                else status.in_(tracked.statuses)
            )
            columns.append(
                func.coalesce(func.sum(case((condition, 1), else_=0)), 0).label(tracked.key)
            )

        row = self.db.query(*columns).filter(*self._base_filters(year)).one()
        data = row._mapping

        result: Dict[str, Any] = {spec.count_key: int(data[spec.count_key] or 0)}
        for key, _ in spec.sums:
            result[key] = float(data[key] or 0)
        for tracked in spec.status_counts:
            result[tracked.key] = int(data[tracked.key] or 0)
        return result

    def aggregate(self, dimension: str, year: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Grouped chart series for one dimension.

        Args:
            dimension: One of the program's aggregation keys (priority_area,
                region, hei_type, status, yearly)
            year: Restrict to one fiscal year, or None for all years

        Returns:
            Ordered list of ``{label_key, count_key, amount, ...}`` dicts
        """
        spec = self.program.aggregations[dimension]
        return self._run_aggregation(spec, year)

    def yearly_trends(self) -> List[Dict[str, Any]]:
        """Per-year series; never filtered by year."""
        return self._run_aggregation(self.program.aggregations[YEARLY], None)

    def _run_aggregation(self, spec: AggregationSpec, year: Optional[int]) -> List[Dict[str, Any]]:
        raw_group = self._column(spec.column)
        group = func.trim(raw_group) if spec.trim else raw_group
        project_count = self._project_count()

        columns = [group.label("label"), project_count.label("project_count")]
        amount = None
        if spec.amount_column:
            amount = self._sum(spec.amount_column)
            columns.append(amount.label("amount"))
        for key, column in spec.extra_sums:
            columns.append(self._sum(column).label(key))

        filters = self._base_filters(year)
        filters.append(self._filled(spec.column) if spec.trim else raw_group.isnot(None))
        filters.extend(self._filled(name) for name in spec.required)

        query = self.db.query(*columns).filter(*filters).group_by(group)

        if spec.order == ORDER_AMOUNT_DESC and amount is not None:
            query = query.order_by(desc(amount), asc(group))
        elif spec.order == ORDER_COUNT_DESC:
            query = query.order_by(desc(project_count), asc(group))
        elif spec.order == ORDER_LABEL_ASC:
            query = query.order_by(asc(group))
        else:
            raise ValueError(f"Unknown chart ordering: {spec.order}")

        results = []
        for row in query.all():
            data = row._mapping
            item: Dict[str, Any] = {
                spec.label_key: data["label"],
                spec.count_key: int(data["project_count"] or 0),
            }
            if amount is not None:
                item["amount"] = float(data["amount"] or 0)
            for key, _ in spec.extra_sums:
                item[key] = float(data[key] or 0)
            results.append(item)

        return results

    # ------------------------------------------------------------------
    # Writes (the caller owns the transaction)
    # ------------------------------------------------------------------

    def delete_all(self) -> int:
        """Delete every row of the table. Returns the number of rows removed."""
        deleted = self.db.query(self.model).delete(synchronize_session=False)
        logger.info("grant_table_cleared", program=self.program.key, deleted=deleted)
        return deleted

    def insert(self, record: Dict[str, Any]) -> None:
        self.db.execute(insert(self.model).values(**record))

    def upsert(self, record: Dict[str, Any]) -> None:
        """
        Insert a record or update the row sharing its natural key.

        Only the program's ``upsert_update_columns`` are overwritten on an
        existing row. A blank key is stored as ``""``, so keyless rows
        collapse into one row instead of piling up on every upload.
        """
        key = self.program.upsert_key
        if key is None:
            raise ValueError(f"Program {self.program.key} has no upsert key")

        record = dict(record)
        if is_blank(record.get(key)):
            record[key] = ""

        now = utcnow()
        stmt = self.upsert_statement(record, self.db.get_bind().dialect.name, now)
        if stmt is None:
            self._upsert_by_lookup(record, now)
        else:
            self.db.execute(stmt)

    def upsert_statement(self, record: Dict[str, Any], dialect: str, now: datetime):
        """
        Build the native upsert for ``dialect``.

        Returns:
            An ``INSERT ... ON DUPLICATE KEY UPDATE`` (MySQL) or
            ``INSERT ... ON CONFLICT DO UPDATE`` (PostgreSQL, SQLite)
            statement, or None when the dialect has no native upsert
        """
        update_columns = self.program.upsert_update_columns

        if dialect == "mysql":
            stmt = mysql_insert(self.model).values(**record)
            updates = {name: stmt.inserted[name] for name in update_columns}
            updates["updated_at"] = now
            return stmt.on_duplicate_key_update(**updates)

        if dialect in ("postgresql", "sqlite"):
            dialect_insert = postgresql_insert if dialect == "postgresql" else sqlite_insert
            stmt = dialect_insert(self.model).values(**record)
            updates = {name: stmt.excluded[name] for name in update_columns}
            updates["updated_at"] = now
            return stmt.on_conflict_do_update(index_elements=[self.program.upsert_key], set_=updates)

        return None

    def _upsert_by_lookup(self, record: Dict[str, Any], now: datetime) -> None:
        key = self.program.upsert_key
        existing = self.db.query(self.model).filter(
            self._column(key) == record[key]
        ).first()

        if existing:
            for name in self.program.upsert_update_columns:
                setattr(existing, name, record.get(name))
            existing.updated_at = now
        else:
            self.db.add(self.model(**record))
        self.db.flush()
