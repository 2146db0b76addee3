"""
CSV ingestion for grant program tables.

The whole file is read into memory, each row is mapped through the
program's field aliases, and the batch is written in a single transaction:
either every row lands (after the optional full-table clear) or nothing
changes.
"""

import csv
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.errors import CsvParseError, IngestError
from backend.app.metrics import CSV_LOAD_DURATION, CSV_ROWS_INGESTED
from backend.app.services.grant_repository import GrantRepository
from backend.app.services.programs import LOAD_UPSERT, Program
from backend.app.services.row_mapper import map_row

logger = structlog.get_logger()


@dataclass
class LoadResult:
    """Outcome of one bulk load."""
    program: str
    records_processed: int
    replace_all: bool
    mode: str
    deleted: int = 0


def read_csv_rows(path: str | Path) -> List[Dict[str, str]]:
    """
    Read a CSV file with a header row into a list of dicts.

    Args:
        path: CSV file path (UTF-8, optional BOM)

    Returns:
        One dict per data row, keyed by header

    Raises:
        CsvParseError: If the file cannot be decoded or parsed, or has no header
    """
    path = Path(path)

    try:
        with open(path, "r", encoding="utf-8-sig", newline="") as f:
            reader = csv.DictReader(f)
            if reader.fieldnames is None:
                raise CsvParseError("CSV file has no header row")
            rows = list(reader)

    except UnicodeDecodeError as e:
        logger.warning("csv_decode_failed", path=str(path), error=str(e))
        raise CsvParseError(f"CSV parsing error: file is not valid UTF-8 ({e.reason})") from e

    except csv.Error as e:
        logger.warning("csv_parse_failed", path=str(path), error=str(e))
        raise CsvParseError(f"CSV parsing error: {e}") from e

    logger.info("csv_read", path=str(path), rows=len(rows), columns=len(reader.fieldnames))
    return rows


def map_records(program: Program, rows: Iterable[Dict[str, str]]) -> List[Dict[str, Any]]:
    """Map raw CSV rows to records for ``program``, including derived fields."""
    return [program.derive(map_row(row, program.fields)) for row in rows]


class BulkLoader:
    """Writes mapped records into one program's table."""

    def __init__(self, db: Session, program: Program):
        self.db = db
        self.program = program
        self.repository = GrantRepository(db, program)

    def load(self, records: List[Dict[str, Any]], replace_all: bool) -> LoadResult:
        """
        Load a batch of records.

        Replace-all clears the table first. Rows are then inserted one at a
        time, or upserted on the natural key for upsert programs. The clear
        and all writes share one transaction.

        Args:
            records: Mapped records
            replace_all: Delete all existing rows before writing

        Returns:
            LoadResult with the number of records written

        Raises:
            IngestError: If any write fails; the batch is rolled back
        """
        upsert = self.program.load_mode == LOAD_UPSERT
        write = self.repository.upsert if upsert else self.repository.insert

        logger.info("bulk_load_started",
                    program=self.program.key,
                    mode=self.program.load_mode,
                    replace_all=replace_all,
                    records=len(records))

        row_number = 0
        deleted = 0
        try:
            if replace_all:
                deleted = self.repository.delete_all()

            for row_number, record in enumerate(records, start=1):
                write(record)

            self.db.commit()

        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("bulk_load_failed",
                         program=self.program.key,
                         row=row_number,
                         error=str(e),
                         exc_info=True)
            where = f" at row {row_number}" if row_number else ""
            raise IngestError(f"Database error{where}: {e}") from e

        CSV_ROWS_INGESTED.labels(program=self.program.key).inc(len(records))
        logger.info("bulk_load_completed",
                    program=self.program.key,
                    records_processed=len(records),
                    deleted=deleted)

        return LoadResult(
            program=self.program.key,
            records_processed=len(records),
            replace_all=replace_all,
            mode=self.program.load_mode,
            deleted=deleted,
        )


def load_csv_file(
    db: Session,
    program: Program,
    path: str | Path,
    replace_all: bool,
    remove_file: bool = True,
) -> LoadResult:
    """
    Parse, map and load one CSV file.

    Parsing happens before any write, so a malformed file leaves the table
    untouched.

    Args:
        db: Database session
        program: Target program
        path: CSV file path
        replace_all: Clear the table before loading
        remove_file: Delete ``path`` afterwards, whatever the outcome

    Returns:
        LoadResult
    """
    path = Path(path)
    start_time = time.time()

    try:
        rows = read_csv_rows(path)
        records = map_records(program, rows)
        return BulkLoader(db, program).load(records, replace_all)

    finally:
        CSV_LOAD_DURATION.labels(program=program.key).observe(time.time() - start_time)
        if remove_file:
            path.unlink(missing_ok=True)
            logger.debug("upload_file_removed", path=str(path))
