"""
FastAPI routes for the grants dashboard API.

Every program gets the same set of endpoints under ``/api/<program>``;
the routers are generated from the program registry.
"""

import tempfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import structlog
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app import config
from backend.app.api.models import (
    ErrorResponse, HealthResponse, ProgramListResponse, ProgramSummary, UploadResponse
)
from backend.app.db.session import get_db
from backend.app.errors import (
    GrantsAPIError, InvalidParameterError, QueryError, UploadRejectedError
)
from backend.app.metrics import CSV_UPLOADS
from backend.app.services.csv_loader import load_csv_file
from backend.app.services.grant_repository import GrantRepository
from backend.app.services.programs import (
    HEI_TYPE, PRIORITY_AREA, PROGRAMS, REGION, STATUS, Program, get_program
)

logger = structlog.get_logger()

# Create router
router = APIRouter()

ERROR_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    400: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def parse_year_filter(year: Optional[str]) -> Optional[int]:
    """
    Parse the ``year`` query parameter.

    Missing, empty and "All" mean no filter.

    Raises:
        InvalidParameterError: If the value is not an integer year
    """
    if year is None or year.strip() == "" or year.strip().lower() == "all":
        return None
    try:
        return int(year.strip())
    except ValueError:
        raise InvalidParameterError(f"Invalid year: {year}")


def parse_flag(value: Optional[str]) -> bool:
    """Form booleans arrive as strings; only "true" enables the flag."""
    return str(value).strip().lower() == "true"


def run_query(program: Program, name: str, query: Callable[[], Any]) -> Any:
    """Run a dashboard query, turning database failures into ``QueryError``."""
    try:
        return query()
    except SQLAlchemyError as e:
        logger.error("dashboard_query_failed", program=program.key, query=name, error=str(e))
        raise QueryError(str(e)) from e


def validate_upload(file: Optional[UploadFile]) -> None:
    """
    Reject uploads that are missing or not CSV files.

    Raises:
        UploadRejectedError: If the upload cannot be a CSV file
    """
    if file is None or not file.filename:
        raise UploadRejectedError("No file uploaded")

    if not file.filename.lower().endswith(config.ALLOWED_UPLOAD_EXTENSIONS):
        raise UploadRejectedError("Please upload a CSV file")

    content_type = (file.content_type or "").split(";")[0].strip().lower()
    if content_type and content_type not in config.ALLOWED_UPLOAD_CONTENT_TYPES:
        raise UploadRejectedError(f"Unsupported file type: {content_type}")


async def save_upload(file: UploadFile) -> Path:
    """Write an upload to a temporary file under ``UPLOAD_DIR``."""
    contents = await file.read()

    if not contents:
        raise UploadRejectedError("Uploaded file is empty")
    if len(contents) > config.MAX_UPLOAD_BYTES:
        raise UploadRejectedError(
            f"File too large: {len(contents)} bytes (limit {config.MAX_UPLOAD_BYTES})"
        )

    upload_dir = Path(config.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)

    with tempfile.NamedTemporaryFile(dir=upload_dir, suffix=".csv", delete=False) as tmp:
        tmp.write(contents)

    return Path(tmp.name)


def build_program_router(program: Program) -> APIRouter:
    """Create the dashboard and upload endpoints for one program."""
    program_router = APIRouter(prefix=f"/{program.key}", tags=[program.label])

    def chart_endpoint(dimension: str):
        async def endpoint(
            year: Optional[str] = Query(None, description="Fiscal year, or 'All'"),
            db: Session = Depends(get_db),
        ) -> List[Dict[str, Any]]:
            year_filter = parse_year_filter(year)
            repository = GrantRepository(db, program)
            return run_query(program, dimension, lambda: repository.aggregate(dimension, year_filter))
        return endpoint

    @program_router.get("/overview", responses=ERROR_RESPONSES)
    async def overview(
        year: Optional[str] = Query(None, description="Fiscal year, or 'All'"),
        db: Session = Depends(get_db),
    ) -> Dict[str, Any]:
        """Totals and status counts for the summary cards."""
        year_filter = parse_year_filter(year)
        repository = GrantRepository(db, program)
        return run_query(program, "overview", lambda: repository.overview(year_filter))

    for path, dimension in (
        ("/priority-area", PRIORITY_AREA),
        ("/region", REGION),
        ("/hei-type", HEI_TYPE),
        ("/status", STATUS),
    ):
        program_router.add_api_route(
            path,
            chart_endpoint(dimension),
            methods=["GET"],
            responses=ERROR_RESPONSES,
            summary=f"{program.label} projects by {dimension.replace('_', ' ')}",
        )

    @program_router.get("/yearly-trends", responses=ERROR_RESPONSES)
    async def yearly_trends(db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
        """Projects and amounts per year, across all years."""
        repository = GrantRepository(db, program)
        return run_query(program, "yearly_trends", repository.yearly_trends)

    @program_router.post("/upload-csv", response_model=UploadResponse, responses=ERROR_RESPONSES)
    async def upload_csv(
        file: Optional[UploadFile] = File(None, description="CSV export for this program"),
        replaceAll: Optional[str] = Form("false", description="'true' to clear the table first"),
        db: Session = Depends(get_db),
    ):
        """Load a CSV export into the program's table."""
        replace_all = parse_flag(replaceAll)
        mode = "replace" if replace_all else program.load_mode

        logger.info("csv_upload_started",
                    program=program.key,
                    filename=file.filename if file else None,
                    replace_all=replace_all)

        try:
            validate_upload(file)
            path = await save_upload(file)
        except UploadRejectedError as e:
            CSV_UPLOADS.labels(program=program.key, mode=mode, outcome="rejected").inc()
            logger.warning("csv_upload_rejected", program=program.key, reason=e.message)
            raise

        try:
            result = load_csv_file(db, program, path, replace_all)
        except GrantsAPIError:
            CSV_UPLOADS.labels(program=program.key, mode=mode, outcome="failed").inc()
            raise

        CSV_UPLOADS.labels(program=program.key, mode=mode, outcome="success").inc()
        logger.info("csv_upload_completed",
                    program=program.key,
                    records_processed=result.records_processed)

        return UploadResponse(
            message=f"{program.label} CSV file processed successfully",
            records_processed=result.records_processed,
            replace_all=replace_all,
        )

    return program_router


def summarize_program(db: Session, program: Program) -> ProgramSummary:
    repository = GrantRepository(db, program)
    return ProgramSummary(
        program=program.key,
        label=program.label,
        table=program.table_name,
        load_mode=program.load_mode,
        records=run_query(program, "count", repository.count),
    )


@router.get("/health", response_model=HealthResponse)
async def health_check(db: Session = Depends(get_db)):
    """Health check endpoint."""
    try:
        db.execute(text("SELECT 1"))
        database_connected = True
    except SQLAlchemyError as e:
        logger.warning("health_check_database_unreachable", error=str(e))
        database_connected = False

    return HealthResponse(
        status="OK" if database_connected else "DEGRADED",
        message="RMD Dashboard API is running",
        version=config.API_VERSION,
        database_connected=database_connected,
    )


@router.get("/grants", response_model=ProgramListResponse)
async def list_programs(db: Session = Depends(get_db)):
    """List grant programs with their record counts."""
    programs = [summarize_program(db, program) for program in PROGRAMS.values()]
    return ProgramListResponse(programs=programs, total=len(programs))


@router.get("/grants/{program_key}", response_model=ProgramSummary, responses={404: {"model": ErrorResponse}})
async def get_program_summary(program_key: str, db: Session = Depends(get_db)):
    """Get one grant program by key (GIA, IDIG, LAKAS, NAFES)."""
    return summarize_program(db, get_program(program_key))


for _program in PROGRAMS.values():
    router.include_router(build_program_router(_program))
