"""
Pydantic models for API requests and responses.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class UploadResponse(BaseModel):
    """Result of a CSV upload."""
    model_config = ConfigDict(populate_by_name=True)

    message: str
    records_processed: int = Field(..., alias="recordsProcessed", description="Rows written to the table")
    replace_all: bool = Field(..., alias="replaceAll", description="Whether existing rows were cleared first")


class ErrorResponse(BaseModel):
    """Error body returned by every failing endpoint."""
    error: str


class ProgramSummary(BaseModel):
    """One grant program and its table size."""
    program: str = Field(..., description="URL key of the program, e.g. 'gia'")
    label: str
    table: str
    load_mode: str = Field(..., description="'replace' or 'upsert'")
    records: int


class ProgramListResponse(BaseModel):
    programs: List[ProgramSummary]
    total: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    message: str
    version: str
    database_connected: bool
