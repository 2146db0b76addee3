"""Services package."""

from backend.app.services.csv_loader import BulkLoader, LoadResult, load_csv_file
from backend.app.services.grant_repository import GrantRepository
from backend.app.services.programs import PROGRAMS, Program, get_program

__all__ = [
    "BulkLoader",
    "LoadResult",
    "load_csv_file",
    "GrantRepository",
    "PROGRAMS",
    "Program",
    "get_program",
]
