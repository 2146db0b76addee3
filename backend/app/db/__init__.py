"""Database package."""

from backend.app.db.base import Base
from backend.app.db.session import get_db, engine, session_scope

__all__ = ["Base", "get_db", "engine", "session_scope"]
