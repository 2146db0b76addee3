"""
Engine and session factory for the grants database.

The DSN comes from ``DB_DSN``; PostgreSQL is the production target, MySQL
and SQLite are accepted for local work and tests.
"""

from contextlib import contextmanager
from typing import Any, Dict, Generator, Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session

from backend.app import config


def engine_options(url: str) -> Dict[str, Any]:
    """Keyword arguments for ``create_engine`` suited to the DSN's backend."""
    options: Dict[str, Any] = {"echo": config.SQL_ECHO}

    if make_url(url).get_backend_name() == "sqlite":
        # Sessions are handed across FastAPI's threadpool
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_pre_ping"] = True
        options["pool_size"] = config.DB_POOL_SIZE

    return options


engine = create_engine(config.DATABASE_URL, **engine_options(config.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency yielding a request-scoped session.

    Yields:
        Session: Database session, closed after the response
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """Session for command-line scripts. Commit and rollback stay with the caller."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
