"""
Database initialization script.

Usage:
    python -m backend.app.db.init_db [--drop | --reset]
"""

import argparse
import sys

import structlog
from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError

load_dotenv()

from backend.app.db.session import engine
from backend.app.db.base import Base
from backend.app.logging_config import configure_logging
from backend.app.models import GiaGrant, IdigGrant, LakasGrant, NafesGrant  # noqa: F401 (register tables)

logger = structlog.get_logger()


def init_db() -> None:
    """Create every grant program table that does not exist yet."""
    logger.info("database_init_started", url=engine.url.render_as_string(hide_password=True))
    
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("database_tables_created", tables=sorted(Base.metadata.tables))
        
    except Exception as e:
        logger.error("database_init_failed", error=str(e), exc_info=True)
        raise


def drop_db() -> None:
    """
    Drop all grant program tables.
    
    WARNING: This will delete all data!
    """
    logger.warning("database_drop_started")
    
    try:
        Base.metadata.drop_all(bind=engine)
        logger.warning("database_tables_dropped")
        
    except Exception as e:
        logger.error("database_drop_failed", error=str(e), exc_info=True)
        raise


def reset_db() -> None:
    """
    Reset database (drop and recreate).
    
    WARNING: This will delete all data!
    """
    logger.warning("database_reset_started")
    drop_db()
    init_db()
    logger.warning("database_reset_completed")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create or reset the grants dashboard tables")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--drop", action="store_true", help="Drop all tables")
    group.add_argument("--reset", action="store_true", help="Drop and recreate all tables")
    args = parser.parse_args(argv)

    configure_logging()

    try:
        if args.drop:
            drop_db()
        elif args.reset:
            reset_db()
        else:
            init_db()
    except SQLAlchemyError as e:
        print(f"\n❌ Database operation failed: {e}")
        return 1

    print("\n✅ Database operation completed!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
