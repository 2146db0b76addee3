#!/usr/bin/env python3
"""
Load a grant program CSV export into the database.

Runs the same pipeline as the upload endpoint, but leaves the source file
in place.

Usage:
    python -m backend.app.scripts.load_csv gia exports/gia_2024.csv --replace-all
    python -m backend.app.scripts.load_csv lakas exports/lakas.csv
"""

import argparse
import sys

import structlog
from dotenv import load_dotenv

load_dotenv()

from backend.app.db.session import session_scope
from backend.app.errors import GrantsAPIError
from backend.app.logging_config import configure_logging
from backend.app.services.csv_loader import load_csv_file
from backend.app.services.programs import PROGRAMS, get_program

logger = structlog.get_logger()


def main(argv=None) -> int:
    """Main function."""
    parser = argparse.ArgumentParser(description="Load a grant program CSV export")
    parser.add_argument(
        "program",
        choices=sorted(PROGRAMS),
        help="Target grant program"
    )
    parser.add_argument(
        "csv_path",
        type=str,
        help="Path to the CSV file"
    )
    parser.add_argument(
        "--replace-all",
        action="store_true",
        help="Delete every existing row of the program's table first"
    )

    args = parser.parse_args(argv)
    configure_logging()

    program = get_program(args.program)

    print("\n" + "=" * 60)
    print(f"LOADING {program.label} GRANTS FROM CSV")
    print("=" * 60 + "\n")

    try:
        with session_scope() as db:
            result = load_csv_file(
                db,
                program,
                args.csv_path,
                replace_all=args.replace_all,
                remove_file=False,
            )

    except KeyboardInterrupt:
        print("\n\n⚠️  Interrupted by user")
        return 1

    except (GrantsAPIError, OSError) as e:
        print(f"\n\n❌ Error: {e}")
        logger.error("script_failed", program=program.key, error=str(e))
        return 1

    print(f"\n✅ {program.label} load complete!")
    print(f"   Records processed: {result.records_processed}")
    print(f"   Mode: {result.mode}")
    if result.replace_all:
        print(f"   Rows replaced: {result.deleted}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
