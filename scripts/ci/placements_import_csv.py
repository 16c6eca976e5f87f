#!/usr/bin/env python3
"""Import the legacy placement CSV files into SQLite and reconcile.

Reads student_list.csv, staff_list.csv, company_representative_list.csv,
internships.csv and applications.csv from --data-dir (missing files are
skipped), then recomputes confirmed offers.

Usage:
    python scripts/ci/placements_import_csv.py [--data-dir DIR] [--db PATH] [-v]
"""
import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from modules.placements.csv_import import import_directory
from modules.placements.database import get_engine, get_session, get_db_path, init_db

logger = logging.getLogger(__name__)


def run_import(data_dir: Path, db_path: Optional[Path] = None) -> dict:
    """Import data_dir into db_path. Returns the import statistics."""
    db_path = db_path or get_db_path()
    engine = get_engine(db_path)
    init_db(engine)

    with get_session(engine) as session:
        stats = import_directory(session, data_dir)

    engine.dispose()
    return stats


def main():
    parser = argparse.ArgumentParser(description="Import placement CSV files into SQLite")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=Path("."),
        help="Directory with the legacy CSV files (default: .)",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Path to SQLite database (default: from PLACEMENT_DB_PATH or /tmp/placements.db)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose logging",
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.db:
        os.environ["PLACEMENT_DB_PATH"] = str(args.db)

    if not args.data_dir.is_dir():
        logger.error(f"Data directory not found: {args.data_dir}")
        sys.exit(1)

    stats = run_import(args.data_dir, args.db)
    imported = sum(
        s["imported"] for key, s in stats.items() if key != "reconciliation"
    )
    if imported == 0:
        logger.error("No rows imported!")
        sys.exit(1)

    print(json.dumps(stats, indent=2))
    logger.info(f"✓ {imported} rows imported successfully")


if __name__ == "__main__":
    main()
