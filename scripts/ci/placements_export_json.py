#!/usr/bin/env python3
"""Export the placement database to JSON (dashboard data).

Outputs:
  public/placements.json — internships, applications and summary statistics

Usage:
    python scripts/ci/placements_export_json.py --db /tmp/placements.db
"""
import argparse
import json
import logging
import os
import sys
from datetime import date, datetime, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from modules.placements.database import get_engine, get_session, get_db_path
from modules.placements.listing import summary_report
from modules.placements.models import Application, Internship
from modules.placements.repository import SqlAlchemyRepository

logger = logging.getLogger(__name__)


class DateTimeEncoder(json.JSONEncoder):
    """JSON encoder that handles date/datetime objects."""
    def default(self, obj):
        if isinstance(obj, (date, datetime)):
            return obj.isoformat()
        return super().default(obj)


def internship_to_dict(i: Internship) -> dict:
    return {
        "id": i.id,
        "title": i.title,
        "description": i.description,
        "level": i.level.value,
        "preferred_major": i.preferred_major,
        "opening_date": i.opening_date,
        "closing_date": i.closing_date,
        "status": i.status.value,
        "company_name": i.company_name,
        "owner_rep_id": i.owner_rep_id,
        "slots": i.slots,
        "visible": i.visible,
        "confirmed_offers": i.confirmed_offers,
    }


def application_to_dict(a: Application) -> dict:
    return {
        "id": a.id,
        "student_id": a.student_id,
        "internship_id": a.internship_id,
        "status": a.status.value,
        "withdrawal_requested": a.withdrawal_requested,
    }


def build_export(session) -> dict:
    repo = SqlAlchemyRepository(session)
    internships = repo.list_internships()
    applications = repo.list_applications()
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "summary": summary_report(internships, applications),
        "internships": [internship_to_dict(i) for i in internships],
        "applications": [application_to_dict(a) for a in applications],
    }


def export_json(db_path: Path, output_dir: Path) -> Path:
    """Write placements.json into output_dir, return its path."""
    engine = get_engine(db_path)
    with get_session(engine) as session:
        data = build_export(session)
    engine.dispose()

    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / "placements.json"
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, cls=DateTimeEncoder, indent=2, ensure_ascii=False)

    logger.info(
        f"Exported {len(data['internships'])} internships, "
        f"{len(data['applications'])} applications → {output_path}"
    )
    return output_path


def main():
    parser = argparse.ArgumentParser(description="Export placements to JSON")
    parser.add_argument("--db", type=Path, default=None, help="SQLite DB path")
    parser.add_argument(
        "--json-dir", type=Path, default=Path("public"),
        help="Output directory for placements.json (default: public/)",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.db:
        os.environ["PLACEMENT_DB_PATH"] = str(args.db)

    db_path = args.db or get_db_path()
    if not db_path.exists():
        logger.error(f"Database not found: {db_path}")
        sys.exit(1)

    json_path = export_json(db_path, args.json_dir)
    logger.info(f"✓ JSON export: {json_path}")


if __name__ == "__main__":
    main()
