"""Bulk import of the legacy flat files into the placement database.

Expected files (header row required, extra columns ignored):
    student_list.csv                  StudentID,Name,Major,Year,Email
    staff_list.csv                    StaffID,Name,Role,Department,Email
    company_representative_list.csv   CompanyRepID,Name,CompanyName,Department,Position,Email,Status
    internships.csv                   internshipId,title,description,level,preferredMajor,
                                      openingDate,closingDate,status,companyName,
                                      representativeInChargeId,slots,isVisible
    applications.csv                  applicationId,studentId,internshipId,status,withdrawalRequested

Missing files are skipped. The legacy internships file carries no
confirmed-offer count, so import_directory() always finishes with
reconciliation. Re-importing overwrites rows with the same id.
"""
import csv
import logging
from datetime import date
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from .models import (
    Application,
    ApplicationStatus,
    CareerCenterStaff,
    CompanyRepresentative,
    Internship,
    InternshipLevel,
    InternshipStatus,
    Student,
)
from .postings import MAX_SLOTS
from .reconciliation import reconcile_confirmed_offers
from .repository import SqlAlchemyRepository

logger = logging.getLogger(__name__)

STUDENT_FILE = "student_list.csv"
STAFF_FILE = "staff_list.csv"
REPRESENTATIVE_FILE = "company_representative_list.csv"
INTERNSHIP_FILE = "internships.csv"
APPLICATION_FILE = "applications.csv"


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------

def parse_int(raw: Optional[str], fallback: int) -> int:
    """"3" → 3, "" / "x" → fallback."""
    try:
        return int((raw or "").strip())
    except ValueError:
        return fallback


def parse_bool(raw: Optional[str]) -> bool:
    return (raw or "").strip().lower() == "true"


def parse_date(raw: Optional[str]) -> Optional[date]:
    """ISO date or None for blank."""
    if not raw or not raw.strip():
        return None
    return date.fromisoformat(raw.strip())


def parse_enum(enum_cls, raw: Optional[str], fallback):
    """Case-insensitive enum lookup by name, fallback when unknown."""
    try:
        return enum_cls[(raw or "").strip().upper()]
    except KeyError:
        return fallback


def _field(row: dict, name: str) -> str:
    return (row.get(name) or "").strip()


# ---------------------------------------------------------------------------
# Row → model
# ---------------------------------------------------------------------------

def row_to_student(row: dict) -> Student:
    return Student(
        id=_field(row, "StudentID"),
        name=_field(row, "Name"),
        major=_field(row, "Major"),
        year_of_study=parse_int(row.get("Year"), 1),
    )


def row_to_staff(row: dict) -> CareerCenterStaff:
    return CareerCenterStaff(
        id=_field(row, "StaffID"),
        name=_field(row, "Name"),
        department=_field(row, "Department") or None,
    )


def row_to_representative(row: dict) -> CompanyRepresentative:
    return CompanyRepresentative(
        id=_field(row, "CompanyRepID"),
        name=_field(row, "Name"),
        company_name=_field(row, "CompanyName"),
        department=_field(row, "Department") or None,
        position=_field(row, "Position") or None,
        approved=_field(row, "Status").lower() == "approved",
    )


def row_to_internship(row: dict) -> Internship:
    internship = Internship(
        id=parse_int(row.get("internshipId"), 0),
        title=_field(row, "title"),
        description=_field(row, "description") or None,
        level=parse_enum(InternshipLevel, row.get("level"), InternshipLevel.BASIC),
        preferred_major=_field(row, "preferredMajor"),
        opening_date=parse_date(row.get("openingDate")),
        closing_date=parse_date(row.get("closingDate")),
        status=parse_enum(InternshipStatus, row.get("status"), InternshipStatus.PENDING),
        company_name=_field(row, "companyName"),
        owner_rep_id=_field(row, "representativeInChargeId"),
        slots=parse_int(row.get("slots"), 0),
        visible=parse_bool(row.get("isVisible")),
        confirmed_offers=0,
    )
    if not 0 < internship.slots <= MAX_SLOTS:
        raise ValueError(
            f"slots must be between 1 and {MAX_SLOTS} (got {row.get('slots')!r})"
        )
    if internship.status in (InternshipStatus.PENDING, InternshipStatus.REJECTED):
        # only reviewed postings can be on show
        internship.visible = False
    internship.validate_dates()
    return internship


def row_to_application(row: dict) -> Application:
    return Application(
        id=parse_int(row.get("applicationId"), 0),
        student_id=_field(row, "studentId"),
        internship_id=parse_int(row.get("internshipId"), 0),
        status=parse_enum(ApplicationStatus, row.get("status"), ApplicationStatus.PENDING),
        withdrawal_requested=parse_bool(row.get("withdrawalRequested")),
    )


def _required_ok(obj) -> bool:
    if isinstance(obj, (Internship, Application)):
        return obj.id > 0
    return bool(obj.id)


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------

def import_file(session: Session, path: Path, converter) -> dict:
    """Merge every row of one CSV file into the session.

    Returns:
        {"imported": N, "skipped": N, "total": N}
    """
    stats = {"imported": 0, "skipped": 0, "total": 0}
    if not path.exists():
        logger.info(f"No {path.name} — skipped")
        return stats

    with open(path, "r", encoding="utf-8", newline="") as f:
        rows = list(csv.DictReader(f))
    stats["total"] = len(rows)

    for i, row in enumerate(rows, start=2):
        try:
            obj = converter(row)
        except ValueError as e:
            logger.warning(f"{path.name} row {i}: {e}")
            stats["skipped"] += 1
            continue
        if not _required_ok(obj):
            logger.warning(f"{path.name} row {i}: missing id")
            stats["skipped"] += 1
            continue
        session.merge(obj)
        stats["imported"] += 1

    session.flush()
    logger.info(
        f"{path.name}: {stats['imported']} imported, {stats['skipped']} skipped "
        f"(of {stats['total']})"
    )
    return stats


def import_directory(session: Session, data_dir: Path) -> dict:
    """Import all legacy files from data_dir, seed id counters, reconcile.

    Args:
        session: SQLAlchemy session (caller manages commit)
        data_dir: directory holding the CSV files

    Returns:
        {"students": {...}, "staff": {...}, "representatives": {...},
         "internships": {...}, "applications": {...}, "reconciliation": {...}}
    """
    data_dir = Path(data_dir)
    stats = {
        "students": import_file(session, data_dir / STUDENT_FILE, row_to_student),
        "staff": import_file(session, data_dir / STAFF_FILE, row_to_staff),
        "representatives": import_file(
            session, data_dir / REPRESENTATIVE_FILE, row_to_representative
        ),
        "internships": import_file(session, data_dir / INTERNSHIP_FILE, row_to_internship),
        "applications": import_file(
            session, data_dir / APPLICATION_FILE, row_to_application
        ),
    }

    repo = SqlAlchemyRepository(session)
    internships = repo.list_internships()
    applications = repo.list_applications()
    repo.ids.seed("internship", max((i.id for i in internships), default=0))
    repo.ids.seed("application", max((a.id for a in applications), default=0))

    stats["reconciliation"] = reconcile_confirmed_offers(internships, applications)
    return stats
