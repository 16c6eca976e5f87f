"""Read-side queries: filtered internship lists, eligibility, review queues."""
import logging
from collections import Counter
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from .engine import posting_refusal
from .models import (
    Application,
    ApplicationStatus,
    Internship,
    InternshipLevel,
    InternshipStatus,
    Student,
)

logger = logging.getLogger(__name__)


@dataclass
class FilterCriteria:
    """Optional filters, AND-ed together. None means 'any'."""
    status: Optional[InternshipStatus] = None
    level: Optional[InternshipLevel] = None
    preferred_major: Optional[str] = None
    company_name: Optional[str] = None
    closing_date_before: Optional[date] = None  # inclusive
    visible_only: Optional[bool] = None

    def matches(self, internship: Internship) -> bool:
        if self.status is not None and internship.status != self.status:
            return False
        if self.level is not None and internship.level != self.level:
            return False
        if self.preferred_major is not None and (
            (internship.preferred_major or "").lower() != self.preferred_major.lower()
        ):
            return False
        if self.company_name is not None and (
            (internship.company_name or "").lower() != self.company_name.lower()
        ):
            return False
        if self.closing_date_before is not None and (
            internship.closing_date is None
            or internship.closing_date > self.closing_date_before
        ):
            return False
        if self.visible_only is not None and internship.visible != self.visible_only:
            return False
        return True


def _by_title(internship: Internship) -> str:
    return (internship.title or "").lower()


def filter_internships(
    internships: Iterable[Internship],
    criteria: Optional[FilterCriteria] = None,
) -> list[Internship]:
    """Internships matching criteria, sorted by title (case-insensitive)."""
    criteria = criteria or FilterCriteria()
    return sorted((i for i in internships if criteria.matches(i)), key=_by_title)


def eligible_internships(
    student: Student,
    internships: Iterable[Internship],
    today: Optional[date] = None,
    criteria: Optional[FilterCriteria] = None,
) -> list[Internship]:
    """Postings this student could apply to right now, by title.

    Ignores the student's existing applications (limit, duplicates);
    apply() still enforces those.
    """
    today = today or date.today()
    return [
        i for i in filter_internships(internships, criteria)
        if posting_refusal(student, i, today) is None
    ]


def pending_withdrawal_requests(applications: Iterable[Application]) -> list[Application]:
    return [a for a in applications if a.withdrawal_requested]


def summary_report(
    internships: Iterable[Internship],
    applications: Iterable[Application],
) -> dict:
    """Counts by status plus slot usage.

    Returns:
        {"internships": {...}, "applications": {...},
         "slots": {"total": N, "confirmed": N}, "withdrawal_requests": N}
    """
    internships = list(internships)
    applications = list(applications)

    internship_counts = Counter(i.status.value for i in internships)
    application_counts = Counter(a.status.value for a in applications)

    return {
        "internships": {s.value: internship_counts.get(s.value, 0) for s in InternshipStatus},
        "applications": {s.value: application_counts.get(s.value, 0) for s in ApplicationStatus},
        "slots": {
            "total": sum(i.slots for i in internships),
            "confirmed": sum(i.confirmed_offers for i in internships),
        },
        "withdrawal_requests": len(pending_withdrawal_requests(applications)),
    }
