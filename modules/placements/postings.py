"""Posting management: representatives maintain internships, staff approve them.

Status Flow (internship):
    PENDING → APPROVED (visible)  → FILLED ⇄ APPROVED  (slot accounting)
            → REJECTED (hidden)
    any non-FILLED → PENDING on update (hidden, confirmed offers recounted)

Representatives register unapproved and must be approved by staff
before they can post.
"""
import logging
from datetime import date
from typing import Optional

from .models import (
    ApplicationStatus,
    CompanyRepresentative,
    Internship,
    InternshipLevel,
    InternshipStatus,
)
from .reconciliation import count_confirmed_offers
from .repository import PlacementRepository
from .results import OperationResult, ResultCode, refuse

logger = logging.getLogger(__name__)

MAX_SLOTS = 10
MAX_INTERNSHIPS_PER_REP = 5


def _check_slots(op: str, slots: int, max_slots: int) -> Optional[OperationResult]:
    if slots <= 0 or slots > max_slots:
        return refuse(op, ResultCode.POLICY_VIOLATION,
                      f"Slots must be between 1 and {max_slots} (got {slots})")
    return None


def _check_dates(op: str, internship: Internship) -> Optional[OperationResult]:
    try:
        internship.validate_dates()
    except ValueError as e:
        return refuse(op, ResultCode.POLICY_VIOLATION, str(e),
                      internship_id=internship.id)
    return None


def _owned_internship(
    repo: PlacementRepository,
    op: str,
    rep_id: str,
    internship_id: int,
) -> tuple[Optional[Internship], Optional[OperationResult]]:
    internship = repo.get_internship(internship_id)
    if internship is None:
        return None, refuse(op, ResultCode.NOT_FOUND,
                            f"Internship {internship_id} not found",
                            internship_id=internship_id)
    if internship.owner_rep_id != rep_id:
        return None, refuse(op, ResultCode.NOT_OWNER,
                            f"Internship {internship_id} is not owned by '{rep_id}'",
                            internship_id=internship_id)
    return internship, None


# ---------------------------------------------------------------------------
# Representatives
# ---------------------------------------------------------------------------

def register_representative(
    repo: PlacementRepository,
    rep_id: str,
    name: str,
    company_name: str,
    department: Optional[str] = None,
    position: Optional[str] = None,
) -> OperationResult:
    """Register a company representative (unapproved)."""
    op = "register_representative"
    if repo.get_representative(rep_id) is not None:
        return refuse(op, ResultCode.POLICY_VIOLATION,
                      f"Representative '{rep_id}' already exists")

    rep = CompanyRepresentative(
        id=rep_id,
        name=name,
        company_name=company_name,
        department=department,
        position=position,
        approved=False,
    )
    repo.save_representative(rep)
    logger.info(f"Registered representative '{rep_id}' ({company_name}), awaiting approval")
    return OperationResult.success()


def _set_representative_approval(
    repo: PlacementRepository,
    op: str,
    staff_id: str,
    rep_id: str,
    approved: bool,
) -> OperationResult:
    if repo.get_staff(staff_id) is None:
        return refuse(op, ResultCode.NOT_OWNER,
                      f"'{staff_id}' is not career center staff")
    rep = repo.get_representative(rep_id)
    if rep is None:
        return refuse(op, ResultCode.NOT_FOUND,
                      f"Representative '{rep_id}' not found")

    rep.approved = approved
    repo.save_representative(rep)
    logger.info(
        f"Representative '{rep_id}' {'approved' if approved else 'rejected'} "
        f"by '{staff_id}'"
    )
    return OperationResult.success()


def approve_representative(
    repo: PlacementRepository, staff_id: str, rep_id: str
) -> OperationResult:
    return _set_representative_approval(
        repo, "approve_representative", staff_id, rep_id, True
    )


def reject_representative(
    repo: PlacementRepository, staff_id: str, rep_id: str
) -> OperationResult:
    return _set_representative_approval(
        repo, "reject_representative", staff_id, rep_id, False
    )


# ---------------------------------------------------------------------------
# Internships (representative side)
# ---------------------------------------------------------------------------

def create_internship(
    repo: PlacementRepository,
    rep_id: str,
    title: str,
    preferred_major: str,
    slots: int,
    level: InternshipLevel = InternshipLevel.BASIC,
    description: Optional[str] = None,
    opening_date: Optional[date] = None,
    closing_date: Optional[date] = None,
    max_slots: int = MAX_SLOTS,
    max_internships_per_rep: int = MAX_INTERNSHIPS_PER_REP,
) -> OperationResult:
    """Create a PENDING, hidden posting owned by rep_id.

    Returns:
        OperationResult with internship_id of the new posting
    """
    op = "create_internship"
    rep = repo.get_representative(rep_id)
    if rep is None:
        return refuse(op, ResultCode.NOT_FOUND,
                      f"Representative '{rep_id}' not found")
    if not rep.approved:
        return refuse(op, ResultCode.POLICY_VIOLATION,
                      f"Representative '{rep_id}' is not approved yet")

    existing = len(repo.list_internships_for_rep(rep_id))
    if existing >= max_internships_per_rep:
        return refuse(op, ResultCode.POLICY_VIOLATION,
                      f"Representative '{rep_id}' already has {existing} "
                      f"internships (limit {max_internships_per_rep})")

    refused = _check_slots(op, slots, max_slots)
    if refused is not None:
        return refused

    internship = Internship(
        title=title,
        description=description,
        level=InternshipLevel(level),
        preferred_major=preferred_major,
        opening_date=opening_date,
        closing_date=closing_date,
        status=InternshipStatus.PENDING,
        company_name=rep.company_name,
        owner_rep_id=rep_id,
        slots=slots,
        visible=False,
        confirmed_offers=0,
    )
    refused = _check_dates(op, internship)
    if refused is not None:
        return refused

    internship.id = repo.next_internship_id()
    repo.save_internship(internship)

    logger.info(
        f"Internship {internship.id}: '{title}' created by '{rep_id}' "
        f"({slots} slots, awaiting approval)"
    )
    return OperationResult.success(internship_id=internship.id)


def update_internship(
    repo: PlacementRepository,
    rep_id: str,
    internship_id: int,
    title: str,
    preferred_major: str,
    slots: int,
    level: InternshipLevel = InternshipLevel.BASIC,
    description: Optional[str] = None,
    opening_date: Optional[date] = None,
    closing_date: Optional[date] = None,
    max_slots: int = MAX_SLOTS,
) -> OperationResult:
    """Edit a posting. It goes back to PENDING and hidden.

    Accepted placements stay: confirmed offers are recounted from the
    applications, and slots may not drop below the accepted count.
    FILLED postings cannot be edited.
    """
    op = "update_internship"
    internship, refused = _owned_internship(repo, op, rep_id, internship_id)
    if refused is not None:
        return refused

    if internship.status == InternshipStatus.FILLED:
        return refuse(op, ResultCode.INVALID_STATE,
                      f"Internship {internship_id} is FILLED and cannot be edited",
                      internship_id=internship_id)

    refused = _check_slots(op, slots, max_slots)
    if refused is not None:
        return refused

    accepted = sum(
        1 for a in repo.list_applications_for_internship(internship_id)
        if a.status == ApplicationStatus.SUCCESSFUL_ACCEPTED
    )
    if slots < accepted:
        return refuse(op, ResultCode.INVALID_STATE,
                      f"Internship {internship_id} has {accepted} accepted "
                      f"placements, cannot reduce slots to {slots}",
                      internship_id=internship_id)

    if opening_date and closing_date and closing_date < opening_date:
        return refuse(op, ResultCode.POLICY_VIOLATION,
                      f"Invalid date range: closing date {closing_date} "
                      f"is before opening date {opening_date}",
                      internship_id=internship_id)

    internship.title = title
    internship.description = description
    internship.level = InternshipLevel(level)
    internship.preferred_major = preferred_major
    internship.opening_date = opening_date
    internship.closing_date = closing_date
    internship.slots = slots
    internship.status = InternshipStatus.PENDING
    internship.visible = False
    internship.set_confirmed_offers(
        count_confirmed_offers(repo.list_applications()).get(internship_id, 0)
    )
    repo.save_internship(internship)

    logger.info(f"Internship {internship_id}: updated by '{rep_id}', back to PENDING")
    return OperationResult.success(internship_id=internship_id)


def toggle_internship_visibility(
    repo: PlacementRepository,
    rep_id: str,
    internship_id: int,
) -> OperationResult:
    """Show/hide an APPROVED posting."""
    op = "toggle_internship_visibility"
    internship, refused = _owned_internship(repo, op, rep_id, internship_id)
    if refused is not None:
        return refused

    if internship.status != InternshipStatus.APPROVED:
        return refuse(op, ResultCode.INVALID_STATE,
                      f"Internship {internship_id} is {internship.status.value}; "
                      f"only APPROVED internships can change visibility",
                      internship_id=internship_id)

    internship.toggle_visibility()
    repo.save_internship(internship)

    logger.info(
        f"Internship {internship_id}: now "
        f"{'visible' if internship.visible else 'hidden'}"
    )
    return OperationResult.success(internship_id=internship_id)


# ---------------------------------------------------------------------------
# Internships (staff side)
# ---------------------------------------------------------------------------

def _review_internship(
    repo: PlacementRepository,
    op: str,
    staff_id: str,
    internship_id: int,
    approve: bool,
) -> OperationResult:
    if repo.get_staff(staff_id) is None:
        return refuse(op, ResultCode.NOT_OWNER,
                      f"'{staff_id}' is not career center staff",
                      internship_id=internship_id)

    internship = repo.get_internship(internship_id)
    if internship is None:
        return refuse(op, ResultCode.NOT_FOUND,
                      f"Internship {internship_id} not found",
                      internship_id=internship_id)

    if internship.status != InternshipStatus.PENDING:
        return refuse(op, ResultCode.INVALID_STATE,
                      f"Cannot review: internship {internship_id} is "
                      f"{internship.status.value} (expected PENDING)",
                      internship_id=internship_id)

    if approve:
        internship.status = InternshipStatus.APPROVED
        internship.visible = True
        # an edited posting may already be full
        internship.set_confirmed_offers(internship.confirmed_offers)
    else:
        internship.status = InternshipStatus.REJECTED
        internship.visible = False
    repo.save_internship(internship)

    logger.info(
        f"Internship {internship_id}: {internship.status.value} by '{staff_id}'"
    )
    return OperationResult.success(internship_id=internship_id)


def approve_internship(
    repo: PlacementRepository, staff_id: str, internship_id: int
) -> OperationResult:
    return _review_internship(repo, "approve_internship", staff_id, internship_id, True)


def reject_internship(
    repo: PlacementRepository, staff_id: str, internship_id: int
) -> OperationResult:
    return _review_internship(repo, "reject_internship", staff_id, internship_id, False)
