"""Allocation engine: the application/internship state machine.

Operations (each takes an explicit actor id):
    apply               student  → creates Application(PENDING)
    company_decision    rep      → PENDING → SUCCESSFUL_PENDING | UNSUCCESSFUL
    accept_offer        student  → SUCCESSFUL_ACCEPTED, takes a slot, cascades
    reject_offer        student  → SUCCESSFUL_REJECTED
    request_withdrawal  student  → raises withdrawal_requested
    decide_withdrawal   staff    → SUCCESSFUL_WITHDRAWN (releases slot) or clears flag

Every operation validates all preconditions before touching any entity,
so a failed OperationResult never leaves partial mutations behind. The
caller owns the transaction (see service.PlacementService).

Usage:
    repo = SqlAlchemyRepository(session)
    result = apply(repo, "U2310001A", internship_id=3)
    if not result.ok:
        print(result.code, result.error)
"""
import enum
import logging
from datetime import date
from typing import Optional

from .models import (
    Application,
    ApplicationStatus,
    Internship,
    InternshipLevel,
    InternshipStatus,
    Student,
)
from .repository import PlacementRepository
from .results import OperationResult, ResultCode, refuse

logger = logging.getLogger(__name__)

MAX_ACTIVE_APPLICATIONS = 3


class Decision(enum.Enum):
    OFFER = "offer"
    REJECT = "reject"


DECISION_TARGETS = {
    Decision.OFFER: ApplicationStatus.SUCCESSFUL_PENDING,
    Decision.REJECT: ApplicationStatus.UNSUCCESSFUL,
}

# Status an application is moved to when its student accepts another offer
CASCADE_TARGETS = {
    ApplicationStatus.PENDING: ApplicationStatus.PENDING_WITHDRAWN,
    ApplicationStatus.SUCCESSFUL_PENDING: ApplicationStatus.SUCCESSFUL_WITHDRAWN,
    ApplicationStatus.SUCCESSFUL_REJECTED: ApplicationStatus.SUCCESSFUL_WITHDRAWN,
}


# ---------------------------------------------------------------------------
# Eligibility helpers (shared with listing.py)
# ---------------------------------------------------------------------------

def is_level_eligible(student: Student, internship: Internship) -> bool:
    """Year 1-2 students may only take BASIC internships."""
    if student.year_of_study <= 2:
        return internship.level == InternshipLevel.BASIC
    return True


def is_major_eligible(student: Student, internship: Internship) -> bool:
    if not internship.preferred_major or not student.major:
        return False
    return internship.preferred_major.strip().lower() == student.major.strip().lower()


def posting_refusal(
    student: Student,
    internship: Internship,
    today: date,
) -> Optional[tuple[ResultCode, str]]:
    """Why this student cannot apply to this posting, or None.

    Covers the checks that depend only on the posting and the student,
    not on the student's other applications.
    """
    if internship.status != InternshipStatus.APPROVED:
        return (ResultCode.INVALID_STATE,
                f"Internship {internship.id} is {internship.status.value}, "
                f"not APPROVED")
    if not internship.visible:
        return (ResultCode.INVALID_STATE,
                f"Internship {internship.id} is not visible")
    if not internship.has_available_slots():
        return (ResultCode.CAPACITY_EXCEEDED,
                f"Internship {internship.id} has no free slot "
                f"({internship.confirmed_offers}/{internship.slots})")
    if not internship.is_open_on(today):
        return (ResultCode.POLICY_VIOLATION,
                f"Internship {internship.id} is not open for applications "
                f"on {today.isoformat()}")
    if not is_level_eligible(student, internship):
        return (ResultCode.POLICY_VIOLATION,
                f"Year {student.year_of_study} students may only apply to "
                f"BASIC internships (got {internship.level.value})")
    if not is_major_eligible(student, internship):
        return (ResultCode.POLICY_VIOLATION,
                f"Major '{student.major}' does not match preferred major "
                f"'{internship.preferred_major}'")
    return None


# ---------------------------------------------------------------------------
# 1) Apply
# ---------------------------------------------------------------------------

def apply(
    repo: PlacementRepository,
    student_id: str,
    internship_id: int,
    today: Optional[date] = None,
    max_active_applications: int = MAX_ACTIVE_APPLICATIONS,
) -> OperationResult:
    """Submit a new PENDING application for student_id.

    Args:
        repo: repository (caller manages commit)
        student_id: applying student
        internship_id: target posting
        today: date used for the opening/closing window (default: today)
        max_active_applications: per-student cap on active applications

    Returns:
        OperationResult with application_id of the new application
    """
    op = "apply"
    internship = repo.get_internship(internship_id)
    if internship is None:
        return refuse(op, ResultCode.NOT_FOUND,
                      f"Internship {internship_id} not found",
                      internship_id=internship_id)

    student = repo.get_student(student_id)
    if student is None:
        return refuse(op, ResultCode.NOT_FOUND,
                      f"Student '{student_id}' not found",
                      internship_id=internship_id)

    refusal = posting_refusal(student, internship, today or date.today())
    if refusal is not None:
        code, error = refusal
        return refuse(op, code, error, internship_id=internship_id)

    applications = repo.list_applications_for_student(student_id)
    active = sum(1 for a in applications if a.is_active)
    if active >= max_active_applications:
        return refuse(op, ResultCode.POLICY_VIOLATION,
                      f"Student '{student_id}' already has {active} active "
                      f"applications (limit {max_active_applications})",
                      internship_id=internship_id)

    if any(a.internship_id == internship_id and a.is_open for a in applications):
        return refuse(op, ResultCode.POLICY_VIOLATION,
                      f"Student '{student_id}' already has an open application "
                      f"for internship {internship_id}",
                      internship_id=internship_id)

    application = Application(
        id=repo.next_application_id(),
        student_id=student_id,
        internship_id=internship_id,
        status=ApplicationStatus.PENDING,
        withdrawal_requested=False,
    )
    repo.save_application(application)

    logger.info(
        f"Application {application.id}: '{student_id}' applied to "
        f"internship {internship_id} ('{internship.title}')"
    )
    return OperationResult.success(
        application_id=application.id, internship_id=internship_id
    )


# ---------------------------------------------------------------------------
# 2) Company decision: offer / reject
# ---------------------------------------------------------------------------

def company_decision(
    repo: PlacementRepository,
    rep_id: str,
    application_id: int,
    decision: Decision,
) -> OperationResult:
    """Representative offers or rejects an application to their posting.

    OFFER requires a free slot at decision time. Re-processing an
    accepted application (revoke path) releases its confirmed offer.
    """
    op = "company_decision"
    try:
        decision = Decision(decision)
    except ValueError:
        return refuse(op, ResultCode.INVALID_STATE,
                      f"Unknown decision {decision!r}",
                      application_id=application_id)

    application = repo.get_application(application_id)
    if application is None:
        return refuse(op, ResultCode.NOT_FOUND,
                      f"Application {application_id} not found",
                      application_id=application_id)

    internship = repo.get_internship(application.internship_id)
    if internship is None:
        return refuse(op, ResultCode.NOT_FOUND,
                      f"Internship {application.internship_id} not found",
                      application_id=application_id)

    if application.status in (
        ApplicationStatus.PENDING_WITHDRAWN,
        ApplicationStatus.SUCCESSFUL_WITHDRAWN,
    ):
        return refuse(op, ResultCode.INVALID_STATE,
                      f"Application {application_id} was withdrawn "
                      f"({application.status.value})",
                      application_id=application_id,
                      internship_id=internship.id)

    if internship.owner_rep_id != rep_id:
        return refuse(op, ResultCode.NOT_OWNER,
                      f"Internship {internship.id} is not owned by '{rep_id}'",
                      application_id=application_id,
                      internship_id=internship.id)

    target = DECISION_TARGETS[decision]
    if not application.can_transition_to(target):
        return refuse(op, ResultCode.INVALID_STATE,
                      f"Cannot {decision.value}: application {application_id} "
                      f"is {application.status.value}",
                      application_id=application_id,
                      internship_id=internship.id)

    if decision == Decision.OFFER and not internship.has_available_slots():
        return refuse(op, ResultCode.CAPACITY_EXCEEDED,
                      f"Internship {internship.id} has no free slot "
                      f"({internship.confirmed_offers}/{internship.slots})",
                      application_id=application_id,
                      internship_id=internship.id)

    previous = application.transition_to(target)
    application.withdrawal_requested = False

    if (
        previous == ApplicationStatus.SUCCESSFUL_ACCEPTED
        and internship.confirmed_offers > 0
    ):
        internship.revoke_confirmed_offer()
        logger.info(
            f"Internship {internship.id}: confirmed offer revoked "
            f"({internship.confirmed_offers}/{internship.slots})"
        )

    repo.save_application(application)
    repo.save_internship(internship)

    logger.info(
        f"Application {application_id}: {previous.value} → {target.value} "
        f"by '{rep_id}'"
    )
    return OperationResult.success(
        application_id=application_id, internship_id=internship.id
    )


# ---------------------------------------------------------------------------
# 3) Student decision: accept / reject offer
# ---------------------------------------------------------------------------

def _owned_application(
    repo: PlacementRepository,
    op: str,
    student_id: str,
    application_id: int,
) -> tuple[Optional[Application], Optional[OperationResult]]:
    application = repo.get_application(application_id)
    if application is None:
        return None, refuse(op, ResultCode.NOT_FOUND,
                            f"Application {application_id} not found",
                            application_id=application_id)
    if application.student_id != student_id:
        return None, refuse(op, ResultCode.NOT_OWNER,
                            f"Application {application_id} does not belong "
                            f"to '{student_id}'",
                            application_id=application_id)
    return application, None


def accept_offer(
    repo: PlacementRepository,
    student_id: str,
    application_id: int,
) -> OperationResult:
    """Accept a SUCCESSFUL_PENDING offer.

    Takes a slot on the internship and withdraws every other active
    application of the student:
        PENDING                                   → PENDING_WITHDRAWN
        SUCCESSFUL_PENDING / SUCCESSFUL_REJECTED  → SUCCESSFUL_WITHDRAWN
    """
    op = "accept_offer"
    application, refused = _owned_application(repo, op, student_id, application_id)
    if refused is not None:
        return refused

    if application.status != ApplicationStatus.SUCCESSFUL_PENDING:
        return refuse(op, ResultCode.INVALID_STATE,
                      f"Cannot accept: application {application_id} is "
                      f"{application.status.value} (expected SUCCESSFUL_PENDING)",
                      application_id=application_id)

    others = [
        a for a in repo.list_applications_for_student(student_id)
        if a.id != application.id
    ]
    if any(a.status == ApplicationStatus.SUCCESSFUL_ACCEPTED for a in others):
        return refuse(op, ResultCode.POLICY_VIOLATION,
                      f"Student '{student_id}' already holds an accepted offer",
                      application_id=application_id)

    internship = repo.get_internship(application.internship_id)
    if internship is None:
        return refuse(op, ResultCode.NOT_FOUND,
                      f"Internship {application.internship_id} not found",
                      application_id=application_id)

    if not internship.has_available_slots():
        return refuse(op, ResultCode.CAPACITY_EXCEEDED,
                      f"Internship {internship.id} is already full "
                      f"({internship.confirmed_offers}/{internship.slots})",
                      application_id=application_id,
                      internship_id=internship.id)

    application.transition_to(ApplicationStatus.SUCCESSFUL_ACCEPTED)
    application.withdrawal_requested = False
    internship.register_confirmed_offer()

    withdrawn = 0
    for other in others:
        target = CASCADE_TARGETS.get(other.status)
        if target is None:
            continue
        other.transition_to(target)
        other.withdrawal_requested = False
        repo.save_application(other)
        withdrawn += 1
        logger.debug(f"Cascade: application {other.id} → {target.value}")

    repo.save_application(application)
    repo.save_internship(internship)

    logger.info(
        f"Application {application_id}: offer accepted by '{student_id}' "
        f"(internship {internship.id} now {internship.confirmed_offers}/"
        f"{internship.slots}, {withdrawn} other application(s) withdrawn)"
    )
    return OperationResult.success(
        application_id=application_id, internship_id=internship.id
    )


def reject_offer(
    repo: PlacementRepository,
    student_id: str,
    application_id: int,
) -> OperationResult:
    """Decline a SUCCESSFUL_PENDING offer. No slot was taken, none is released."""
    op = "reject_offer"
    application, refused = _owned_application(repo, op, student_id, application_id)
    if refused is not None:
        return refused

    if application.status != ApplicationStatus.SUCCESSFUL_PENDING:
        return refuse(op, ResultCode.INVALID_STATE,
                      f"Cannot reject: application {application_id} is "
                      f"{application.status.value} (expected SUCCESSFUL_PENDING)",
                      application_id=application_id)

    application.transition_to(ApplicationStatus.SUCCESSFUL_REJECTED)
    repo.save_application(application)

    logger.info(f"Application {application_id}: offer rejected by '{student_id}'")
    return OperationResult.success(
        application_id=application_id, internship_id=application.internship_id
    )


# ---------------------------------------------------------------------------
# 4) Withdrawal: student request, staff decision
# ---------------------------------------------------------------------------

def request_withdrawal(
    repo: PlacementRepository,
    student_id: str,
    application_id: int,
) -> OperationResult:
    """Flag an accepted placement for withdrawal. Status is unchanged until staff decide."""
    op = "request_withdrawal"
    application, refused = _owned_application(repo, op, student_id, application_id)
    if refused is not None:
        return refused

    if application.status != ApplicationStatus.SUCCESSFUL_ACCEPTED:
        return refuse(op, ResultCode.INVALID_STATE,
                      f"Cannot request withdrawal: application {application_id} "
                      f"is {application.status.value} "
                      f"(expected SUCCESSFUL_ACCEPTED)",
                      application_id=application_id)

    if application.withdrawal_requested:
        return refuse(op, ResultCode.INVALID_STATE,
                      f"Withdrawal already requested for application "
                      f"{application_id}",
                      application_id=application_id)

    application.withdrawal_requested = True
    repo.save_application(application)

    logger.info(
        f"Application {application_id}: withdrawal requested by '{student_id}'"
    )
    return OperationResult.success(
        application_id=application_id, internship_id=application.internship_id
    )


def decide_withdrawal(
    repo: PlacementRepository,
    staff_id: str,
    application_id: int,
    approve: bool,
) -> OperationResult:
    """Career center staff approve or reject a pending withdrawal request.

    Approval moves the application to SUCCESSFUL_WITHDRAWN and releases
    its confirmed offer. The request flag is cleared either way.
    """
    op = "decide_withdrawal"
    application = repo.get_application(application_id)
    if application is None:
        return refuse(op, ResultCode.NOT_FOUND,
                      f"Application {application_id} not found",
                      application_id=application_id)

    if repo.get_staff(staff_id) is None:
        return refuse(op, ResultCode.NOT_OWNER,
                      f"'{staff_id}' is not career center staff",
                      application_id=application_id)

    if not application.withdrawal_requested:
        return refuse(op, ResultCode.INVALID_STATE,
                      f"No withdrawal requested for application {application_id}",
                      application_id=application_id)

    target = ApplicationStatus.SUCCESSFUL_WITHDRAWN
    if approve and not application.can_transition_to(target):
        return refuse(op, ResultCode.INVALID_STATE,
                      f"Cannot withdraw: application {application_id} is "
                      f"{application.status.value}",
                      application_id=application_id)

    if approve:
        previous = application.transition_to(target)
        if previous == ApplicationStatus.SUCCESSFUL_ACCEPTED:
            internship = repo.get_internship(application.internship_id)
            if internship is not None and internship.confirmed_offers > 0:
                internship.revoke_confirmed_offer()
                repo.save_internship(internship)
                logger.info(
                    f"Internship {internship.id}: slot released "
                    f"({internship.confirmed_offers}/{internship.slots})"
                )

    application.withdrawal_requested = False
    repo.save_application(application)

    logger.info(
        f"Application {application_id}: withdrawal "
        f"{'approved' if approve else 'rejected'} by '{staff_id}'"
    )
    return OperationResult.success(
        application_id=application_id, internship_id=application.internship_id
    )
