"""PlacementService: one session (unit of work) per operation.

Every call opens a session, runs one engine/posting operation through a
SqlAlchemyRepository and commits. A refused operation is rolled back; an
exception (database or I/O failure) rolls back and propagates, so no
partial write is ever visible to later reads.

Reconciliation runs once in start(), before any operation is accepted.

Usage:
    service = PlacementService(get_engine())
    service.start()
    result = service.apply("U2310001A", 3)
"""
import logging
from datetime import date
from pathlib import Path
from typing import Callable, Optional

from . import engine as allocation
from . import listing, postings
from .config import PlacementConfig, get_config
from .database import get_engine, get_session, init_db
from .models import Application, Internship, InternshipLevel
from .reconciliation import reconcile_confirmed_offers
from .repository import SqlAlchemyRepository
from .results import OperationResult

logger = logging.getLogger(__name__)


class PlacementService:
    """Facade over the allocation engine with per-operation transactions."""

    def __init__(self, db_engine=None, config: Optional[PlacementConfig] = None):
        self.config = config or get_config()
        self.db_engine = db_engine or get_engine(
            Path(self.config.database.path), echo=self.config.database.echo
        )
        self._started = False

    # -- lifecycle -----------------------------------------------------------

    def start(self) -> dict:
        """Create tables if missing and reconcile confirmed offers once."""
        if self._started:
            raise RuntimeError("PlacementService already started")
        init_db(self.db_engine)
        with get_session(self.db_engine) as session:
            repo = SqlAlchemyRepository(session)
            stats = reconcile_confirmed_offers(
                repo.list_internships(), repo.list_applications()
            )
        self._started = True
        logger.info(f"PlacementService started ({stats['internships']} internships)")
        return stats

    def _run(self, operation: Callable[..., OperationResult], *args, **kwargs) -> OperationResult:
        if not self._started:
            raise RuntimeError("PlacementService.start() must run before operations")
        with get_session(self.db_engine) as session:
            result = operation(SqlAlchemyRepository(session), *args, **kwargs)
            if not result.ok:
                session.rollback()
        return result

    # -- allocation engine ---------------------------------------------------

    def apply(self, student_id: str, internship_id: int,
              today: Optional[date] = None) -> OperationResult:
        return self._run(
            allocation.apply, student_id, internship_id, today=today,
            max_active_applications=self.config.limits.max_active_applications,
        )

    def company_decision(self, rep_id: str, application_id: int,
                         decision: allocation.Decision) -> OperationResult:
        return self._run(allocation.company_decision, rep_id, application_id, decision)

    def accept_offer(self, student_id: str, application_id: int) -> OperationResult:
        return self._run(allocation.accept_offer, student_id, application_id)

    def reject_offer(self, student_id: str, application_id: int) -> OperationResult:
        return self._run(allocation.reject_offer, student_id, application_id)

    def request_withdrawal(self, student_id: str, application_id: int) -> OperationResult:
        return self._run(allocation.request_withdrawal, student_id, application_id)

    def decide_withdrawal(self, staff_id: str, application_id: int,
                          approve: bool) -> OperationResult:
        return self._run(allocation.decide_withdrawal, staff_id, application_id, approve)

    # -- postings ------------------------------------------------------------

    def register_representative(self, rep_id: str, name: str, company_name: str,
                                department: Optional[str] = None,
                                position: Optional[str] = None) -> OperationResult:
        return self._run(postings.register_representative, rep_id, name,
                         company_name, department, position)

    def approve_representative(self, staff_id: str, rep_id: str) -> OperationResult:
        return self._run(postings.approve_representative, staff_id, rep_id)

    def reject_representative(self, staff_id: str, rep_id: str) -> OperationResult:
        return self._run(postings.reject_representative, staff_id, rep_id)

    def create_internship(self, rep_id: str, title: str, preferred_major: str,
                          slots: int, level: InternshipLevel = InternshipLevel.BASIC,
                          **fields) -> OperationResult:
        limits = self.config.limits
        return self._run(
            postings.create_internship, rep_id, title, preferred_major, slots,
            level=level, max_slots=limits.max_slots,
            max_internships_per_rep=limits.max_internships_per_rep, **fields,
        )

    def update_internship(self, rep_id: str, internship_id: int, title: str,
                          preferred_major: str, slots: int,
                          level: InternshipLevel = InternshipLevel.BASIC,
                          **fields) -> OperationResult:
        return self._run(
            postings.update_internship, rep_id, internship_id, title,
            preferred_major, slots, level=level,
            max_slots=self.config.limits.max_slots, **fields,
        )

    def toggle_internship_visibility(self, rep_id: str, internship_id: int) -> OperationResult:
        return self._run(postings.toggle_internship_visibility, rep_id, internship_id)

    def approve_internship(self, staff_id: str, internship_id: int) -> OperationResult:
        return self._run(postings.approve_internship, staff_id, internship_id)

    def reject_internship(self, staff_id: str, internship_id: int) -> OperationResult:
        return self._run(postings.reject_internship, staff_id, internship_id)

    # -- queries -------------------------------------------------------------

    def get_internship(self, internship_id: int) -> Optional[Internship]:
        with get_session(self.db_engine) as session:
            return SqlAlchemyRepository(session).get_internship(internship_id)

    def get_application(self, application_id: int) -> Optional[Application]:
        with get_session(self.db_engine) as session:
            return SqlAlchemyRepository(session).get_application(application_id)

    def applications_for_student(self, student_id: str) -> list[Application]:
        with get_session(self.db_engine) as session:
            return SqlAlchemyRepository(session).list_applications_for_student(student_id)

    def internships(self, criteria: Optional[listing.FilterCriteria] = None) -> list[Internship]:
        with get_session(self.db_engine) as session:
            return listing.filter_internships(
                SqlAlchemyRepository(session).list_internships(), criteria
            )

    def eligible_internships(self, student_id: str,
                             today: Optional[date] = None) -> list[Internship]:
        with get_session(self.db_engine) as session:
            repo = SqlAlchemyRepository(session)
            student = repo.get_student(student_id)
            if student is None:
                return []
            return listing.eligible_internships(student, repo.list_internships(), today)

    def withdrawal_requests(self) -> list[Application]:
        with get_session(self.db_engine) as session:
            return listing.pending_withdrawal_requests(
                SqlAlchemyRepository(session).list_applications()
            )

    def report(self) -> dict:
        with get_session(self.db_engine) as session:
            repo = SqlAlchemyRepository(session)
            return listing.summary_report(repo.list_internships(), repo.list_applications())
