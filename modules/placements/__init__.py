"""Internship Placement Office.

SQLite-backed tracking of internship postings and student applications.
The allocation engine enforces eligibility, capacity and offer-acceptance
rules; reconciliation repairs slot counts after a bulk load.

Layers:
  models          entities, enums, slot accounting, transition table
  repository      storage contract + SQLAlchemy backend + id allocator
  engine          apply / company decision / accept / reject / withdrawal
  reconciliation  confirmed-offer recount after load
  postings        internship & representative management
  listing         filters, eligibility, reports
  service         one transaction per operation
"""

from .models import (
    Application,
    ApplicationStatus,
    Base,
    CareerCenterStaff,
    CompanyRepresentative,
    Internship,
    InternshipLevel,
    InternshipStatus,
    Student,
    StatusHistory,
    APPLICATION_TRANSITIONS,
    ACTIVE_STATUSES,
)
from .database import get_engine, get_session, init_db
from .results import OperationResult, ResultCode
from .repository import PlacementRepository, SqlAlchemyRepository, IdAllocator
from .engine import (
    Decision,
    apply,
    company_decision,
    accept_offer,
    reject_offer,
    request_withdrawal,
    decide_withdrawal,
)
from .reconciliation import reconcile_confirmed_offers
from .postings import (
    register_representative,
    approve_representative,
    reject_representative,
    create_internship,
    update_internship,
    toggle_internship_visibility,
    approve_internship,
    reject_internship,
)
from .listing import FilterCriteria, filter_internships, eligible_internships
from .service import PlacementService

__all__ = [
    # Models
    "Application",
    "ApplicationStatus",
    "Base",
    "CareerCenterStaff",
    "CompanyRepresentative",
    "Internship",
    "InternshipLevel",
    "InternshipStatus",
    "Student",
    "StatusHistory",
    "APPLICATION_TRANSITIONS",
    "ACTIVE_STATUSES",
    # Database
    "get_engine",
    "get_session",
    "init_db",
    # Results & repository
    "OperationResult",
    "ResultCode",
    "PlacementRepository",
    "SqlAlchemyRepository",
    "IdAllocator",
    # Allocation engine
    "Decision",
    "apply",
    "company_decision",
    "accept_offer",
    "reject_offer",
    "request_withdrawal",
    "decide_withdrawal",
    "reconcile_confirmed_offers",
    # Postings
    "register_representative",
    "approve_representative",
    "reject_representative",
    "create_internship",
    "update_internship",
    "toggle_internship_visibility",
    "approve_internship",
    "reject_internship",
    # Listing & service
    "FilterCriteria",
    "filter_internships",
    "eligible_internships",
    "PlacementService",
]
