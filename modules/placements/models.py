"""SQLAlchemy 2.0 models for the Internship Placement Office.

Tables:
- internships:               postings owned by a company representative
- applications:              one student's application to one internship
- students / company_representatives / career_center_staff: actors
- id_counters:               monotonic id allocation per entity type
- status_history:            audit trail for lifecycle field changes

Lifecycle rules that belong to a single entity (slot counters, visibility,
date window, application transition table) live here. Rules spanning
several entities live in engine.py.
"""
import enum
import logging
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
    event,
    inspect,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    Session,
    mapped_column,
)

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Shared declarative base for all placement models."""
    pass


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class InternshipStatus(enum.Enum):
    PENDING = "PENDING"      # awaiting career center approval
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    FILLED = "FILLED"        # every slot holds a confirmed offer


class InternshipLevel(enum.Enum):
    BASIC = "BASIC"          # open to year 1-2 students
    INTERMEDIATE = "INTERMEDIATE"
    ADVANCED = "ADVANCED"


class ApplicationStatus(enum.Enum):
    PENDING = "PENDING"
    PENDING_WITHDRAWN = "PENDING_WITHDRAWN"
    SUCCESSFUL_PENDING = "SUCCESSFUL_PENDING"      # offer made, student to decide
    SUCCESSFUL_ACCEPTED = "SUCCESSFUL_ACCEPTED"
    SUCCESSFUL_REJECTED = "SUCCESSFUL_REJECTED"
    SUCCESSFUL_WITHDRAWN = "SUCCESSFUL_WITHDRAWN"
    UNSUCCESSFUL = "UNSUCCESSFUL"


# Counted against the per-student application limit
ACTIVE_STATUSES = frozenset({
    ApplicationStatus.PENDING,
    ApplicationStatus.SUCCESSFUL_PENDING,
    ApplicationStatus.SUCCESSFUL_ACCEPTED,
    ApplicationStatus.SUCCESSFUL_REJECTED,
})

# Still holds a claim on the internship (blocks a duplicate application)
OPEN_STATUSES = frozenset({
    ApplicationStatus.PENDING,
    ApplicationStatus.SUCCESSFUL_PENDING,
    ApplicationStatus.SUCCESSFUL_ACCEPTED,
})

# Only source of truth for legal application status changes.
# SUCCESSFUL_ACCEPTED -> SUCCESSFUL_PENDING / UNSUCCESSFUL is the company's
# re-processing (revoke) path.
APPLICATION_TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    ApplicationStatus.PENDING: frozenset({
        ApplicationStatus.SUCCESSFUL_PENDING,
        ApplicationStatus.UNSUCCESSFUL,
        ApplicationStatus.PENDING_WITHDRAWN,
    }),
    ApplicationStatus.SUCCESSFUL_PENDING: frozenset({
        ApplicationStatus.SUCCESSFUL_ACCEPTED,
        ApplicationStatus.SUCCESSFUL_REJECTED,
        ApplicationStatus.SUCCESSFUL_WITHDRAWN,
    }),
    ApplicationStatus.SUCCESSFUL_REJECTED: frozenset({
        ApplicationStatus.SUCCESSFUL_WITHDRAWN,
    }),
    ApplicationStatus.SUCCESSFUL_ACCEPTED: frozenset({
        ApplicationStatus.SUCCESSFUL_WITHDRAWN,
        ApplicationStatus.SUCCESSFUL_PENDING,
        ApplicationStatus.UNSUCCESSFUL,
    }),
    ApplicationStatus.PENDING_WITHDRAWN: frozenset(),
    ApplicationStatus.SUCCESSFUL_WITHDRAWN: frozenset(),
    ApplicationStatus.UNSUCCESSFUL: frozenset(),
}


def can_transition(current: ApplicationStatus, target: ApplicationStatus) -> bool:
    """True if the transition table allows current → target."""
    return target in APPLICATION_TRANSITIONS.get(current, frozenset())


# ---------------------------------------------------------------------------
# Actors
# ---------------------------------------------------------------------------

class Student(Base):
    __tablename__ = "students"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    year_of_study: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    major: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Student(id='{self.id}', year={self.year_of_study}, "
            f"major='{self.major}')>"
        )


class CompanyRepresentative(Base):
    """Company user. Must be approved by career center staff before posting."""
    __tablename__ = "company_representatives"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)  # e-mail
    name: Mapped[str] = mapped_column(Text, nullable=False)
    company_name: Mapped[str] = mapped_column(Text, nullable=False)
    department: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    position: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return (
            f"<CompanyRepresentative(id='{self.id}', "
            f"company='{self.company_name}', approved={self.approved})>"
        )


class CareerCenterStaff(Base):
    __tablename__ = "career_center_staff"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    department: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<CareerCenterStaff(id='{self.id}', department='{self.department}')>"


# ---------------------------------------------------------------------------
# Internship
# ---------------------------------------------------------------------------

class Internship(Base):
    """An internship posting with slot accounting.

    confirmed_offers is derived state. It changes only through
    register_confirmed_offer / revoke_confirmed_offer, or through
    set_confirmed_offers (reconciliation and posting reset).
    """
    __tablename__ = "internships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    level: Mapped[InternshipLevel] = mapped_column(
        Enum(InternshipLevel, native_enum=False, length=16),
        nullable=False,
        default=InternshipLevel.BASIC,
    )
    preferred_major: Mapped[str] = mapped_column(Text, nullable=False)
    opening_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    closing_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[InternshipStatus] = mapped_column(
        Enum(InternshipStatus, native_enum=False, length=16),
        nullable=False,
        default=InternshipStatus.PENDING,
    )
    company_name: Mapped[str] = mapped_column(Text, nullable=False)
    owner_rep_id: Mapped[str] = mapped_column(String(255), nullable=False)
    slots: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    confirmed_offers: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("ix_internships_status", "status"),
        Index("ix_internships_owner", "owner_rep_id"),
    )

    def has_available_slots(self) -> bool:
        return self.confirmed_offers < self.slots

    def register_confirmed_offer(self) -> None:
        """Take one slot. Silent no-op when already full."""
        if self.confirmed_offers < self.slots:
            self.confirmed_offers += 1
            if (
                self.confirmed_offers >= self.slots
                and self.status == InternshipStatus.APPROVED
            ):
                self.status = InternshipStatus.FILLED

    def revoke_confirmed_offer(self) -> None:
        """Release one slot. No-op at zero."""
        if self.confirmed_offers > 0:
            self.confirmed_offers -= 1
            if (
                self.status == InternshipStatus.FILLED
                and self.confirmed_offers < self.slots
            ):
                self.status = InternshipStatus.APPROVED

    def set_confirmed_offers(self, count: int) -> None:
        """Overwrite the confirmed count and re-derive APPROVED ⇄ FILLED.

        Clamped to [0, slots].
        """
        clamped = max(0, min(count, self.slots))
        if clamped != count:
            logger.warning(
                f"Internship {self.id}: confirmed count {count} clamped to "
                f"{clamped} (slots={self.slots})"
            )
        self.confirmed_offers = clamped
        if clamped >= self.slots and self.status == InternshipStatus.APPROVED:
            self.status = InternshipStatus.FILLED
        elif clamped < self.slots and self.status == InternshipStatus.FILLED:
            self.status = InternshipStatus.APPROVED

    def toggle_visibility(self) -> None:
        self.visible = not self.visible

    def is_open_on(self, day: date) -> bool:
        """Inclusive [opening_date, closing_date]; a missing bound is open."""
        if self.opening_date is not None and day < self.opening_date:
            return False
        if self.closing_date is not None and day > self.closing_date:
            return False
        return True

    def validate_dates(self) -> None:
        if (
            self.opening_date is not None
            and self.closing_date is not None
            and self.closing_date < self.opening_date
        ):
            raise ValueError(
                f"Invalid date range: closing date {self.closing_date} "
                f"is before opening date {self.opening_date}"
            )

    def __repr__(self) -> str:
        return (
            f"<Internship(id={self.id}, title='{self.title[:40]}', "
            f"status={self.status.value if self.status else None}, "
            f"offers={self.confirmed_offers}/{self.slots})>"
        )


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

class Application(Base):
    """A student's application to one internship."""
    __tablename__ = "applications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    student_id: Mapped[str] = mapped_column(String(64), nullable=False)
    internship_id: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus, native_enum=False, length=32),
        nullable=False,
        default=ApplicationStatus.PENDING,
    )
    withdrawal_requested: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )

    __table_args__ = (
        Index("ix_applications_student", "student_id"),
        Index("ix_applications_internship", "internship_id"),
        Index("ix_applications_status", "status"),
    )

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES

    def can_transition_to(self, target: ApplicationStatus) -> bool:
        return can_transition(self.status, target)

    def transition_to(self, target: ApplicationStatus) -> ApplicationStatus:
        """Move to target status, returning the previous one.

        Raises ValueError for a transition the table does not allow;
        callers check can_transition_to() first.
        """
        if not self.can_transition_to(target):
            raise ValueError(
                f"Application {self.id}: illegal transition "
                f"{self.status.value} → {target.value}"
            )
        previous = self.status
        self.status = target
        return previous

    def __repr__(self) -> str:
        return (
            f"<Application(id={self.id}, student='{self.student_id}', "
            f"internship={self.internship_id}, "
            f"status={self.status.value if self.status else None})>"
        )


# ---------------------------------------------------------------------------
# Id allocation & audit trail
# ---------------------------------------------------------------------------

class IdCounter(Base):
    """Last id handed out per entity type. Never decremented."""
    __tablename__ = "id_counters"

    entity: Mapped[str] = mapped_column(String(32), primary_key=True)
    value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<IdCounter(entity='{self.entity}', value={self.value})>"


class StatusHistory(Base):
    """Audit trail for lifecycle fields of internships and applications."""
    __tablename__ = "status_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity: Mapped[str] = mapped_column(String(32), nullable=False)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    field_changed: Mapped[str] = mapped_column(Text, nullable=False)
    old_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    new_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        Index("ix_history_entity", "entity", "entity_id"),
        Index("ix_history_changed_at", "changed_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<StatusHistory({self.entity}={self.entity_id}, "
            f"field='{self.field_changed}', "
            f"'{self.old_value}' → '{self.new_value}')>"
        )


# ---------------------------------------------------------------------------
# Auto-history via SQLAlchemy event listeners
# ---------------------------------------------------------------------------
TRACKED_FIELDS = {
    Application: ("application", ("status", "withdrawal_requested")),
    Internship: ("internship", ("status", "confirmed_offers", "visible")),
}


def _history_value(value) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, enum.Enum):
        return value.value
    return str(value)


def track_status_changes(session):
    """Collect history entries for dirty Application/Internship objects.

    Runs automatically on before_flush. New objects are not recorded.
    """
    changes = []
    for obj in session.dirty:
        tracked = TRACKED_FIELDS.get(type(obj))
        if tracked is None:
            continue
        entity, fields = tracked
        state = inspect(obj)
        for attr in fields:
            hist = state.attrs[attr].history
            if hist.has_changes():
                old = hist.deleted[0] if hist.deleted else None
                new = hist.added[0] if hist.added else None
                if old == new:
                    continue
                changes.append(StatusHistory(
                    entity=entity,
                    entity_id=obj.id,
                    field_changed=attr,
                    old_value=_history_value(old),
                    new_value=_history_value(new),
                ))
    if changes:
        session.add_all(changes)
    return changes


@event.listens_for(Session, "before_flush")
def _before_flush_track_changes(session, flush_context, instances):
    """Automatically create history entries during flush."""
    track_status_changes(session)
