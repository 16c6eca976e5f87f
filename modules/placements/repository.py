"""Repository contract for the allocation engine, and its SQLAlchemy backend.

The engine only ever talks to a PlacementRepository. SqlAlchemyRepository
binds that contract to a Session; the caller owns commit/rollback.
"""
import logging
from typing import Optional, Protocol

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import (
    Application,
    CareerCenterStaff,
    CompanyRepresentative,
    IdCounter,
    Internship,
    Student,
)

logger = logging.getLogger(__name__)


class PlacementRepository(Protocol):
    """Storage contract required by the engine."""

    def get_internship(self, internship_id: int) -> Optional[Internship]:
        ...

    def save_internship(self, internship: Internship) -> None:
        ...

    def list_internships(self) -> list[Internship]:
        ...

    def list_internships_for_rep(self, rep_id: str) -> list[Internship]:
        ...

    def get_application(self, application_id: int) -> Optional[Application]:
        ...

    def save_application(self, application: Application) -> None:
        ...

    def list_applications(self) -> list[Application]:
        ...

    def list_applications_for_student(self, student_id: str) -> list[Application]:
        ...

    def list_applications_for_internship(self, internship_id: int) -> list[Application]:
        ...

    def get_student(self, student_id: str) -> Optional[Student]:
        ...

    def get_representative(self, rep_id: str) -> Optional[CompanyRepresentative]:
        ...

    def save_representative(self, rep: CompanyRepresentative) -> None:
        ...

    def get_staff(self, staff_id: str) -> Optional[CareerCenterStaff]:
        ...

    def next_application_id(self) -> int:
        ...

    def next_internship_id(self) -> int:
        ...


class IdAllocator:
    """Monotonic id counter keyed by entity type, persisted in id_counters.

    A counter that does not exist yet starts from the highest id already
    stored for that entity, so a database filled by a bulk import never
    hands out a used id.
    """

    MODELS = {
        "application": Application,
        "internship": Internship,
    }

    def __init__(self, session: Session):
        self.session = session

    def _counter(self, entity: str) -> IdCounter:
        counter = self.session.get(IdCounter, entity)
        if counter is None:
            model = self.MODELS.get(entity)
            start = 0
            if model is not None:
                start = self.session.scalar(select(func.max(model.id))) or 0
            counter = IdCounter(entity=entity, value=start)
            self.session.add(counter)
        return counter

    def next(self, entity: str) -> int:
        counter = self._counter(entity)
        counter.value += 1
        self.session.flush()
        logger.debug(f"Allocated {entity} id {counter.value}")
        return counter.value

    def seed(self, entity: str, value: int) -> None:
        """Raise the counter to at least value (never lowers it)."""
        counter = self._counter(entity)
        counter.value = max(counter.value, value)
        self.session.flush()


class SqlAlchemyRepository:
    """PlacementRepository over a SQLAlchemy Session (caller manages commit)."""

    def __init__(self, session: Session):
        self.session = session
        self.ids = IdAllocator(session)

    # Internships

    def get_internship(self, internship_id: int) -> Optional[Internship]:
        return self.session.get(Internship, internship_id)

    def save_internship(self, internship: Internship) -> None:
        self.session.add(internship)
        self.session.flush()

    def list_internships(self) -> list[Internship]:
        return list(self.session.scalars(select(Internship).order_by(Internship.id)))

    def list_internships_for_rep(self, rep_id: str) -> list[Internship]:
        return list(self.session.scalars(
            select(Internship)
            .where(Internship.owner_rep_id == rep_id)
            .order_by(Internship.id)
        ))

    # Applications

    def get_application(self, application_id: int) -> Optional[Application]:
        return self.session.get(Application, application_id)

    def save_application(self, application: Application) -> None:
        self.session.add(application)
        self.session.flush()

    def list_applications(self) -> list[Application]:
        return list(self.session.scalars(select(Application).order_by(Application.id)))

    def list_applications_for_student(self, student_id: str) -> list[Application]:
        return list(self.session.scalars(
            select(Application)
            .where(Application.student_id == student_id)
            .order_by(Application.id)
        ))

    def list_applications_for_internship(self, internship_id: int) -> list[Application]:
        return list(self.session.scalars(
            select(Application)
            .where(Application.internship_id == internship_id)
            .order_by(Application.id)
        ))

    # Actors

    def get_student(self, student_id: str) -> Optional[Student]:
        return self.session.get(Student, student_id)

    def get_representative(self, rep_id: str) -> Optional[CompanyRepresentative]:
        return self.session.get(CompanyRepresentative, rep_id)

    def save_representative(self, rep: CompanyRepresentative) -> None:
        self.session.add(rep)
        self.session.flush()

    def get_staff(self, staff_id: str) -> Optional[CareerCenterStaff]:
        return self.session.get(CareerCenterStaff, staff_id)

    # Ids

    def next_application_id(self) -> int:
        return self.ids.next("application")

    def next_internship_id(self) -> int:
        return self.ids.next("internship")
