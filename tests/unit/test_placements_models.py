"""Tests for placement models.

Covers:
  - Slot accounting (register / revoke / set) and APPROVED ⇄ FILLED
  - Application transition table
  - Date window and date validation
  - Auto-history on status changes
"""
import sys
from datetime import date
from pathlib import Path

import pytest
from sqlalchemy import select

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from modules.placements.models import (
    APPLICATION_TRANSITIONS,
    ApplicationStatus,
    Internship,
    InternshipStatus,
    StatusHistory,
    can_transition,
)
from tests.fixtures.placements import make_application, make_internship


def _internship(slots=2, confirmed=0, status=InternshipStatus.APPROVED, **kw):
    return Internship(
        id=1, title="Intern", preferred_major="CS", company_name="Acme",
        owner_rep_id="rep", slots=slots, confirmed_offers=confirmed,
        status=status, visible=True, **kw,
    )


# ---------------------------------------------------------------------------
# Slot accounting
# ---------------------------------------------------------------------------

class TestSlotAccounting:

    def test_register_increments(self):
        i = _internship(slots=2)
        i.register_confirmed_offer()
        assert i.confirmed_offers == 1
        assert i.status == InternshipStatus.APPROVED

    def test_register_last_slot_fills(self):
        i = _internship(slots=2, confirmed=1)
        i.register_confirmed_offer()
        assert i.confirmed_offers == 2
        assert i.status == InternshipStatus.FILLED
        assert not i.has_available_slots()

    def test_register_when_full_is_noop(self):
        i = _internship(slots=1, confirmed=1, status=InternshipStatus.FILLED)
        i.register_confirmed_offer()
        assert i.confirmed_offers == 1

    def test_register_on_pending_does_not_fill(self):
        i = _internship(slots=1, status=InternshipStatus.PENDING)
        i.register_confirmed_offer()
        assert i.confirmed_offers == 1
        assert i.status == InternshipStatus.PENDING

    def test_revoke_reopens_filled(self):
        i = _internship(slots=2, confirmed=2, status=InternshipStatus.FILLED)
        i.revoke_confirmed_offer()
        assert i.confirmed_offers == 1
        assert i.status == InternshipStatus.APPROVED

    def test_revoke_at_zero_is_noop(self):
        i = _internship(slots=2, confirmed=0)
        i.revoke_confirmed_offer()
        assert i.confirmed_offers == 0
        assert i.status == InternshipStatus.APPROVED

    def test_set_fills_and_reopens(self):
        i = _internship(slots=3)
        i.set_confirmed_offers(3)
        assert i.status == InternshipStatus.FILLED
        i.set_confirmed_offers(1)
        assert i.status == InternshipStatus.APPROVED
        assert i.confirmed_offers == 1

    def test_set_clamps_to_slots(self):
        i = _internship(slots=2)
        i.set_confirmed_offers(5)
        assert i.confirmed_offers == 2
        i.set_confirmed_offers(-1)
        assert i.confirmed_offers == 0

    def test_set_leaves_rejected_alone(self):
        i = _internship(slots=1, status=InternshipStatus.REJECTED)
        i.set_confirmed_offers(1)
        assert i.status == InternshipStatus.REJECTED

    def test_toggle_visibility(self):
        i = _internship()
        i.toggle_visibility()
        assert i.visible is False
        i.toggle_visibility()
        assert i.visible is True


# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------

class TestDates:

    def test_window_is_inclusive(self):
        i = _internship(opening_date=date(2026, 2, 1), closing_date=date(2026, 2, 28))
        assert i.is_open_on(date(2026, 2, 1))
        assert i.is_open_on(date(2026, 2, 28))
        assert not i.is_open_on(date(2026, 1, 31))
        assert not i.is_open_on(date(2026, 3, 1))

    def test_missing_bounds_are_open(self):
        i = _internship()
        assert i.is_open_on(date(1999, 1, 1))
        assert i.is_open_on(date(2099, 1, 1))

    def test_validate_dates_rejects_reversed_range(self):
        i = _internship(opening_date=date(2026, 3, 1), closing_date=date(2026, 2, 1))
        with pytest.raises(ValueError, match="closing date"):
            i.validate_dates()

    def test_validate_dates_same_day_ok(self):
        i = _internship(opening_date=date(2026, 3, 1), closing_date=date(2026, 3, 1))
        i.validate_dates()


# ---------------------------------------------------------------------------
# Transition table
# ---------------------------------------------------------------------------

class TestTransitions:

    def test_every_status_has_an_entry(self):
        assert set(APPLICATION_TRANSITIONS) == set(ApplicationStatus)

    @pytest.mark.parametrize("terminal", [
        ApplicationStatus.PENDING_WITHDRAWN,
        ApplicationStatus.SUCCESSFUL_WITHDRAWN,
        ApplicationStatus.UNSUCCESSFUL,
    ])
    def test_terminal_statuses_have_no_exit(self, terminal):
        assert not any(can_transition(terminal, target) for target in ApplicationStatus)

    def test_offer_path(self):
        assert can_transition(ApplicationStatus.PENDING, ApplicationStatus.SUCCESSFUL_PENDING)
        assert can_transition(
            ApplicationStatus.SUCCESSFUL_PENDING, ApplicationStatus.SUCCESSFUL_ACCEPTED
        )

    def test_cannot_skip_offer(self):
        assert not can_transition(
            ApplicationStatus.PENDING, ApplicationStatus.SUCCESSFUL_ACCEPTED
        )

    def test_transition_to_returns_previous(self, session):
        make_internship(session)
        app = make_application(session, 1)
        previous = app.transition_to(ApplicationStatus.SUCCESSFUL_PENDING)
        assert previous == ApplicationStatus.PENDING
        assert app.status == ApplicationStatus.SUCCESSFUL_PENDING

    def test_transition_to_illegal_raises(self, session):
        make_internship(session)
        app = make_application(session, 1, status=ApplicationStatus.UNSUCCESSFUL)
        with pytest.raises(ValueError, match="illegal transition"):
            app.transition_to(ApplicationStatus.SUCCESSFUL_PENDING)
        assert app.status == ApplicationStatus.UNSUCCESSFUL

    def test_active_and_open(self, session):
        make_internship(session)
        rejected = make_application(session, 1, status=ApplicationStatus.SUCCESSFUL_REJECTED)
        assert rejected.is_active
        assert not rejected.is_open
        withdrawn = make_application(session, 2, status=ApplicationStatus.PENDING_WITHDRAWN)
        assert not withdrawn.is_active
        assert not withdrawn.is_open


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

class TestHistory:

    def test_new_objects_not_recorded(self, session):
        make_internship(session)
        make_application(session, 1)
        assert session.scalars(select(StatusHistory)).all() == []

    def test_status_change_recorded(self, session):
        make_internship(session)
        app = make_application(session, 1)
        app.transition_to(ApplicationStatus.SUCCESSFUL_PENDING)
        session.flush()

        entries = session.scalars(
            select(StatusHistory).where(StatusHistory.entity == "application")
        ).all()
        assert len(entries) == 1
        assert entries[0].entity_id == 1
        assert entries[0].field_changed == "status"
        assert entries[0].old_value == "PENDING"
        assert entries[0].new_value == "SUCCESSFUL_PENDING"

    def test_slot_change_recorded(self, session):
        internship = make_internship(session, slots=1)
        internship.register_confirmed_offer()
        session.flush()

        fields = {
            h.field_changed: (h.old_value, h.new_value)
            for h in session.scalars(select(StatusHistory)).all()
        }
        assert fields["confirmed_offers"] == ("0", "1")
        assert fields["status"] == ("APPROVED", "FILLED")

    def test_unchanged_value_not_recorded(self, session):
        internship = make_internship(session)
        internship.visible = True
        session.flush()
        assert session.scalars(select(StatusHistory)).all() == []
