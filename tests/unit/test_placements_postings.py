"""Tests for posting management (representatives, internships, staff review)."""
import sys
from datetime import date
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from modules.placements.engine import apply
from modules.placements.models import ApplicationStatus, InternshipLevel, InternshipStatus
from modules.placements.postings import (
    approve_internship,
    approve_representative,
    create_internship,
    register_representative,
    reject_internship,
    reject_representative,
    toggle_internship_visibility,
    update_internship,
)
from modules.placements.results import ResultCode
from tests.fixtures.placements import (
    OTHER_REP_ID,
    REP_ID,
    STAFF_ID,
    TODAY,
    make_application,
    make_internship,
    make_rep,
    make_staff,
    make_student,
)


@pytest.fixture
def staffed(session):
    make_staff(session)
    make_rep(session)
    return session


class TestRepresentatives:

    def test_register_is_unapproved(self, session, repo):
        result = register_representative(repo, "new@corp.com", "Eve", "Corp", "IT", "Lead")
        assert result.ok
        rep = repo.get_representative("new@corp.com")
        assert rep.approved is False
        assert rep.company_name == "Corp"

    def test_register_duplicate(self, staffed, repo):
        result = register_representative(repo, REP_ID, "Bob", "Acme Corp")
        assert result.code == ResultCode.POLICY_VIOLATION

    def test_approve_and_reject(self, session, repo):
        make_staff(session)
        make_rep(session, approved=False)
        assert approve_representative(repo, STAFF_ID, REP_ID).ok
        assert repo.get_representative(REP_ID).approved is True
        assert reject_representative(repo, STAFF_ID, REP_ID).ok
        assert repo.get_representative(REP_ID).approved is False

    def test_approve_requires_staff(self, staffed, repo):
        assert approve_representative(repo, "nobody", REP_ID).code == ResultCode.NOT_OWNER

    def test_approve_unknown_rep(self, staffed, repo):
        assert approve_representative(repo, STAFF_ID, "ghost@x.com").code == ResultCode.NOT_FOUND


class TestCreateInternship:

    def test_create_pending_hidden(self, staffed, repo):
        result = create_internship(
            repo, REP_ID, "ML Intern", "Computer Science", 3,
            level=InternshipLevel.ADVANCED,
            opening_date=date(2026, 2, 1), closing_date=date(2026, 3, 1),
        )
        assert result.ok
        internship = repo.get_internship(result.internship_id)
        assert internship.status == InternshipStatus.PENDING
        assert internship.visible is False
        assert internship.confirmed_offers == 0
        assert internship.company_name == "Acme Corp"
        assert internship.owner_rep_id == REP_ID
        assert internship.level == InternshipLevel.ADVANCED

    def test_ids_follow_existing(self, staffed, repo):
        make_internship(staffed, internship_id=7)
        result = create_internship(repo, REP_ID, "Next", "CS", 1)
        assert result.internship_id == 8

    def test_unknown_rep(self, staffed, repo):
        assert create_internship(repo, "ghost", "X", "CS", 1).code == ResultCode.NOT_FOUND

    def test_unapproved_rep(self, session, repo):
        make_rep(session, approved=False)
        assert create_internship(repo, REP_ID, "X", "CS", 1).code == ResultCode.POLICY_VIOLATION

    @pytest.mark.parametrize("slots", [0, -1, 11])
    def test_slot_bounds(self, staffed, repo, slots):
        assert create_internship(repo, REP_ID, "X", "CS", slots).code == ResultCode.POLICY_VIOLATION
        assert repo.list_internships() == []

    def test_custom_max_slots(self, staffed, repo):
        assert create_internship(repo, REP_ID, "X", "CS", 11, max_slots=20).ok

    def test_reversed_dates(self, staffed, repo):
        result = create_internship(
            repo, REP_ID, "X", "CS", 1,
            opening_date=date(2026, 3, 1), closing_date=date(2026, 2, 1),
        )
        assert result.code == ResultCode.POLICY_VIOLATION
        assert repo.list_internships() == []

    def test_posting_limit(self, staffed, repo):
        for n in range(2):
            assert create_internship(repo, REP_ID, f"Intern {n}", "CS", 1,
                                     max_internships_per_rep=2).ok
        result = create_internship(repo, REP_ID, "One too many", "CS", 1,
                                   max_internships_per_rep=2)
        assert result.code == ResultCode.POLICY_VIOLATION


class TestUpdateInternship:

    def test_update_resets_to_pending(self, staffed, repo):
        make_internship(staffed, slots=3, confirmed=1)
        result = update_internship(repo, REP_ID, 1, "Renamed", "Data Science", 4,
                                   level=InternshipLevel.INTERMEDIATE)
        assert result.ok
        internship = repo.get_internship(1)
        assert internship.title == "Renamed"
        assert internship.preferred_major == "Data Science"
        assert internship.slots == 4
        assert internship.status == InternshipStatus.PENDING
        assert internship.visible is False
        assert internship.confirmed_offers == 0

    def test_filled_cannot_be_edited(self, staffed, repo):
        make_internship(staffed, slots=1, confirmed=1, status=InternshipStatus.FILLED)
        result = update_internship(repo, REP_ID, 1, "X", "CS", 1)
        assert result.code == ResultCode.INVALID_STATE

    def test_not_owner(self, staffed, repo):
        make_internship(staffed, owner=OTHER_REP_ID)
        assert update_internship(repo, REP_ID, 1, "X", "CS", 1).code == ResultCode.NOT_OWNER

    def test_unknown(self, staffed, repo):
        assert update_internship(repo, REP_ID, 5, "X", "CS", 1).code == ResultCode.NOT_FOUND

    def test_bad_dates_leave_posting_untouched(self, staffed, repo):
        make_internship(staffed)
        result = update_internship(repo, REP_ID, 1, "X", "CS", 1,
                                   opening_date=date(2026, 5, 1),
                                   closing_date=date(2026, 4, 1))
        assert result.code == ResultCode.POLICY_VIOLATION
        assert repo.get_internship(1).title == "Backend Intern"

    def test_update_keeps_accepted_placements(self, staffed, repo):
        make_student(staffed)
        make_student(staffed, student_id="U2310002B", name="Ben Koh")
        make_internship(staffed, slots=2, confirmed=1)
        make_application(staffed, 1, status=ApplicationStatus.SUCCESSFUL_ACCEPTED)

        assert update_internship(repo, REP_ID, 1, "Backend Intern", "Computer Science", 1).ok
        internship = repo.get_internship(1)
        assert internship.confirmed_offers == 1
        assert internship.status == InternshipStatus.PENDING

        assert approve_internship(repo, STAFF_ID, 1).ok
        internship = repo.get_internship(1)
        assert internship.confirmed_offers == 1
        assert internship.status == InternshipStatus.FILLED
        assert not apply(repo, "U2310002B", 1, today=TODAY).ok

    def test_slots_below_accepted_count(self, staffed, repo):
        make_student(staffed)
        make_student(staffed, student_id="U2310002B", name="Ben Koh")
        make_internship(staffed, slots=2, confirmed=2, status=InternshipStatus.PENDING,
                        visible=False)
        make_application(staffed, 1, status=ApplicationStatus.SUCCESSFUL_ACCEPTED)
        make_application(staffed, 2, student_id="U2310002B",
                         status=ApplicationStatus.SUCCESSFUL_ACCEPTED)

        result = update_internship(repo, REP_ID, 1, "Backend Intern", "Computer Science", 1)

        assert result.code == ResultCode.INVALID_STATE
        internship = repo.get_internship(1)
        assert internship.slots == 2
        assert internship.confirmed_offers == 2


class TestVisibility:

    def test_toggle(self, staffed, repo):
        make_internship(staffed)
        assert toggle_internship_visibility(repo, REP_ID, 1).ok
        assert repo.get_internship(1).visible is False
        assert toggle_internship_visibility(repo, REP_ID, 1).ok
        assert repo.get_internship(1).visible is True

    def test_only_approved(self, staffed, repo):
        make_internship(staffed, status=InternshipStatus.PENDING, visible=False)
        result = toggle_internship_visibility(repo, REP_ID, 1)
        assert result.code == ResultCode.INVALID_STATE

    def test_not_owner(self, staffed, repo):
        make_internship(staffed, owner=OTHER_REP_ID)
        assert toggle_internship_visibility(repo, REP_ID, 1).code == ResultCode.NOT_OWNER


class TestReview:

    def test_approve_makes_visible(self, staffed, repo):
        make_internship(staffed, status=InternshipStatus.PENDING, visible=False)
        assert approve_internship(repo, STAFF_ID, 1).ok
        internship = repo.get_internship(1)
        assert internship.status == InternshipStatus.APPROVED
        assert internship.visible is True

    def test_reject_hides(self, staffed, repo):
        make_internship(staffed, status=InternshipStatus.PENDING, visible=False)
        assert reject_internship(repo, STAFF_ID, 1).ok
        internship = repo.get_internship(1)
        assert internship.status == InternshipStatus.REJECTED
        assert internship.visible is False

    def test_only_pending(self, staffed, repo):
        make_internship(staffed)
        assert approve_internship(repo, STAFF_ID, 1).code == ResultCode.INVALID_STATE

    def test_requires_staff(self, staffed, repo):
        make_internship(staffed, status=InternshipStatus.PENDING)
        assert approve_internship(repo, REP_ID, 1).code == ResultCode.NOT_OWNER

    def test_unknown(self, staffed, repo):
        assert reject_internship(repo, STAFF_ID, 3).code == ResultCode.NOT_FOUND
