from datetime import date

import pytest

from conftest import ALICE, BOB, MANAGER, BlockedGate, RecordingGate
from serve_rota.core.errors import Conflict, Forbidden, InvalidArgument, InvalidTransition, NotFound, QuotaExceeded
from serve_rota.db.session import SessionLocal
from serve_rota.models import Assignment, StaffNotification
from serve_rota.services import assignments as assignments_service
from serve_rota.services.assignments import (
    change_role,
    create_assignment,
    delete_assignment,
    list_for_org,
    transition_assignment,
    update_assignment,
)
from serve_rota.services.swaps import create_swap


def _offer(db, session, staff_id="alice", **kwargs):
    return create_assignment(db, MANAGER, session_id=session.id, staff_id=staff_id, **kwargs)


def _notices(db, recipient):
    return [n.type for n in db.query(StaffNotification).filter_by(recipient_id=recipient).order_by(StaffNotification.id)]


def test_create_starts_pending_with_default_role(staff, youth_session):
    a = _offer(staff, youth_session)

    assert a.status == "pending"
    assert a.role == "Support"
    assert a.user_id == "alice"
    assert _notices(staff, "alice") == ["assignment_offered"]


def test_duplicate_assignment_is_a_conflict(staff, youth_session):
    _offer(staff, youth_session)
    with pytest.raises(Conflict):
        _offer(staff, youth_session, role="Lead")
    assert staff.query(Assignment).count() == 1


def test_duplicate_from_a_separate_session_is_a_conflict(staff, youth_session):
    _offer(staff, youth_session)
    other = SessionLocal()
    try:
        with pytest.raises(Conflict):
            create_assignment(other, MANAGER, session_id=youth_session.id, staff_id="alice")
    finally:
        other.close()


def test_ineligible_staff_can_still_be_assigned(staff, youth_session):
    # dave is blocked that day; eligibility is advisory
    assert _offer(staff, youth_session, staff_id="dave").status == "pending"


def test_create_requires_manage_capability(staff, youth_session):
    with pytest.raises(Forbidden):
        create_assignment(staff, ALICE, session_id=youth_session.id, staff_id="alice")


def test_only_self_assignment_may_start_confirmed(staff, youth_session):
    with pytest.raises(Forbidden):
        _offer(staff, youth_session, initial_status="confirmed")
    mine = _offer(staff, youth_session, staff_id="mgr", initial_status="confirmed")
    assert mine.status == "confirmed"
    assert _notices(staff, "mgr") == []


def test_declined_is_not_an_initial_status(staff, youth_session):
    with pytest.raises(InvalidArgument):
        _offer(staff, youth_session, initial_status="declined")


def test_unknown_session_or_staff_is_not_found(staff, youth_session):
    with pytest.raises(NotFound):
        create_assignment(staff, MANAGER, session_id=youth_session.id + 100, staff_id="alice")
    with pytest.raises(NotFound):
        _offer(staff, youth_session, staff_id="ghost")
    with pytest.raises(NotFound):
        _offer(staff, youth_session, staff_id="erin")


def test_usage_cap_blocks_create(staff, youth_session):
    gate = BlockedGate(reason=None)
    with pytest.raises(QuotaExceeded) as exc:
        _offer(staff, youth_session, gate=gate)
    assert "usage allowance" in exc.value.detail
    assert staff.query(Assignment).count() == 0


def test_holder_confirms_then_status_is_terminal(staff, youth_session):
    a = _offer(staff, youth_session)
    gate = RecordingGate()

    confirmed = transition_assignment(staff, ALICE, a.id, "confirmed", gate=gate)
    assert confirmed.status == "confirmed"
    assert gate.calls == [(ALICE.tenant_id, "assignments.transition")]
    assert _notices(staff, "alice") == ["assignment_offered", "assignment_confirmed"]

    with pytest.raises(InvalidTransition):
        transition_assignment(staff, ALICE, a.id, "declined")
    with pytest.raises(InvalidTransition):
        transition_assignment(staff, ALICE, a.id, "pending")


def test_declined_is_terminal(staff, youth_session):
    a = _offer(staff, youth_session)
    transition_assignment(staff, ALICE, a.id, "declined")
    with pytest.raises(InvalidTransition):
        transition_assignment(staff, ALICE, a.id, "confirmed")


def test_pending_to_pending_is_not_a_transition(staff, youth_session):
    a = _offer(staff, youth_session)
    with pytest.raises(InvalidTransition):
        transition_assignment(staff, ALICE, a.id, "pending")


def test_unknown_status_is_invalid_argument(staff, youth_session):
    a = _offer(staff, youth_session)
    with pytest.raises(InvalidArgument):
        transition_assignment(staff, ALICE, a.id, "maybe")


def test_manager_may_transition_for_the_holder(staff, youth_session):
    a = _offer(staff, youth_session)
    assert transition_assignment(staff, MANAGER, a.id, "declined").status == "declined"


def test_other_staff_cannot_transition(staff, youth_session):
    a = _offer(staff, youth_session)
    with pytest.raises(Forbidden):
        transition_assignment(staff, BOB, a.id, "confirmed")


def test_usage_cap_blocks_transition(staff, youth_session):
    a = _offer(staff, youth_session)
    with pytest.raises(QuotaExceeded):
        transition_assignment(staff, ALICE, a.id, "confirmed", gate=BlockedGate())
    staff.expire_all()
    assert staff.get(Assignment, a.id).status == "pending"


def test_lost_race_surfaces_as_invalid_transition(staff, youth_session, monkeypatch):
    a = _offer(staff, youth_session)
    transition_assignment(staff, ALICE, a.id, "confirmed")
    real_get = assignments_service.get_assignment

    def stale_get(db, tenant_id, assignment_id):
        row, session = real_get(db, tenant_id, assignment_id)
        row.status = "pending"  # what a reader saw before the other writer committed
        return row, session

    monkeypatch.setattr(assignments_service, "get_assignment", stale_get)
    with pytest.raises(InvalidTransition):
        transition_assignment(staff, ALICE, a.id, "declined")
    staff.expire_all()
    assert staff.get(Assignment, a.id).status == "confirmed"


def test_change_role(staff, youth_session):
    a = _offer(staff, youth_session)
    assert change_role(staff, MANAGER, a.id, " Lead ").role == "Lead"
    with pytest.raises(InvalidArgument):
        change_role(staff, MANAGER, a.id, "  ")
    with pytest.raises(Forbidden):
        change_role(staff, ALICE, a.id, "Lead")


def test_delete_frees_the_slot(staff, youth_session):
    a = _offer(staff, youth_session)
    transition_assignment(staff, ALICE, a.id, "declined")

    assert delete_assignment(staff, MANAGER, a.id) == {"id": a.id, "deleted": True}
    assert _notices(staff, "alice")[-1] == "assignment_removed"

    again = _offer(staff, youth_session)
    assert again.status == "pending"
    assert again.id != a.id


def test_delete_removes_open_swaps(staff, youth_session):
    a = _offer(staff, youth_session)
    create_swap(staff, ALICE, assignment_id=a.id, from_user_id="alice", to_user_id="bob")
    delete_assignment(staff, MANAGER, a.id)
    with pytest.raises(NotFound):
        delete_assignment(staff, MANAGER, a.id)


def test_delete_requires_manage_capability(staff, youth_session):
    a = _offer(staff, youth_session)
    with pytest.raises(Forbidden):
        delete_assignment(staff, ALICE, a.id)


def test_list_for_org_joins_session_and_staff(staff, youth_session):
    _offer(staff, youth_session, staff_id="bob")
    _offer(staff, youth_session, staff_id="alice", role="Lead")

    rows = list_for_org(staff, MANAGER)
    assert [(r["user_id"], r["staff_name"], r["role"]) for r in rows] == [("bob", "Bob", "Support"), ("alice", "Alice", "Lead")]
    assert rows[0]["session"]["title"] == "Youth club"
    assert rows[0]["session"]["group_ids"] == ["youth"]
    assert rows[0]["session"]["starts_at"] == "2025-01-06T10:00:00+00:00"


def test_list_for_org_filters(staff, youth_session):
    a = _offer(staff, youth_session)
    _offer(staff, youth_session, staff_id="bob")
    transition_assignment(staff, ALICE, a.id, "confirmed")

    assert [r["user_id"] for r in list_for_org(staff, MANAGER, status="confirmed")] == ["alice"]
    assert [r["user_id"] for r in list_for_org(staff, MANAGER, user_id="bob")] == ["bob"]
    assert len(list_for_org(staff, MANAGER, session_id=youth_session.id)) == 2
    assert len(list_for_org(staff, MANAGER, date_from=date(2025, 1, 6), date_to=date(2025, 1, 6))) == 2
    assert list_for_org(staff, MANAGER, date_from=date(2025, 1, 7)) == []
    with pytest.raises(InvalidArgument):
        list_for_org(staff, MANAGER, status="maybe")
    with pytest.raises(InvalidArgument):
        list_for_org(staff, MANAGER, date_from=date(2025, 1, 7), date_to=date(2025, 1, 6))


def test_staff_may_only_list_their_own(staff, youth_session):
    _offer(staff, youth_session)
    _offer(staff, youth_session, staff_id="bob")

    assert [r["user_id"] for r in list_for_org(staff, ALICE, user_id="alice")] == ["alice"]
    with pytest.raises(Forbidden):
        list_for_org(staff, ALICE)
    with pytest.raises(Forbidden):
        list_for_org(staff, ALICE, user_id="bob")


def test_role_and_status_land_together(staff, youth_session):
    a = _offer(staff, youth_session)

    row = update_assignment(staff, MANAGER, a.id, status="confirmed", role="Lead")

    assert (row.status, row.role) == ("confirmed", "Lead")


def test_rejected_transition_keeps_the_old_role(staff, youth_session):
    a = _offer(staff, youth_session)
    transition_assignment(staff, ALICE, a.id, "confirmed")

    with pytest.raises(InvalidTransition):
        update_assignment(staff, MANAGER, a.id, status="declined", role="Lead")

    staff.expire_all()
    row = staff.get(Assignment, a.id)
    assert (row.status, row.role) == ("confirmed", "Support")


def test_holder_cannot_change_role_with_a_transition(staff, youth_session):
    a = _offer(staff, youth_session)

    with pytest.raises(Forbidden):
        update_assignment(staff, ALICE, a.id, status="confirmed", role="Lead")

    staff.expire_all()
    assert staff.get(Assignment, a.id).status == "pending"


def test_update_needs_status_or_role(staff, youth_session):
    a = _offer(staff, youth_session)
    with pytest.raises(InvalidArgument):
        update_assignment(staff, MANAGER, a.id)
    assert update_assignment(staff, MANAGER, a.id, role="Lead").role == "Lead"
