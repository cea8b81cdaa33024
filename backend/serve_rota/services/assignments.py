"""
Assignment lifecycle: offer (create), accept/decline (transition), remove (delete), list.

Integrity rests on the database:
  - uq_assignments_session_user rejects a second live row for (session_id, user_id);
    the insert is never preceded by a lookup, so concurrent creates surface as Conflict.
  - transitions are a conditional UPDATE ... WHERE status = <expected>; a lost race
    updates zero rows and surfaces as InvalidTransition.
"""
import logging
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import and_, delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from serve_rota.core.constants import (
    ASSIGNMENT_CONFIRMED,
    ASSIGNMENT_DECLINED,
    ASSIGNMENT_PENDING,
    ASSIGNMENT_STATUSES,
    ASSIGNMENT_TRANSITIONS,
    CAP_MANAGE_SCHEDULE,
    NOTIFY_ASSIGNMENT_CONFIRMED,
    NOTIFY_ASSIGNMENT_DECLINED,
    NOTIFY_ASSIGNMENT_OFFERED,
    NOTIFY_ASSIGNMENT_REMOVED,
)
from serve_rota.core.errors import Conflict, Forbidden, InvalidArgument, InvalidTransition, NotFound
from serve_rota.core.principal import Principal, require
from serve_rota.core.timeutil import as_utc, day_bounds
from serve_rota.models.activity_session import ActivitySession
from serve_rota.models.assignment import Assignment
from serve_rota.models.staff import StaffMember
from serve_rota.models.swap_request import SwapRequest
from serve_rota.services import staff_notifications
from serve_rota.services.availability.sql_store import SqlAvailabilityStore
from serve_rota.services.sessions import get_session
from serve_rota.services.usage_cap import UsageCapGate, assert_within_cap

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "Support"

_TRANSITION_NOTICES = {
    ASSIGNMENT_CONFIRMED: NOTIFY_ASSIGNMENT_CONFIRMED,
    ASSIGNMENT_DECLINED: NOTIFY_ASSIGNMENT_DECLINED,
}


def notice_payload(assignment: Assignment, session: ActivitySession, **extra: Any) -> dict[str, Any]:
    payload = {
        "assignment_id": assignment.id,
        "session_id": session.id,
        "session_title": session.title,
        "starts_at": as_utc(session.starts_at).isoformat(),
        "role": assignment.role,
        "status": assignment.status,
    }
    payload.update(extra)
    return payload


def get_assignment(db: Session, tenant_id: str, assignment_id: int) -> tuple[Assignment, ActivitySession]:
    """Assignment with its session, scoped to the tenant through the session."""
    found = (
        db.query(Assignment, ActivitySession)
        .join(ActivitySession, ActivitySession.id == Assignment.session_id)
        .filter(Assignment.id == assignment_id, ActivitySession.tenant_id == tenant_id)
        .first()
    )
    if not found:
        raise NotFound("Assignment not found")
    return found[0], found[1]


def create_assignment(
    db: Session,
    principal: Principal,
    *,
    session_id: int,
    staff_id: str,
    role: str | None = None,
    initial_status: str | None = None,
    gate: UsageCapGate | None = None,
) -> Assignment:
    """
    Offer a session to a staff member. Starts pending; a scheduler assigning
    themselves may start confirmed. Eligibility is not checked here.
    """
    require(principal, CAP_MANAGE_SCHEDULE, "Assigning staff")
    status = initial_status or ASSIGNMENT_PENDING
    if status not in ASSIGNMENT_STATUSES or status == ASSIGNMENT_DECLINED:
        raise InvalidArgument(f"Initial status must be {ASSIGNMENT_PENDING} or {ASSIGNMENT_CONFIRMED}")
    if status == ASSIGNMENT_CONFIRMED and staff_id != principal.user_id:
        raise Forbidden("Only a self-assignment may start confirmed")
    role = (role or "").strip() or DEFAULT_ROLE

    session = get_session(db, principal.tenant_id, session_id)
    if SqlAvailabilityStore(db, principal.tenant_id).get_staff(staff_id) is None:
        raise NotFound("Staff member not found")
    assert_within_cap(gate, principal.tenant_id, "assignments.create")

    row = Assignment(session_id=session.id, user_id=staff_id, role=role, status=status)
    try:
        db.add(row)
        db.flush()
        if status == ASSIGNMENT_PENDING:
            staff_notifications.record(
                db, principal.tenant_id, staff_id, NOTIFY_ASSIGNMENT_OFFERED, notice_payload(row, session)
            )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("An assignment for this staff member and session already exists")
    db.refresh(row)
    logger.info("Assignment %s created: session=%s user=%s status=%s", row.id, session.id, staff_id, status)
    return row


def transition_assignment(
    db: Session,
    principal: Principal,
    assignment_id: int,
    new_status: str,
    *,
    role: str | None = None,
    gate: UsageCapGate | None = None,
) -> Assignment:
    """
    pending -> confirmed | declined. By the holder, or by a scheduler on their behalf.
    A role given alongside is written by the same UPDATE, so neither lands without the other.
    """
    if new_status not in ASSIGNMENT_STATUSES:
        raise InvalidArgument(f"Unknown status {new_status!r}")
    if role is not None:
        role = _clean_role(principal, role)
    row, session = get_assignment(db, principal.tenant_id, assignment_id)
    if row.user_id != principal.user_id and not principal.can_manage_schedule:
        raise Forbidden("You can only update your own assignment unless you manage the schedule")
    current = row.status
    if new_status not in ASSIGNMENT_TRANSITIONS.get(current, frozenset()):
        raise InvalidTransition(f"Cannot move assignment from {current} to {new_status}")
    assert_within_cap(gate, principal.tenant_id, "assignments.transition")

    values = {"status": new_status, "updated_at": datetime.now(timezone.utc)}
    if role is not None:
        values["role"] = role
    result = db.execute(
        update(Assignment)
        .where(Assignment.id == assignment_id, Assignment.status == current)
        .values(**values)
    )
    if result.rowcount != 1:
        db.rollback()
        raise InvalidTransition(f"Assignment {assignment_id} changed concurrently; it is no longer {current}")
    db.refresh(row)
    staff_notifications.record(
        db, principal.tenant_id, row.user_id, _TRANSITION_NOTICES[new_status], notice_payload(row, session)
    )
    db.commit()
    logger.info("Assignment %s: %s -> %s by %s", assignment_id, current, new_status, principal.user_id)
    return row


def _clean_role(principal: Principal, role: str) -> str:
    require(principal, CAP_MANAGE_SCHEDULE, "Changing assignment roles")
    role = (role or "").strip()
    if not role:
        raise InvalidArgument("role must not be empty")
    return role


def change_role(db: Session, principal: Principal, assignment_id: int, role: str) -> Assignment:
    role = _clean_role(principal, role)
    row, _ = get_assignment(db, principal.tenant_id, assignment_id)
    row.role = role
    db.commit()
    db.refresh(row)
    return row


def update_assignment(
    db: Session,
    principal: Principal,
    assignment_id: int,
    *,
    status: str | None = None,
    role: str | None = None,
    gate: UsageCapGate | None = None,
) -> Assignment:
    """Role and/or status in one commit; a rejected transition leaves the role as it was."""
    if status is None and role is None:
        raise InvalidArgument("Nothing to update: provide status and/or role")
    if status is None:
        return change_role(db, principal, assignment_id, role)
    return transition_assignment(db, principal, assignment_id, status, role=role, gate=gate)


def delete_assignment(db: Session, principal: Principal, assignment_id: int) -> dict[str, Any]:
    """Remove from any status. Frees the (session, staff) slot; open swaps for it go too."""
    require(principal, CAP_MANAGE_SCHEDULE, "Removing assignments")
    row, session = get_assignment(db, principal.tenant_id, assignment_id)
    payload = notice_payload(row, session)
    holder = row.user_id
    db.execute(delete(SwapRequest).where(SwapRequest.assignment_id == assignment_id))
    result = db.execute(delete(Assignment).where(Assignment.id == assignment_id))
    if result.rowcount != 1:
        db.rollback()
        raise NotFound("Assignment not found")
    staff_notifications.record(db, principal.tenant_id, holder, NOTIFY_ASSIGNMENT_REMOVED, payload)
    db.commit()
    logger.info("Assignment %s deleted by %s", assignment_id, principal.user_id)
    return {"id": assignment_id, "deleted": True}


def list_for_org(
    db: Session,
    principal: Principal,
    *,
    date_from: date | None = None,
    date_to: date | None = None,
    session_id: int | None = None,
    user_id: str | None = None,
    status: str | None = None,
) -> list[dict[str, Any]]:
    """
    Assignments joined with session and staff display data, by session start then id.
    date_from/date_to filter on the session's local start date (inclusive).
    Staff without schedule.manage may only list their own.
    """
    if user_id != principal.user_id:
        require(principal, CAP_MANAGE_SCHEDULE, "Listing other staff members' assignments")
    if status is not None and status not in ASSIGNMENT_STATUSES:
        raise InvalidArgument(f"Unknown status {status!r}")
    if date_from and date_to and date_to < date_from:
        raise InvalidArgument("date_to must not be before date_from")

    q = (
        db.query(Assignment, ActivitySession, StaffMember.display_name)
        .join(ActivitySession, ActivitySession.id == Assignment.session_id)
        .outerjoin(
            StaffMember,
            and_(StaffMember.user_id == Assignment.user_id, StaffMember.tenant_id == ActivitySession.tenant_id),
        )
        .filter(ActivitySession.tenant_id == principal.tenant_id)
    )
    if date_from is not None:
        q = q.filter(ActivitySession.starts_at >= day_bounds(date_from)[0])
    if date_to is not None:
        q = q.filter(ActivitySession.starts_at < day_bounds(date_to)[1])
    if session_id is not None:
        q = q.filter(Assignment.session_id == session_id)
    if user_id is not None:
        q = q.filter(Assignment.user_id == user_id)
    if status is not None:
        q = q.filter(Assignment.status == status)
    rows = q.order_by(ActivitySession.starts_at.asc(), Assignment.id.asc()).all()
    return [joined_row(a, s, name) for a, s, name in rows]


def joined_row(a: Assignment, s: ActivitySession, display_name: str | None) -> dict[str, Any]:
    return {
        "id": a.id,
        "session_id": a.session_id,
        "user_id": a.user_id,
        "staff_name": display_name or "Unknown",
        "role": a.role,
        "status": a.status,
        "session": {
            "id": s.id,
            "title": s.title,
            "starts_at": as_utc(s.starts_at).isoformat(),
            "ends_at": as_utc(s.ends_at).isoformat(),
            "group_ids": s.group_ids,
        },
    }


def assignment_to_dict(a: Assignment) -> dict[str, Any]:
    return {
        "id": a.id,
        "session_id": a.session_id,
        "user_id": a.user_id,
        "role": a.role,
        "status": a.status,
    }
