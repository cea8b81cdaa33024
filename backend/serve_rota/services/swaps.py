"""
Swap requests: the holder of an assignment offers it to a named peer.

REQUESTED -> ACCEPTED (by the peer; assignment moves to them, back to pending)
REQUESTED -> DECLINED (by the peer; assignment untouched)

One outstanding REQUESTED swap per assignment: a second request is rejected with
Conflict. The partial unique index uq_swap_requests_one_requested enforces it, so
concurrent requests cannot both land.
"""
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from serve_rota.core.constants import (
    ASSIGNMENT_DECLINED,
    ASSIGNMENT_PENDING,
    NOTIFY_ASSIGNMENT_OFFERED,
    NOTIFY_ASSIGNMENT_REASSIGNED,
    NOTIFY_SWAP_ACCEPTED,
    NOTIFY_SWAP_DECLINED,
    NOTIFY_SWAP_REQUESTED,
    SWAP_ACCEPTED,
    SWAP_DECLINED,
    SWAP_REQUESTED,
)
from serve_rota.core.errors import Conflict, Forbidden, InvalidArgument, InvalidTransition, NotFound
from serve_rota.core.principal import Principal
from serve_rota.core.timeutil import as_utc
from serve_rota.models.activity_session import ActivitySession
from serve_rota.models.assignment import Assignment
from serve_rota.models.swap_request import SwapRequest
from serve_rota.services import staff_notifications
from serve_rota.services.assignments import get_assignment, notice_payload
from serve_rota.services.availability.sql_store import SqlAvailabilityStore

logger = logging.getLogger(__name__)


def _get_swap(db: Session, tenant_id: str, swap_id: int) -> tuple[SwapRequest, Assignment, ActivitySession]:
    found = (
        db.query(SwapRequest, Assignment, ActivitySession)
        .join(Assignment, Assignment.id == SwapRequest.assignment_id)
        .join(ActivitySession, ActivitySession.id == Assignment.session_id)
        .filter(SwapRequest.id == swap_id, ActivitySession.tenant_id == tenant_id)
        .first()
    )
    if not found:
        raise NotFound("SwapRequest not found")
    return found


def create_swap(
    db: Session,
    principal: Principal,
    *,
    assignment_id: int,
    from_user_id: str,
    to_user_id: str,
) -> SwapRequest:
    """Only the assignment's current holder may offer it, and only to someone else."""
    if from_user_id == to_user_id:
        raise InvalidArgument("Cannot swap an assignment with yourself")
    if principal.user_id != from_user_id:
        raise Forbidden("Swap requests can only be made by the requesting staff member")
    assignment, session = get_assignment(db, principal.tenant_id, assignment_id)
    if assignment.user_id != from_user_id:
        raise Forbidden("Only the current holder of an assignment can request a swap")
    if assignment.status == ASSIGNMENT_DECLINED:
        raise InvalidTransition("A declined assignment cannot be swapped")
    if SqlAvailabilityStore(db, principal.tenant_id).get_staff(to_user_id) is None:
        raise NotFound("toUser not found")

    row = SwapRequest(assignment_id=assignment.id, from_user_id=from_user_id, to_user_id=to_user_id, status=SWAP_REQUESTED)
    try:
        db.add(row)
        db.flush()
        staff_notifications.record(
            db,
            principal.tenant_id,
            to_user_id,
            NOTIFY_SWAP_REQUESTED,
            notice_payload(assignment, session, swap_request_id=row.id, from_user_id=from_user_id),
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict("This assignment already has an outstanding swap request")
    db.refresh(row)
    logger.info("Swap %s requested: assignment=%s %s -> %s", row.id, assignment_id, from_user_id, to_user_id)
    return row


def _resolve(db: Session, swap_id: int, to_status: str) -> None:
    """Move a REQUESTED swap to a terminal status; zero rows means someone else resolved it first."""
    result = db.execute(
        update(SwapRequest)
        .where(SwapRequest.id == swap_id, SwapRequest.status == SWAP_REQUESTED)
        .values(status=to_status, resolved_at=datetime.now(timezone.utc))
    )
    if result.rowcount != 1:
        db.rollback()
        raise InvalidTransition("Swap request is no longer open")


def accept_swap(db: Session, principal: Principal, swap_id: int) -> SwapRequest:
    """
    The named peer takes over the assignment. The assignment goes back to pending so
    the new holder confirms it themselves.
    """
    swap, assignment, session = _get_swap(db, principal.tenant_id, swap_id)
    if principal.user_id != swap.to_user_id:
        raise Forbidden("Only the staff member the swap was offered to can accept it")
    if swap.status != SWAP_REQUESTED:
        raise InvalidTransition(f"Swap request is already {swap.status}")
    if assignment.status == ASSIGNMENT_DECLINED:
        raise InvalidTransition("A declined assignment cannot be swapped")

    try:
        _resolve(db, swap_id, SWAP_ACCEPTED)
        # declined is terminal: a decline committed after the read above still wins
        moved = db.execute(
            update(Assignment)
            .where(
                Assignment.id == assignment.id,
                Assignment.user_id == swap.from_user_id,
                Assignment.status != ASSIGNMENT_DECLINED,
            )
            .values(user_id=swap.to_user_id, status=ASSIGNMENT_PENDING, updated_at=datetime.now(timezone.utc))
        )
        if moved.rowcount != 1:
            db.rollback()
            raise InvalidTransition("The assignment was declined or no longer belongs to the requesting staff member")
    except IntegrityError:
        db.rollback()
        raise Conflict("You already have an assignment for this session")
    db.refresh(assignment)
    db.refresh(swap)
    reassigned = notice_payload(assignment, session, swap_request_id=swap.id, to_user_id=swap.to_user_id)
    staff_notifications.record(db, principal.tenant_id, swap.from_user_id, NOTIFY_SWAP_ACCEPTED, reassigned)
    staff_notifications.record(
        db,
        principal.tenant_id,
        swap.to_user_id,
        NOTIFY_ASSIGNMENT_OFFERED,
        notice_payload(assignment, session, swap_request_id=swap.id),
    )
    staff_notifications.record(db, principal.tenant_id, swap.from_user_id, NOTIFY_ASSIGNMENT_REASSIGNED, dict(reassigned))
    db.commit()
    logger.info("Swap %s accepted: assignment %s now held by %s", swap_id, assignment.id, swap.to_user_id)
    return swap


def decline_swap(db: Session, principal: Principal, swap_id: int) -> SwapRequest:
    swap, assignment, session = _get_swap(db, principal.tenant_id, swap_id)
    if principal.user_id != swap.to_user_id:
        raise Forbidden("Only the staff member the swap was offered to can decline it")
    if swap.status != SWAP_REQUESTED:
        raise InvalidTransition(f"Swap request is already {swap.status}")
    _resolve(db, swap_id, SWAP_DECLINED)
    db.refresh(swap)
    staff_notifications.record(
        db,
        principal.tenant_id,
        swap.from_user_id,
        NOTIFY_SWAP_DECLINED,
        notice_payload(assignment, session, swap_request_id=swap.id, to_user_id=swap.to_user_id),
    )
    db.commit()
    logger.info("Swap %s declined by %s", swap_id, principal.user_id)
    return swap


def list_for_user(db: Session, principal: Principal) -> dict[str, list[dict[str, Any]]]:
    """inbound: open requests offered to me. outbound: everything I asked for, newest first."""
    base = (
        db.query(SwapRequest)
        .join(Assignment, Assignment.id == SwapRequest.assignment_id)
        .join(ActivitySession, ActivitySession.id == Assignment.session_id)
        .filter(ActivitySession.tenant_id == principal.tenant_id)
    )
    inbound = (
        base.filter(SwapRequest.to_user_id == principal.user_id, SwapRequest.status == SWAP_REQUESTED)
        .order_by(SwapRequest.created_at.desc(), SwapRequest.id.desc())
        .all()
    )
    outbound = (
        base.filter(SwapRequest.from_user_id == principal.user_id)
        .order_by(SwapRequest.created_at.desc(), SwapRequest.id.desc())
        .all()
    )
    return {
        "inbound": [swap_to_dict(s) for s in inbound],
        "outbound": [swap_to_dict(s) for s in outbound],
    }


def swap_to_dict(s: SwapRequest) -> dict[str, Any]:
    return {
        "id": s.id,
        "assignment_id": s.assignment_id,
        "from_user_id": s.from_user_id,
        "to_user_id": s.to_user_id,
        "status": s.status,
        "created_at": as_utc(s.created_at).isoformat() if s.created_at else None,
        "resolved_at": as_utc(s.resolved_at).isoformat() if s.resolved_at else None,
    }
