"""
Sessions API: single create/list/get, bulk (recurring) creation with preview, and
eligibility for a session.
"""
import logging
from datetime import date, datetime
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from serve_rota.api.deps import get_gate, get_principal
from serve_rota.core.constants import CAP_MANAGE_SCHEDULE
from serve_rota.core.errors import InvalidArgument
from serve_rota.core.principal import Principal, require
from serve_rota.core.timeutil import parse_hhmm
from serve_rota.db.session import get_db
from serve_rota.services.assignments import assignment_to_dict
from serve_rota.services.availability.sql_store import SqlAvailabilityStore
from serve_rota.services.eligibility import resolve_eligibility
from serve_rota.services.session_expander import BulkSchedule, build_schedule, bulk_create_sessions, count_sessions
from serve_rota.services.sessions import create_session, get_session, list_sessions, session_to_dict
from serve_rota.services.usage_cap import UsageCapGate

router = APIRouter()
logger = logging.getLogger(__name__)


class SessionCreate(BaseModel):
    starts_at: datetime
    ends_at: datetime
    group_ids: list[str] = Field(default_factory=list)
    title: str | None = Field(None, max_length=256)


class BulkScheduleBody(BaseModel):
    group_ids: list[str]
    start_date: date
    end_date: date
    days_of_week: list[str] = Field(..., description="Subset of MON..SUN")
    start_time: str = Field(..., description="HH:MM local time")
    end_time: str = Field(..., description="HH:MM local time")
    title_prefix: str | None = Field(None, max_length=200)

    def to_schedule(self) -> BulkSchedule:
        try:
            start_time = parse_hhmm(self.start_time)
            end_time = parse_hhmm(self.end_time)
        except ValueError as e:
            raise InvalidArgument(str(e)) from e
        return build_schedule(
            group_ids=self.group_ids,
            start_date=self.start_date,
            end_date=self.end_date,
            days_of_week=self.days_of_week,
            start_time=start_time,
            end_time=end_time,
            title_prefix=self.title_prefix,
        )


class BulkCreateBody(BulkScheduleBody):
    staff_ids: list[str] = Field(default_factory=list, description="Offer every new session to these staff (pending)")
    role: str | None = Field(None, max_length=64)


@router.post("/sessions", status_code=201)
def create_single_session(
    body: SessionCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    row = create_session(
        db, principal, starts_at=body.starts_at, ends_at=body.ends_at, group_ids=body.group_ids, title=body.title
    )
    return session_to_dict(row)


@router.get("/sessions")
def list_tenant_sessions(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
    group_id: str | None = Query(None),
    window_from: datetime | None = Query(None, alias="from"),
    window_to: datetime | None = Query(None, alias="to"),
) -> dict[str, Any]:
    """Sessions overlapping the optional [from, to] window, earliest first."""
    rows = list_sessions(db, principal.tenant_id, group_id=group_id, window_from=window_from, window_to=window_to)
    return {"sessions": [session_to_dict(r) for r in rows]}


@router.get("/sessions/{session_id}")
def get_one_session(
    session_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    return session_to_dict(get_session(db, principal.tenant_id, session_id))


@router.post("/sessions/bulk/preview")
def preview_bulk_sessions(body: BulkScheduleBody) -> dict[str, int]:
    """How many sessions a bulk request would create right now (past dates excluded)."""
    return count_sessions(body.to_schedule())


@router.post("/sessions/bulk", status_code=201)
def create_bulk_sessions(
    body: BulkCreateBody,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
    gate: UsageCapGate = Depends(get_gate),
) -> dict[str, Any]:
    """
    Create one session per matching date per group in a single transaction, then
    optionally offer each to staff_ids. Assignment failures are listed, not fatal.
    """
    result = bulk_create_sessions(
        db, principal, body.to_schedule(), staff_ids=body.staff_ids, role=body.role, gate=gate
    )
    return {
        "created": [session_to_dict(s) for s in result.sessions],
        "count": len(result.sessions),
        "assignments": {
            "succeeded": [assignment_to_dict(a) for a in result.assignments.succeeded],
            "failed": [f.to_dict() for f in result.assignments.failed],
        },
    }


@router.get("/sessions/{session_id}/eligible-staff")
def eligible_staff_for_session(
    session_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
    group_id: str | None = Query(None, description="Check preference for this group only (must be one of the session's groups)"),
) -> dict[str, Any]:
    """
    Staff ranked by fit for the session. Informational: assigning an ineligible
    staff member is allowed.
    """
    require(principal, CAP_MANAGE_SCHEDULE, "Viewing staff eligibility")
    row = get_session(db, principal.tenant_id, session_id)
    groups = row.group_ids
    if group_id:
        if group_id not in groups:
            raise InvalidArgument("group_id is not one of the session's groups")
        groups = [group_id]
    store = SqlAvailabilityStore(db, principal.tenant_id)
    results = resolve_eligibility(store, row.starts_at, row.ends_at, groups)
    return {"session_id": row.id, "staff": [r.to_dict() for r in results]}
