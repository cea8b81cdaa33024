"""
Assignments API: offer a session to staff, accept/decline, change role, remove, list.
"""
import logging
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from serve_rota.api.deps import get_gate, get_principal
from serve_rota.core.principal import Principal
from serve_rota.db.session import get_db
from serve_rota.services.assignments import (
    assignment_to_dict,
    create_assignment,
    delete_assignment,
    list_for_org,
    update_assignment,
)
from serve_rota.services.usage_cap import UsageCapGate

router = APIRouter()
logger = logging.getLogger(__name__)


class AssignmentCreate(BaseModel):
    session_id: int
    staff_id: str = Field(..., min_length=1, max_length=128)
    role: str | None = Field(None, max_length=64)
    status: str | None = Field(None, description="pending (default) or confirmed for self-assignment")


class AssignmentUpdate(BaseModel):
    status: str | None = None
    role: str | None = Field(None, max_length=64)


@router.post("/assignments", status_code=201)
def offer_assignment(
    body: AssignmentCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
    gate: UsageCapGate = Depends(get_gate),
) -> dict[str, Any]:
    row = create_assignment(
        db,
        principal,
        session_id=body.session_id,
        staff_id=body.staff_id.strip(),
        role=body.role,
        initial_status=body.status,
        gate=gate,
    )
    return assignment_to_dict(row)


@router.get("/assignments")
def list_assignments(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    session_id: int | None = Query(None),
    user_id: str | None = Query(None),
    status: str | None = Query(None),
) -> dict[str, Any]:
    """Organisation-wide list; without schedule.manage only user_id=<self> is allowed."""
    rows = list_for_org(
        db, principal, date_from=date_from, date_to=date_to, session_id=session_id, user_id=user_id, status=status
    )
    return {"assignments": rows}


@router.get("/assignments/mine")
def my_assignments(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    status: str | None = Query(None),
) -> dict[str, Any]:
    rows = list_for_org(db, principal, date_from=date_from, date_to=date_to, user_id=principal.user_id, status=status)
    return {"assignments": rows}


@router.patch("/assignments/{assignment_id}")
def patch_assignment(
    assignment_id: int,
    body: AssignmentUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
    gate: UsageCapGate = Depends(get_gate),
) -> dict[str, Any]:
    """Role change (schedulers) and/or status transition (holder or scheduler)."""
    row = update_assignment(db, principal, assignment_id, status=body.status, role=body.role, gate=gate)
    return assignment_to_dict(row)


@router.delete("/assignments/{assignment_id}")
def remove_assignment(
    assignment_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    return delete_assignment(db, principal, assignment_id)
