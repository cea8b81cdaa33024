"""Staff directory and ad-hoc eligibility for a time window (no session needed)."""
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from serve_rota.api.deps import get_principal
from serve_rota.core.constants import CAP_MANAGE_SCHEDULE
from serve_rota.core.principal import Principal, require
from serve_rota.db.session import get_db
from serve_rota.services.availability.sql_store import SqlAvailabilityStore
from serve_rota.services.eligibility import resolve_eligibility

router = APIRouter()


@router.get("/staff")
def list_staff(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    staff = SqlAvailabilityStore(db, principal.tenant_id).list_staff()
    return {"staff": [s.to_row() for s in staff]}


@router.get("/staff/eligibility")
def staff_eligibility(
    starts_at: datetime = Query(...),
    ends_at: datetime = Query(...),
    group_id: list[str] | None = Query(None),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    """
    Every active staff member with eligible/reason for [starts_at, ends_at).
    Repeat group_id to accept a preference for any of several groups.
    """
    require(principal, CAP_MANAGE_SCHEDULE, "Viewing staff eligibility")
    store = SqlAvailabilityStore(db, principal.tenant_id)
    results = resolve_eligibility(store, starts_at, ends_at, group_id)
    return {"staff": [r.to_dict() for r in results]}
