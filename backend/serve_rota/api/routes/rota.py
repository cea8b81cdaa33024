"""Rota API: a date range of assignments grouped per local day."""
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from serve_rota.api.deps import get_principal
from serve_rota.core.principal import Principal
from serve_rota.db.session import get_db
from serve_rota.services.rota import build_week

router = APIRouter()


@router.get("/rota")
def get_rota(
    date_from: date = Query(...),
    date_to: date = Query(...),
    mine: bool = Query(False, description="Only the caller's own assignments"),
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    days = build_week(db, principal, date_from, date_to, user_id=principal.user_id if mine else None)
    return {
        "date_from": date_from.isoformat(),
        "date_to": date_to.isoformat(),
        "days": [d.to_dict() for d in days],
    }
