"""Swap requests API: offer my assignment to a peer, and the peer's accept/decline."""
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from serve_rota.api.deps import get_principal
from serve_rota.core.principal import Principal
from serve_rota.db.session import get_db
from serve_rota.services.swaps import accept_swap, create_swap, decline_swap, list_for_user, swap_to_dict

router = APIRouter()


class SwapCreate(BaseModel):
    assignment_id: int
    to_user_id: str = Field(..., min_length=1, max_length=128)
    from_user_id: str | None = Field(None, description="Defaults to the caller")


@router.post("/swaps", status_code=201)
def request_swap(
    body: SwapCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    row = create_swap(
        db,
        principal,
        assignment_id=body.assignment_id,
        from_user_id=(body.from_user_id or principal.user_id).strip(),
        to_user_id=body.to_user_id.strip(),
    )
    return swap_to_dict(row)


@router.get("/swaps")
def my_swaps(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    return list_for_user(db, principal)


@router.post("/swaps/{swap_id}/accept")
def accept(
    swap_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    return swap_to_dict(accept_swap(db, principal, swap_id))


@router.post("/swaps/{swap_id}/decline")
def decline(
    swap_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    return swap_to_dict(decline_swap(db, principal, swap_id))
