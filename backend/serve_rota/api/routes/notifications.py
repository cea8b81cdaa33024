"""
Staff notifications API: the caller's own assignment and swap notices.

Recipient is always the authenticated principal. Supports: list (with unread
filter), mark one read, mark all read.
"""
import logging
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from serve_rota.api.deps import get_principal
from serve_rota.core.constants import NOTIFICATIONS_LIST_LIMIT
from serve_rota.core.principal import Principal
from serve_rota.core.timeutil import as_utc
from serve_rota.db.session import get_db
from serve_rota.services import staff_notifications

router = APIRouter()
logger = logging.getLogger(__name__)


# --- List ---


@router.get("/notifications")
def list_notifications(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
    limit: int = Query(80, ge=1, le=NOTIFICATIONS_LIST_LIMIT),
    unread_only: bool = Query(False),
) -> dict[str, Any]:
    """
    List notifications for the caller, newest first.
    Use unread_only=true to only return unread (e.g. for badge count).
    """
    return staff_notifications.list_for_recipient(
        db, principal.tenant_id, principal.user_id, limit=limit, unread_only=unread_only
    )


# --- Mark one read ---


@router.patch("/notifications/{notification_id}/read")
def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    row = staff_notifications.mark_read(db, principal.tenant_id, principal.user_id, notification_id)
    return {"ok": True, "id": notification_id, "read_at": as_utc(row.read_at).isoformat()}


# --- Mark all read ---


@router.post("/notifications/mark-all-read")
def mark_all_read(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_principal),
) -> dict[str, Any]:
    updated = staff_notifications.mark_all_read(db, principal.tenant_id, principal.user_id)
    logger.debug("Marked %s notifications read for %s", updated, principal.user_id)
    return {"ok": True, "recipient_id": principal.user_id, "marked_count": updated}
