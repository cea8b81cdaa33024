"""
Staff notifications: persisted facts about assignment and swap changes.

record() only adds the row; the caller's commit makes the fact visible together
with the state change it describes. Delivery (email/push) is the notification
collaborator's job and reads from this table.
"""
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from serve_rota.core.constants import NOTIFICATIONS_LIST_LIMIT
from serve_rota.core.errors import NotFound
from serve_rota.models.staff_notification import StaffNotification

logger = logging.getLogger(__name__)


def record(db: Session, tenant_id: str, recipient_id: str, type_: str, payload: dict[str, Any]) -> StaffNotification:
    row = StaffNotification(tenant_id=tenant_id, recipient_id=recipient_id, type=type_, payload=payload)
    db.add(row)
    logger.debug("Queued %s notification for %s", type_, recipient_id)
    return row


def list_for_recipient(
    db: Session,
    tenant_id: str,
    recipient_id: str,
    *,
    limit: int = 80,
    unread_only: bool = False,
) -> dict[str, Any]:
    """Notifications for one recipient, newest first, plus the unread count."""
    q = db.query(StaffNotification).filter(
        StaffNotification.tenant_id == tenant_id,
        StaffNotification.recipient_id == recipient_id,
    )
    if unread_only:
        q = q.filter(StaffNotification.read_at.is_(None))
    rows = (
        q.order_by(StaffNotification.created_at.desc(), StaffNotification.id.desc())
        .limit(min(limit, NOTIFICATIONS_LIST_LIMIT))
        .all()
    )
    unread_count = (
        db.query(StaffNotification)
        .filter(
            StaffNotification.tenant_id == tenant_id,
            StaffNotification.recipient_id == recipient_id,
            StaffNotification.read_at.is_(None),
        )
        .count()
    )
    return {
        "notifications": [
            {
                "id": r.id,
                "type": r.type,
                "read": r.read_at is not None,
                "read_at": r.read_at.isoformat() if r.read_at else None,
                "created_at": r.created_at.isoformat() if r.created_at else None,
                "metadata": r.payload or {},
            }
            for r in rows
        ],
        "unread_count": unread_count,
    }


def mark_read(db: Session, tenant_id: str, recipient_id: str, notification_id: int) -> StaffNotification:
    row = (
        db.query(StaffNotification)
        .filter(
            StaffNotification.id == notification_id,
            StaffNotification.tenant_id == tenant_id,
            StaffNotification.recipient_id == recipient_id,
        )
        .first()
    )
    if not row:
        raise NotFound("Notification not found")
    if row.read_at is None:
        row.read_at = datetime.now(timezone.utc)
        db.commit()
    return row


def mark_all_read(db: Session, tenant_id: str, recipient_id: str) -> int:
    now = datetime.now(timezone.utc)
    updated = (
        db.query(StaffNotification)
        .filter(
            StaffNotification.tenant_id == tenant_id,
            StaffNotification.recipient_id == recipient_id,
            StaffNotification.read_at.is_(None),
        )
        .update({StaffNotification.read_at: now}, synchronize_session=False)
    )
    db.commit()
    return updated
