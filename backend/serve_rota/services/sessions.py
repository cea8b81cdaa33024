"""
Sessions: single create, get and list (tenant-scoped). Bulk creation lives in session_expander.
"""
import logging
from datetime import datetime
from typing import Any, Iterable

from sqlalchemy.orm import Session

from serve_rota.config import settings
from serve_rota.core.constants import CAP_MANAGE_SCHEDULE
from serve_rota.core.errors import InvalidArgument, NotFound
from serve_rota.core.principal import Principal, require
from serve_rota.core.timeutil import as_utc
from serve_rota.models.activity_session import ActivitySession, SessionGroup

logger = logging.getLogger(__name__)


def clean_group_ids(group_ids: Iterable[str] | None) -> list[str]:
    out: list[str] = []
    for g in group_ids or ():
        g = (g or "").strip()
        if g and g not in out:
            out.append(g)
    return out


def new_session(tenant_id: str, title: str | None, starts_at: datetime, ends_at: datetime, group_ids: list[str]) -> ActivitySession:
    """Build (not add) a session row with its groups."""
    row = ActivitySession(tenant_id=tenant_id, title=title, starts_at=as_utc(starts_at), ends_at=as_utc(ends_at))
    row.groups = [SessionGroup(group_id=g) for g in group_ids]
    return row


def create_session(
    db: Session,
    principal: Principal,
    *,
    starts_at: datetime,
    ends_at: datetime,
    group_ids: Iterable[str] | None = None,
    title: str | None = None,
) -> ActivitySession:
    require(principal, CAP_MANAGE_SCHEDULE, "Creating sessions")
    if as_utc(ends_at) <= as_utc(starts_at):
        raise InvalidArgument("ends_at must be after starts_at")
    title = (title or "").strip() or settings.default_session_title
    row = new_session(principal.tenant_id, title, starts_at, ends_at, clean_group_ids(group_ids))
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Created session %s for tenant %s", row.id, principal.tenant_id)
    return row


def get_session(db: Session, tenant_id: str, session_id: int) -> ActivitySession:
    row = (
        db.query(ActivitySession)
        .filter(ActivitySession.id == session_id, ActivitySession.tenant_id == tenant_id)
        .first()
    )
    if not row:
        raise NotFound("Session not found")
    return row


def list_sessions(
    db: Session,
    tenant_id: str,
    *,
    group_id: str | None = None,
    window_from: datetime | None = None,
    window_to: datetime | None = None,
) -> list[ActivitySession]:
    """Sessions overlapping [window_from, window_to] (either bound optional), earliest first."""
    q = db.query(ActivitySession).filter(ActivitySession.tenant_id == tenant_id)
    if group_id:
        q = q.filter(ActivitySession.groups.any(SessionGroup.group_id == group_id))
    if window_to is not None:
        q = q.filter(ActivitySession.starts_at <= as_utc(window_to))
    if window_from is not None:
        q = q.filter(ActivitySession.ends_at >= as_utc(window_from))
    return q.order_by(ActivitySession.starts_at.asc(), ActivitySession.id.asc()).all()


def session_to_dict(row: ActivitySession) -> dict[str, Any]:
    return {
        "id": row.id,
        "tenant_id": row.tenant_id,
        "title": row.title,
        "starts_at": as_utc(row.starts_at).isoformat(),
        "ends_at": as_utc(row.ends_at).isoformat(),
        "group_ids": row.group_ids,
    }
