"""
Recurring session expander: date range x weekdays x one time window x groups -> sessions.

matching_dates() is the single date rule shared by the preview count and the
expansion itself, so the count a scheduler sees is the count that gets created.
Dates whose start instant is already in the past are skipped.

Persisting is one transaction for all session rows. Optional pre-assignment runs
afterwards, one independent attempt per (session, staff); failures are collected,
never rolled back into the sessions.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Iterator, Sequence

from sqlalchemy.orm import Session

from serve_rota.config import settings
from serve_rota.core.constants import BULK_MAX_DAYS, CAP_MANAGE_SCHEDULE, WEEKDAY_INDEX, WEEKDAYS
from serve_rota.core.errors import DomainError, InvalidArgument
from serve_rota.core.principal import Principal, require
from serve_rota.core.timeutil import as_utc, local_instant
from serve_rota.models.activity_session import ActivitySession
from serve_rota.models.assignment import Assignment
from serve_rota.services.assignments import create_assignment
from serve_rota.services.batch import BatchResult, FailedItem
from serve_rota.services.sessions import clean_group_ids, new_session
from serve_rota.services.usage_cap import UsageCapGate, assert_within_cap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BulkSchedule:
    """A validated bulk-schedule request."""

    group_ids: tuple[str, ...]
    start_date: date
    end_date: date
    days_of_week: frozenset[int]  # date.weekday() values
    start_time: time
    end_time: time
    title_prefix: str | None = None


@dataclass(frozen=True)
class SessionDraft:
    group_id: str
    title: str
    starts_at: datetime
    ends_at: datetime


@dataclass
class BulkCreateResult:
    sessions: list[ActivitySession] = field(default_factory=list)
    assignments: BatchResult[dict, Assignment] = field(default_factory=BatchResult)


def build_schedule(
    *,
    group_ids: Iterable[str],
    start_date: date,
    end_date: date,
    days_of_week: Iterable[str],
    start_time: time,
    end_time: time,
    title_prefix: str | None = None,
) -> BulkSchedule:
    """Validate raw inputs. Raises InvalidArgument before anything is written."""
    groups = tuple(clean_group_ids(group_ids))
    if not groups:
        raise InvalidArgument("At least one group is required")
    if start_date > end_date:
        raise InvalidArgument("start_date must be on or before end_date")
    if (end_date - start_date).days + 1 > BULK_MAX_DAYS:
        raise InvalidArgument(f"Date range may cover at most {BULK_MAX_DAYS} days")
    days = set()
    for d in days_of_week:
        key = (d or "").strip().upper()
        if key not in WEEKDAY_INDEX:
            raise InvalidArgument(f"Unknown weekday {d!r}; expected one of {', '.join(WEEKDAYS)}")
        days.add(WEEKDAY_INDEX[key])
    if not days:
        raise InvalidArgument("At least one weekday is required")
    if start_time >= end_time:
        raise InvalidArgument("start_time must be before end_time")
    prefix = (title_prefix or "").strip() or None
    return BulkSchedule(groups, start_date, end_date, frozenset(days), start_time, end_time, prefix)


def matching_dates(schedule: BulkSchedule, now: datetime | None = None) -> Iterator[date]:
    """Every date in [start_date, end_date] on a selected weekday whose start is not in the past."""
    now = as_utc(now) if now else datetime.now(timezone.utc)
    d = schedule.start_date
    while d <= schedule.end_date:
        if d.weekday() in schedule.days_of_week and local_instant(d, schedule.start_time) >= now:
            yield d
        d += timedelta(days=1)


def count_sessions(schedule: BulkSchedule, now: datetime | None = None) -> dict[str, int]:
    """Preview: sessions per group and in total, without building any."""
    per_group = sum(1 for _ in matching_dates(schedule, now))
    return {
        "per_group": per_group,
        "groups": len(schedule.group_ids),
        "total": per_group * len(schedule.group_ids),
    }


def _title(schedule: BulkSchedule, d: date) -> str:
    if schedule.title_prefix:
        return f"{schedule.title_prefix} {d.isoformat()}"
    return settings.default_session_title


def expand(schedule: BulkSchedule, now: datetime | None = None) -> list[SessionDraft]:
    """One draft per matching date per group, date-major."""
    drafts = []
    for d in matching_dates(schedule, now):
        starts_at = local_instant(d, schedule.start_time)
        ends_at = local_instant(d, schedule.end_time)
        for g in schedule.group_ids:
            drafts.append(SessionDraft(group_id=g, title=_title(schedule, d), starts_at=starts_at, ends_at=ends_at))
    return drafts


def bulk_create_sessions(
    db: Session,
    principal: Principal,
    schedule: BulkSchedule,
    *,
    staff_ids: Sequence[str] = (),
    role: str | None = None,
    gate: UsageCapGate | None = None,
    now: datetime | None = None,
) -> BulkCreateResult:
    """
    Persist all drafts in one transaction, then (optionally) offer each session to
    each staff member as a pending assignment, best-effort.
    """
    require(principal, CAP_MANAGE_SCHEDULE, "Creating sessions")
    assert_within_cap(gate, principal.tenant_id, "sessions.bulk_create")
    drafts = expand(schedule, now)
    result = BulkCreateResult()
    if not drafts:
        return result

    rows = [new_session(principal.tenant_id, dr.title, dr.starts_at, dr.ends_at, [dr.group_id]) for dr in drafts]
    try:
        db.add_all(rows)
        db.commit()
    except Exception:
        db.rollback()
        logger.warning("Bulk session create failed for tenant %s; nothing persisted", principal.tenant_id, exc_info=True)
        raise
    for r in rows:
        db.refresh(r)
    result.sessions = rows
    logger.info("Bulk created %s sessions for tenant %s", len(rows), principal.tenant_id)

    for session_row in rows:
        for staff_id in dict.fromkeys(staff_ids):
            item = {"session_id": session_row.id, "staff_id": staff_id}
            try:
                a = create_assignment(
                    db, principal, session_id=session_row.id, staff_id=staff_id, role=role, gate=gate
                )
                result.assignments.succeeded.append(a)
            except DomainError as e:
                logger.warning("Pre-assign %s to session %s failed: %s", staff_id, session_row.id, e.detail)
                result.assignments.failed.append(FailedItem(input=item, error=e.code, detail=e.detail))
    return result
