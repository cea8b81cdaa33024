"""Availability store backed by the staff_* tables (written by the staff-profile collaborator)."""
from datetime import date, datetime, timedelta

from sqlalchemy.orm import Session

from serve_rota.core.constants import WEEKDAYS
from serve_rota.core.timeutil import to_local
from serve_rota.models.staff import (
    StaffMember,
    StaffPreferredGroup,
    StaffUnavailableDate,
    StaffWeeklyAvailability,
)
from serve_rota.services.availability.types import StaffRef

MINUTES_PER_DAY = 24 * 60


def _local_span(starts_at: datetime, ends_at: datetime) -> tuple[str, int, int] | None:
    """
    (weekday, start_minute, end_minute) of the interval in local time, or None when it
    crosses a local midnight. An end exactly at the next midnight counts as minute 1440.
    """
    start = to_local(starts_at)
    end = to_local(ends_at)
    start_min = start.hour * 60 + start.minute
    if end.date() == start.date():
        end_min = end.hour * 60 + end.minute
    elif end.date() == start.date() + timedelta(days=1) and (end.hour, end.minute, end.second) == (0, 0, 0):
        end_min = MINUTES_PER_DAY
    else:
        return None
    return WEEKDAYS[start.weekday()], start_min, end_min


def window_covers(window_start: int, window_end: int, start_min: int, end_min: int) -> bool:
    return window_start <= start_min and end_min <= window_end


class SqlAvailabilityStore:
    def __init__(self, db: Session, tenant_id: str):
        self.db = db
        self.tenant_id = tenant_id

    def list_staff(self) -> list[StaffRef]:
        rows = (
            self.db.query(StaffMember)
            .filter(StaffMember.tenant_id == self.tenant_id, StaffMember.active.is_(True))
            .order_by(StaffMember.display_name, StaffMember.user_id)
            .all()
        )
        return [StaffRef(user_id=r.user_id, display_name=r.display_name) for r in rows]

    def get_staff(self, user_id: str) -> StaffRef | None:
        row = (
            self.db.query(StaffMember)
            .filter(
                StaffMember.tenant_id == self.tenant_id,
                StaffMember.user_id == user_id,
                StaffMember.active.is_(True),
            )
            .first()
        )
        if not row:
            return None
        return StaffRef(user_id=row.user_id, display_name=row.display_name)

    def is_blocked_on(self, user_id: str, day: date) -> bool:
        return (
            self.db.query(StaffUnavailableDate.id)
            .filter(
                StaffUnavailableDate.tenant_id == self.tenant_id,
                StaffUnavailableDate.user_id == user_id,
                StaffUnavailableDate.date == day,
            )
            .first()
            is not None
        )

    def covers(self, user_id: str, starts_at: datetime, ends_at: datetime) -> bool:
        span = _local_span(starts_at, ends_at)
        if span is None:
            return False
        weekday, start_min, end_min = span
        windows = (
            self.db.query(StaffWeeklyAvailability.start_minute, StaffWeeklyAvailability.end_minute)
            .filter(
                StaffWeeklyAvailability.tenant_id == self.tenant_id,
                StaffWeeklyAvailability.user_id == user_id,
                StaffWeeklyAvailability.weekday == weekday,
            )
            .all()
        )
        return any(window_covers(ws, we, start_min, end_min) for ws, we in windows)

    def prefers_group(self, user_id: str, group_id: str) -> bool:
        return (
            self.db.query(StaffPreferredGroup.id)
            .filter(
                StaffPreferredGroup.tenant_id == self.tenant_id,
                StaffPreferredGroup.user_id == user_id,
                StaffPreferredGroup.group_id == group_id,
            )
            .first()
            is not None
        )
