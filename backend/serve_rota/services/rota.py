"""Rota: assignments for a date range, grouped per local calendar day (empty days included)."""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from serve_rota.core.constants import ROTA_MAX_DAYS
from serve_rota.core.errors import InvalidArgument
from serve_rota.core.principal import Principal
from serve_rota.core.timeutil import to_local
from serve_rota.services.assignments import list_for_org


@dataclass
class RotaDay:
    date: date
    assignments: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date.isoformat(), "assignments": self.assignments}


def _day_key(row: dict[str, Any]) -> tuple:
    return (row["session"]["starts_at"], row["staff_name"].lower(), row["id"])


def build_week(
    db: Session,
    principal: Principal,
    date_from: date,
    date_to: date,
    *,
    user_id: str | None = None,
) -> list[RotaDay]:
    """
    One RotaDay per date in [date_from, date_to], ascending. Within a day: by session
    start, then staff display name.
    """
    if date_to < date_from:
        raise InvalidArgument("date_to must not be before date_from")
    span = (date_to - date_from).days + 1
    if span > ROTA_MAX_DAYS:
        raise InvalidArgument(f"Rota may cover at most {ROTA_MAX_DAYS} days")

    days = {date_from + timedelta(days=i): RotaDay(date=date_from + timedelta(days=i)) for i in range(span)}
    for row in list_for_org(db, principal, date_from=date_from, date_to=date_to, user_id=user_id):
        day = to_local_date(row["session"]["starts_at"])
        if day in days:
            days[day].assignments.append(row)
    for d in days.values():
        d.assignments.sort(key=_day_key)
    return list(days.values())


def to_local_date(iso_instant: str) -> date:
    return to_local(datetime.fromisoformat(iso_instant)).date()
