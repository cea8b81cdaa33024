"""
Eligibility resolver: for a session window, who is a good fit and why the others are not.

Advisory only. Assignment creation never consults this; a scheduler may assign
anyone. The result ranks eligible staff first, then by reason priority
(blocked_on_date > unavailable_at_time > does_not_prefer_group), then by name.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Sequence

from serve_rota.core.constants import (
    REASON_BLOCKED_ON_DATE,
    REASON_DOES_NOT_PREFER_GROUP,
    REASON_PRIORITY,
    REASON_UNAVAILABLE_AT_TIME,
)
from serve_rota.core.errors import InvalidArgument
from serve_rota.core.timeutil import as_utc, dates_touched
from serve_rota.services.availability.base import AvailabilityStore
from serve_rota.services.availability.types import StaffRef


@dataclass(frozen=True)
class EligibilityResult:
    user_id: str
    display_name: str
    eligible: bool
    reason: str | None = None

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "display_name": self.display_name,
            "eligible": self.eligible,
            "reason": self.reason,
        }


def classify(
    store: AvailabilityStore,
    user_id: str,
    starts_at: datetime,
    ends_at: datetime,
    group_ids: Sequence[str] = (),
) -> str | None:
    """Highest-priority reason this staff member is ineligible, or None."""
    if any(store.is_blocked_on(user_id, d) for d in dates_touched(starts_at, ends_at)):
        return REASON_BLOCKED_ON_DATE
    if not store.covers(user_id, starts_at, ends_at):
        return REASON_UNAVAILABLE_AT_TIME
    # No group on the session: preference is not checked
    if group_ids and not any(store.prefers_group(user_id, g) for g in group_ids):
        return REASON_DOES_NOT_PREFER_GROUP
    return None


def _rank(r: EligibilityResult) -> tuple:
    return (0 if r.eligible else REASON_PRIORITY.get(r.reason, 4), r.display_name.lower(), r.user_id)


def resolve_eligibility(
    store: AvailabilityStore,
    starts_at: datetime,
    ends_at: datetime,
    group_ids: Iterable[str] | str | None = None,
    staff: Iterable[StaffRef] | None = None,
) -> list[EligibilityResult]:
    """
    Classify every staff member (default: the store's active staff) for the window.
    group_ids may be a single group, several (staff must prefer any of them) or None.
    """
    starts_at, ends_at = as_utc(starts_at), as_utc(ends_at)
    if ends_at <= starts_at:
        raise InvalidArgument("ends_at must be after starts_at")
    if group_ids is None:
        groups: tuple[str, ...] = ()
    elif isinstance(group_ids, str):
        groups = (group_ids,)
    else:
        groups = tuple(group_ids)
    members = list(staff) if staff is not None else store.list_staff()
    rows = []
    for s in members:
        reason = classify(store, s.user_id, starts_at, ends_at, groups)
        rows.append(EligibilityResult(user_id=s.user_id, display_name=s.display_name, eligible=reason is None, reason=reason))
    rows.sort(key=_rank)
    return rows
