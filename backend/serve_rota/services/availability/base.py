"""Protocol for the availability store. The core asks yes/no questions; it never mutates the facts."""
from datetime import date, datetime
from typing import Protocol

from serve_rota.services.availability.types import StaffRef


class AvailabilityStore(Protocol):
    """Read-only view of one tenant's staff directory, weekly windows, date blocks and group preferences."""

    def list_staff(self) -> list[StaffRef]:
        """Active staff members of the tenant."""
        ...

    def get_staff(self, user_id: str) -> StaffRef | None:
        ...

    def is_blocked_on(self, user_id: str, day: date) -> bool:
        """True when the staff member marked this local date as unavailable."""
        ...

    def covers(self, user_id: str, starts_at: datetime, ends_at: datetime) -> bool:
        """True when one weekly window fully covers [starts_at, ends_at)."""
        ...

    def prefers_group(self, user_id: str, group_id: str) -> bool:
        ...
