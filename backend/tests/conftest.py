import os

# Settings are read at import time: point the app at an in-memory database first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULE_TIMEZONE"] = "UTC"
os.environ["USAGE_CAP_URL"] = ""

from datetime import date, datetime, timezone  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from serve_rota.api.deps import get_gate  # noqa: E402
from serve_rota.core.constants import CAP_MANAGE_SCHEDULE  # noqa: E402
from serve_rota.core.principal import Principal  # noqa: E402
from serve_rota.db.base import Base  # noqa: E402
from serve_rota.db.session import SessionLocal, engine  # noqa: E402
from serve_rota.main import app  # noqa: E402
from serve_rota.models import (  # noqa: E402
    StaffMember,
    StaffPreferredGroup,
    StaffUnavailableDate,
    StaffWeeklyAvailability,
)
from serve_rota.services.sessions import create_session  # noqa: E402

TENANT = "church-1"

MANAGER = Principal(user_id="mgr", tenant_id=TENANT, capabilities=frozenset({CAP_MANAGE_SCHEDULE}))
ALICE = Principal(user_id="alice", tenant_id=TENANT)
BOB = Principal(user_id="bob", tenant_id=TENANT)
CAROL = Principal(user_id="carol", tenant_id=TENANT)

# Monday 2025-01-06, 10:00-13:00 UTC
MONDAY = date(2025, 1, 6)
SESSION_START = datetime(2025, 1, 6, 10, 0, tzinfo=timezone.utc)
SESSION_END = datetime(2025, 1, 6, 13, 0, tzinfo=timezone.utc)


class BlockedGate:
    def __init__(self, reason: str | None = "Over plan limit"):
        self.reason = reason
        self.calls: list[tuple[str, str]] = []

    def is_blocked(self, tenant_id: str, action: str):
        self.calls.append((tenant_id, action))
        return True, self.reason


class RecordingGate:
    def __init__(self):
        self.calls: list[tuple[str, str]] = []

    def is_blocked(self, tenant_id: str, action: str):
        self.calls.append((tenant_id, action))
        return False, None


def headers_for(principal: Principal) -> dict[str, str]:
    return {
        "X-User-Id": principal.user_id,
        "X-Tenant-Id": principal.tenant_id,
        "X-Capabilities": ",".join(sorted(principal.capabilities)),
    }


def _window(user_id: str, weekday: str, start: int, end: int) -> StaffWeeklyAvailability:
    return StaffWeeklyAvailability(
        user_id=user_id, tenant_id=TENANT, weekday=weekday, start_minute=start, end_minute=end
    )


def seed_staff(db) -> None:
    """
    Monday 10:00-13:00 for group "youth":
      alice  covered, prefers youth          -> eligible
      bob    window ends 12:00               -> unavailable_at_time
      carol  covered, prefers adults         -> does_not_prefer_group
      dave   no window and blocked that day  -> blocked_on_date
      erin   inactive                        -> not listed
      mgr    covered all week, no preference
    """
    db.add_all(
        [
            StaffMember(user_id="alice", tenant_id=TENANT, display_name="Alice"),
            StaffMember(user_id="bob", tenant_id=TENANT, display_name="Bob"),
            StaffMember(user_id="carol", tenant_id=TENANT, display_name="Carol"),
            StaffMember(user_id="dave", tenant_id=TENANT, display_name="Dave"),
            StaffMember(user_id="erin", tenant_id=TENANT, display_name="Erin", active=False),
            StaffMember(user_id="mgr", tenant_id=TENANT, display_name="Morgan"),
            StaffMember(user_id="alice", tenant_id="other-tenant", display_name="Other Alice"),
            _window("alice", "MON", 9 * 60, 17 * 60),
            _window("bob", "MON", 9 * 60, 12 * 60),
            _window("carol", "MON", 8 * 60, 18 * 60),
            StaffUnavailableDate(user_id="dave", tenant_id=TENANT, date=MONDAY, reason="Holiday"),
            StaffPreferredGroup(user_id="alice", tenant_id=TENANT, group_id="youth"),
            StaffPreferredGroup(user_id="bob", tenant_id=TENANT, group_id="youth"),
            StaffPreferredGroup(user_id="carol", tenant_id=TENANT, group_id="adults"),
            StaffPreferredGroup(user_id="dave", tenant_id=TENANT, group_id="youth"),
        ]
    )
    db.add_all([_window("mgr", wd, 0, 24 * 60) for wd in ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")])
    db.commit()


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def staff(db):
    seed_staff(db)
    return db


@pytest.fixture
def youth_session(staff):
    return create_session(
        staff, MANAGER, starts_at=SESSION_START, ends_at=SESSION_END, group_ids=["youth"], title="Youth club"
    )


@pytest.fixture
def client(db):
    app.dependency_overrides[get_gate] = RecordingGate
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
