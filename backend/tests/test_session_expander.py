from datetime import date, datetime, time, timezone

import pytest
from freezegun import freeze_time

from conftest import MANAGER, ALICE, BlockedGate
from serve_rota.config import settings
from serve_rota.core.errors import Forbidden, InvalidArgument, QuotaExceeded
from serve_rota.models import ActivitySession, Assignment
from serve_rota.services.session_expander import (
    build_schedule,
    bulk_create_sessions,
    count_sessions,
    expand,
    matching_dates,
)

BEFORE_RANGE = datetime(2025, 1, 1, tzinfo=timezone.utc)


def _schedule(**overrides):
    params = dict(
        group_ids=["youth"],
        start_date=date(2025, 1, 6),
        end_date=date(2025, 1, 12),
        days_of_week=["MON", "WED", "FRI"],
        start_time=time(9, 0),
        end_time=time(11, 0),
        title_prefix="Youth club",
    )
    params.update(overrides)
    return build_schedule(**params)


def test_mon_wed_fri_in_one_week_gives_three_sessions():
    drafts = expand(_schedule(), now=BEFORE_RANGE)

    assert [d.starts_at for d in drafts] == [
        datetime(2025, 1, 6, 9, 0, tzinfo=timezone.utc),
        datetime(2025, 1, 8, 9, 0, tzinfo=timezone.utc),
        datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc),
    ]
    assert all((d.ends_at - d.starts_at).total_seconds() == 2 * 3600 for d in drafts)
    assert [d.title for d in drafts] == ["Youth club 2025-01-06", "Youth club 2025-01-08", "Youth club 2025-01-10"]


def test_preview_count_matches_expansion_for_every_group():
    schedule = _schedule(group_ids=["youth", "adults"])

    preview = count_sessions(schedule, now=BEFORE_RANGE)
    drafts = expand(schedule, now=BEFORE_RANGE)

    assert preview == {"per_group": 3, "groups": 2, "total": 6}
    assert len(drafts) == preview["total"]
    # date-major: both groups for a date before the next date
    assert [d.group_id for d in drafts[:2]] == ["youth", "adults"]
    assert drafts[0].starts_at == drafts[1].starts_at


@freeze_time("2025-01-08 12:00:00")
def test_dates_already_started_are_skipped():
    # Wednesday 09:00 has passed at noon; only Friday remains
    assert list(matching_dates(_schedule())) == [date(2025, 1, 10)]
    assert count_sessions(_schedule())["total"] == 1


@freeze_time("2025-01-08 08:59:00")
def test_date_starting_later_today_is_kept():
    assert list(matching_dates(_schedule())) == [date(2025, 1, 8), date(2025, 1, 10)]


def test_single_day_range_on_unselected_weekday_is_empty():
    schedule = _schedule(start_date=date(2025, 1, 7), end_date=date(2025, 1, 7))
    assert expand(schedule, now=BEFORE_RANGE) == []
    assert count_sessions(schedule, now=BEFORE_RANGE)["total"] == 0


def test_title_defaults_when_no_prefix():
    drafts = expand(_schedule(title_prefix="  "), now=BEFORE_RANGE)
    assert {d.title for d in drafts} == {settings.default_session_title}


def test_weekday_names_are_case_insensitive_and_deduplicated():
    schedule = _schedule(days_of_week=["mon", "MON", " fri "])
    assert count_sessions(schedule, now=BEFORE_RANGE)["per_group"] == 2


@pytest.mark.parametrize(
    "overrides",
    [
        {"start_date": date(2025, 1, 12), "end_date": date(2025, 1, 6)},
        {"days_of_week": []},
        {"days_of_week": ["MON", "FUNDAY"]},
        {"start_time": time(11, 0), "end_time": time(11, 0)},
        {"start_time": time(12, 0), "end_time": time(11, 0)},
        {"group_ids": []},
        {"group_ids": ["  "]},
        {"start_date": date(2025, 1, 1), "end_date": date(2026, 6, 1)},
    ],
)
def test_invalid_schedules_are_rejected(overrides):
    with pytest.raises(InvalidArgument):
        _schedule(**overrides)


def test_bulk_create_persists_all_sessions(db):
    result = bulk_create_sessions(db, MANAGER, _schedule(group_ids=["youth", "adults"]), now=BEFORE_RANGE)

    assert len(result.sessions) == 6
    assert result.assignments.ok
    assert db.query(ActivitySession).count() == 6
    rows = db.query(ActivitySession).order_by(ActivitySession.starts_at, ActivitySession.id).all()
    assert [r.group_ids for r in rows[:2]] == [["youth"], ["adults"]]
    assert {r.tenant_id for r in rows} == {MANAGER.tenant_id}


def test_bulk_create_with_nothing_to_create_writes_nothing(db):
    result = bulk_create_sessions(db, MANAGER, _schedule(), now=datetime(2025, 2, 1, tzinfo=timezone.utc))
    assert result.sessions == []
    assert db.query(ActivitySession).count() == 0


def test_bulk_create_requires_manage_capability(db):
    with pytest.raises(Forbidden):
        bulk_create_sessions(db, ALICE, _schedule(), now=BEFORE_RANGE)
    assert db.query(ActivitySession).count() == 0


def test_bulk_create_blocked_by_usage_cap_writes_nothing(db):
    gate = BlockedGate()
    with pytest.raises(QuotaExceeded):
        bulk_create_sessions(db, MANAGER, _schedule(), gate=gate, now=BEFORE_RANGE)
    assert gate.calls == [(MANAGER.tenant_id, "sessions.bulk_create")]
    assert db.query(ActivitySession).count() == 0


def test_bulk_preassign_reports_each_failure_and_keeps_sessions(staff):
    db = staff
    result = bulk_create_sessions(
        db, MANAGER, _schedule(), staff_ids=["alice", "ghost", "alice"], role="Lead", now=BEFORE_RANGE
    )

    assert len(result.sessions) == 3
    assert len(result.assignments.succeeded) == 3
    assert {a.user_id for a in result.assignments.succeeded} == {"alice"}
    assert {a.role for a in result.assignments.succeeded} == {"Lead"}
    assert len(result.assignments.failed) == 3
    assert {f.error for f in result.assignments.failed} == {"not_found"}
    assert sorted(f.input["session_id"] for f in result.assignments.failed) == sorted(s.id for s in result.sessions)
    assert not result.assignments.ok
    assert db.query(ActivitySession).count() == 3
    assert db.query(Assignment).count() == 3
