"""
Single source of truth for database tables that exist after migrations (001).

Use these names when writing raw SQL (e.g. TRUNCATE). alembic/env.py asserts the
registered models match ALL_TABLE_NAMES.
"""
# Tables owned by the scheduling core (written by services)
CORE_TABLE_NAMES = (
    "sessions",
    "session_groups",
    "assignments",
    "swap_requests",
    "staff_notifications",
)

# Collaborator tables: staff directory and availability facts. Read-only here.
STAFF_TABLE_NAMES = (
    "staff_members",
    "staff_weekly_availability",
    "staff_unavailable_dates",
    "staff_preferred_groups",
)

ALL_TABLE_NAMES = CORE_TABLE_NAMES + STAFF_TABLE_NAMES
