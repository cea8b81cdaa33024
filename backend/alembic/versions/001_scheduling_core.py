"""Scheduling core: sessions, assignments, swap requests, staff directory, notifications

Revision ID: 001
Revises:
Create Date: (run alembic upgrade head)

Storage-level integrity:
  - uq_assignments_session_user: at most one assignment per (session, staff)
  - uq_swap_requests_one_requested: at most one REQUESTED swap per assignment (partial)
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "sessions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(256), nullable=True),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("ends_at > starts_at", name="ck_sessions_ends_after_starts"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_sessions_tenant_id", "sessions", ["tenant_id"])
    op.create_index("ix_sessions_starts_at", "sessions", ["starts_at"])

    op.create_table(
        "session_groups",
        sa.Column("session_id", sa.Integer(), sa.ForeignKey("sessions.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("group_id", sa.String(64), primary_key=True),
    )
    op.create_index("ix_session_groups_group_id", "session_groups", ["group_id"])

    op.create_table(
        "assignments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("session_id", sa.Integer(), sa.ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("role", sa.String(64), nullable=False, server_default="Support"),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint("session_id", "user_id", name="uq_assignments_session_user"),
        sa.CheckConstraint("status IN ('pending', 'confirmed', 'declined')", name="ck_assignments_status"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_assignments_session_id", "assignments", ["session_id"])
    op.create_index("ix_assignments_user_id", "assignments", ["user_id"])

    op.create_table(
        "swap_requests",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("assignment_id", sa.Integer(), sa.ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False),
        sa.Column("from_user_id", sa.String(64), nullable=False),
        sa.Column("to_user_id", sa.String(64), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="REQUESTED"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("from_user_id <> to_user_id", name="ck_swap_requests_distinct_users"),
        sa.CheckConstraint("status IN ('REQUESTED', 'ACCEPTED', 'DECLINED')", name="ck_swap_requests_status"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_swap_requests_assignment_id", "swap_requests", ["assignment_id"])
    op.create_index("ix_swap_requests_from_user_id", "swap_requests", ["from_user_id"])
    op.create_index("ix_swap_requests_to_user_id", "swap_requests", ["to_user_id"])
    op.create_index(
        "uq_swap_requests_one_requested",
        "swap_requests",
        ["assignment_id"],
        unique=True,
        postgresql_where=sa.text("status = 'REQUESTED'"),
        sqlite_where=sa.text("status = 'REQUESTED'"),
    )

    op.create_table(
        "staff_members",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("display_name", sa.String(256), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint("tenant_id", "user_id", name="uq_staff_members_tenant_user"),
    )
    op.create_index("ix_staff_members_user_id", "staff_members", ["user_id"])
    op.create_index("ix_staff_members_tenant_id", "staff_members", ["tenant_id"])

    op.create_table(
        "staff_weekly_availability",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("weekday", sa.String(3), nullable=False),
        sa.Column("start_minute", sa.Integer(), nullable=False),
        sa.Column("end_minute", sa.Integer(), nullable=False),
    )
    op.create_index("ix_staff_weekly_availability_user_id", "staff_weekly_availability", ["user_id"])
    op.create_index("ix_staff_weekly_availability_tenant_id", "staff_weekly_availability", ["tenant_id"])

    op.create_table(
        "staff_unavailable_dates",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("reason", sa.String(256), nullable=True),
        sa.UniqueConstraint("tenant_id", "user_id", "date", name="uq_staff_unavailable_dates_user_date"),
    )
    op.create_index("ix_staff_unavailable_dates_user_id", "staff_unavailable_dates", ["user_id"])
    op.create_index("ix_staff_unavailable_dates_tenant_id", "staff_unavailable_dates", ["tenant_id"])

    op.create_table(
        "staff_preferred_groups",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("group_id", sa.String(64), nullable=False),
        sa.UniqueConstraint("tenant_id", "user_id", "group_id", name="uq_staff_preferred_groups_user_group"),
    )
    op.create_index("ix_staff_preferred_groups_user_id", "staff_preferred_groups", ["user_id"])
    op.create_index("ix_staff_preferred_groups_tenant_id", "staff_preferred_groups", ["tenant_id"])

    op.create_table(
        "staff_notifications",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("tenant_id", sa.String(64), nullable=False),
        sa.Column("recipient_id", sa.String(64), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("metadata", sa.JSON().with_variant(postgresql.JSONB(), "postgresql"), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_staff_notifications_tenant_id", "staff_notifications", ["tenant_id"])
    op.create_index("ix_staff_notifications_recipient_id", "staff_notifications", ["recipient_id"])
    op.create_index("ix_staff_notifications_type", "staff_notifications", ["type"])


def downgrade() -> None:
    op.drop_table("staff_notifications")
    op.drop_table("staff_preferred_groups")
    op.drop_table("staff_unavailable_dates")
    op.drop_table("staff_weekly_availability")
    op.drop_table("staff_members")
    op.drop_index("uq_swap_requests_one_requested", table_name="swap_requests")
    op.drop_table("swap_requests")
    op.drop_table("assignments")
    op.drop_table("session_groups")
    op.drop_table("sessions")
