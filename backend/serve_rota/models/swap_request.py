"""Proposal to hand an assignment from its holder to a named peer. At most one REQUESTED row per assignment."""
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.sql import func

from serve_rota.db.base import Base


class SwapRequest(Base):
    __tablename__ = "swap_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    assignment_id = Column(Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True)
    from_user_id = Column(String(64), nullable=False, index=True)
    to_user_id = Column(String(64), nullable=False, index=True)
    status = Column(String(16), nullable=False, server_default="REQUESTED")  # REQUESTED | ACCEPTED | DECLINED
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("from_user_id <> to_user_id", name="ck_swap_requests_distinct_users"),
        CheckConstraint("status IN ('REQUESTED', 'ACCEPTED', 'DECLINED')", name="ck_swap_requests_status"),
        Index(
            "uq_swap_requests_one_requested",
            "assignment_id",
            unique=True,
            postgresql_where=text("status = 'REQUESTED'"),
            sqlite_where=text("status = 'REQUESTED'"),
        ),
        {"sqlite_autoincrement": True},
    )
