"""Binding of one staff member to one session. At most one row per (session_id, user_id); delete frees the slot."""
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.sql import func

from serve_rota.db.base import Base


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(Integer, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    role = Column(String(64), nullable=False, server_default="Support")  # free-form: Lead, Support, ...
    status = Column(String(16), nullable=False, server_default="pending")  # pending | confirmed | declined
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("session_id", "user_id", name="uq_assignments_session_user"),
        CheckConstraint("status IN ('pending', 'confirmed', 'declined')", name="ck_assignments_status"),
        {"sqlite_autoincrement": True},  # deleted ids are never reused
    )
