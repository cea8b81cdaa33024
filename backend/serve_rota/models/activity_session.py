"""One row per scheduled activity occurrence (start/end instant). Group membership lives in session_groups."""
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from serve_rota.db.base import Base


class ActivitySession(Base):
    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    title = Column(String(256), nullable=True)
    starts_at = Column(DateTime(timezone=True), nullable=False, index=True)
    ends_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    groups = relationship(
        "SessionGroup",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="SessionGroup.group_id",
    )

    __table_args__ = (
        CheckConstraint("ends_at > starts_at", name="ck_sessions_ends_after_starts"),
        {"sqlite_autoincrement": True},
    )

    @property
    def group_ids(self) -> list[str]:
        return [g.group_id for g in self.groups]


class SessionGroup(Base):
    __tablename__ = "session_groups"

    session_id = Column(Integer, ForeignKey("sessions.id", ondelete="CASCADE"), primary_key=True)
    group_id = Column(String(64), primary_key=True, index=True)
