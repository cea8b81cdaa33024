"""Staff notification: a persisted fact for the delivery collaborator (email/push), with read state.

recipient_id: staff user who should hear about it.
type: notification kind ('assignment_offered', 'swap_requested', ...).
read_at: NULL = unread; set when the recipient marks it read.
metadata: type-specific payload (assignment_id, session title, starts_at, ...).
"""
from sqlalchemy import JSON, Column, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from serve_rota.db.base import Base


class StaffNotification(Base):
    __tablename__ = "staff_notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    recipient_id = Column(String(64), nullable=False, index=True)
    type = Column(String(32), nullable=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    payload = Column("metadata", JSON().with_variant(JSONB, "postgresql"), nullable=False, default=dict)  # column name 'metadata' in DB

    __table_args__ = {"sqlite_autoincrement": True}
