"""
Staff directory and availability facts. Owned by the staff-profile collaborator;
the scheduling core only reads these tables.

Weekly windows are local time-of-day minutes (0..1440) on a weekday (MON..SUN).
"""
from sqlalchemy import Boolean, Column, Date, Integer, String, UniqueConstraint, true

from serve_rota.db.base import Base


class StaffMember(Base):
    __tablename__ = "staff_members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    display_name = Column(String(256), nullable=False)
    active = Column(Boolean, nullable=False, default=True, server_default=true())

    __table_args__ = (UniqueConstraint("tenant_id", "user_id", name="uq_staff_members_tenant_user"),)


class StaffWeeklyAvailability(Base):
    __tablename__ = "staff_weekly_availability"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    weekday = Column(String(3), nullable=False)  # MON..SUN
    start_minute = Column(Integer, nullable=False)
    end_minute = Column(Integer, nullable=False)


class StaffUnavailableDate(Base):
    __tablename__ = "staff_unavailable_dates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    date = Column(Date, nullable=False)
    reason = Column(String(256), nullable=True)

    __table_args__ = (UniqueConstraint("tenant_id", "user_id", "date", name="uq_staff_unavailable_dates_user_date"),)


class StaffPreferredGroup(Base):
    __tablename__ = "staff_preferred_groups"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    group_id = Column(String(64), nullable=False)

    __table_args__ = (UniqueConstraint("tenant_id", "user_id", "group_id", name="uq_staff_preferred_groups_user_group"),)
