from serve_rota.models.activity_session import ActivitySession, SessionGroup
from serve_rota.models.assignment import Assignment
from serve_rota.models.staff import StaffMember, StaffPreferredGroup, StaffUnavailableDate, StaffWeeklyAvailability
from serve_rota.models.staff_notification import StaffNotification
from serve_rota.models.swap_request import SwapRequest

__all__ = [
    "ActivitySession",
    "Assignment",
    "SessionGroup",
    "StaffMember",
    "StaffNotification",
    "StaffPreferredGroup",
    "StaffUnavailableDate",
    "StaffWeeklyAvailability",
    "SwapRequest",
]
