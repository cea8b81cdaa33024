"""
Centralized constants for scheduling, assignments and swaps.

Change status names or vocabularies here instead of scattering literals across
services, models and migrations (the CHECK constraints in 001 use these values).
"""

# Weekday vocabulary at the HTTP boundary; index matches date.weekday() (Mon=0)
WEEKDAYS = ("MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN")
WEEKDAY_INDEX = {name: i for i, name in enumerate(WEEKDAYS)}

# Assignment status: pending -> confirmed | declined (both terminal)
ASSIGNMENT_PENDING = "pending"
ASSIGNMENT_CONFIRMED = "confirmed"
ASSIGNMENT_DECLINED = "declined"
ASSIGNMENT_STATUSES = (ASSIGNMENT_PENDING, ASSIGNMENT_CONFIRMED, ASSIGNMENT_DECLINED)
ASSIGNMENT_TRANSITIONS = {
    ASSIGNMENT_PENDING: frozenset({ASSIGNMENT_CONFIRMED, ASSIGNMENT_DECLINED}),
    ASSIGNMENT_CONFIRMED: frozenset(),
    ASSIGNMENT_DECLINED: frozenset(),
}

# Swap status: REQUESTED is the only non-terminal state
SWAP_REQUESTED = "REQUESTED"
SWAP_ACCEPTED = "ACCEPTED"
SWAP_DECLINED = "DECLINED"
SWAP_STATUSES = (SWAP_REQUESTED, SWAP_ACCEPTED, SWAP_DECLINED)

# Eligibility reasons, highest priority first
REASON_BLOCKED_ON_DATE = "blocked_on_date"
REASON_UNAVAILABLE_AT_TIME = "unavailable_at_time"
REASON_DOES_NOT_PREFER_GROUP = "does_not_prefer_group"
REASON_PRIORITY = {
    REASON_BLOCKED_ON_DATE: 1,
    REASON_UNAVAILABLE_AT_TIME: 2,
    REASON_DOES_NOT_PREFER_GROUP: 3,
}

# Capabilities granted to an acting principal by the auth collaborator
CAP_MANAGE_SCHEDULE = "schedule.manage"

# Staff notification types (facts for the delivery collaborator)
NOTIFY_ASSIGNMENT_OFFERED = "assignment_offered"
NOTIFY_ASSIGNMENT_CONFIRMED = "assignment_confirmed"
NOTIFY_ASSIGNMENT_DECLINED = "assignment_declined"
NOTIFY_ASSIGNMENT_REMOVED = "assignment_removed"
NOTIFY_ASSIGNMENT_REASSIGNED = "assignment_reassigned"
NOTIFY_SWAP_REQUESTED = "swap_requested"
NOTIFY_SWAP_ACCEPTED = "swap_accepted"
NOTIFY_SWAP_DECLINED = "swap_declined"

# Scalability: hard caps so a single request stays bounded
BULK_MAX_DAYS = 366          # widest date range one bulk expansion may cover
ROTA_MAX_DAYS = 62           # widest rota window
NOTIFICATIONS_LIST_LIMIT = 200
