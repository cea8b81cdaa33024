"""
Availability store: staff directory plus availability facts (weekly windows,
date blocks, preferred groups). The eligibility resolver only depends on the
protocol, so tests and other backends can supply their own store.
"""
from serve_rota.services.availability.base import AvailabilityStore
from serve_rota.services.availability.sql_store import SqlAvailabilityStore, window_covers
from serve_rota.services.availability.types import StaffRef

__all__ = [
    "AvailabilityStore",
    "SqlAvailabilityStore",
    "StaffRef",
    "window_covers",
]
