"""
Centralized error handling for scheduling failures.
Domain errors are raised by services; one rule table maps them to HTTP so routes stay thin.
"""
from __future__ import annotations


class DomainError(Exception):
    """Base for all errors a service surfaces to its caller."""

    code = "error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidArgument(DomainError):
    code = "invalid_argument"


class Unauthenticated(DomainError):
    code = "unauthenticated"


class NotFound(DomainError):
    code = "not_found"


class Forbidden(DomainError):
    code = "forbidden"


class Conflict(DomainError):
    code = "conflict"


class InvalidTransition(DomainError):
    code = "invalid_transition"


class QuotaExceeded(DomainError):
    code = "quota_exceeded"


# ---------------------------------------------------------------------------
# HTTP status codes per error kind. First match wins (subclasses before bases).
# ---------------------------------------------------------------------------

STATUS_INTERNAL_ERROR = 500

DOMAIN_ERROR_RULES: list[tuple[type[DomainError], int]] = [
    (InvalidArgument, 400),
    (Unauthenticated, 401),
    (QuotaExceeded, 402),
    (Forbidden, 403),
    (NotFound, 404),
    (Conflict, 409),
    (InvalidTransition, 409),
]


def status_for(exc: DomainError) -> int:
    for kind, status_code in DOMAIN_ERROR_RULES:
        if isinstance(exc, kind):
            return status_code
    return STATUS_INTERNAL_ERROR

