"""
Usage-cap gate (billing collaborator). Asked before assignment writes and bulk
expansion commit; this core never computes the cap itself.

The HTTP collaborator is configured with USAGE_CAP_URL. It is called as
GET {USAGE_CAP_URL}?tenant_id=...&action=... and answers {"blocked": bool, "reason": str?}.
If USAGE_CAP_URL is not set the gate is open.
"""
import logging
from typing import Protocol

import httpx

from serve_rota.config import settings
from serve_rota.core.errors import QuotaExceeded

logger = logging.getLogger(__name__)

MSG_QUOTA_EXCEEDED = "Organization is over its usage allowance; new assignments cannot be published. Upgrade the plan to continue."


class UsageCapGate(Protocol):
    def is_blocked(self, tenant_id: str, action: str) -> tuple[bool, str | None]:
        """Return (blocked, reason) for a write the tenant is about to make."""
        ...


class OpenGate:
    """No billing collaborator configured: never blocks."""

    def is_blocked(self, tenant_id: str, action: str) -> tuple[bool, str | None]:
        return False, None


class HttpUsageCapGate:
    def __init__(self, url: str, timeout: float = 5.0, fail_open: bool = True, transport: httpx.BaseTransport | None = None):
        self.url = url
        self.timeout = timeout
        self.fail_open = fail_open
        self.transport = transport

    def is_blocked(self, tenant_id: str, action: str) -> tuple[bool, str | None]:
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.get(self.url, params={"tenant_id": tenant_id, "action": action})
            resp.raise_for_status()
            body = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            if self.fail_open:
                logger.warning("Usage cap check failed for tenant=%s action=%s (allowing): %s", tenant_id, action, e)
                return False, None
            logger.warning("Usage cap check failed for tenant=%s action=%s (blocking): %s", tenant_id, action, e)
            return True, "Usage cap service unavailable"
        blocked = bool(body.get("blocked")) if isinstance(body, dict) else False
        reason = body.get("reason") if isinstance(body, dict) else None
        return blocked, reason


def get_usage_cap_gate() -> UsageCapGate:
    """Gate from settings. FastAPI dependency; override in tests."""
    if settings.usage_cap_url:
        return HttpUsageCapGate(
            settings.usage_cap_url,
            timeout=settings.usage_cap_timeout_seconds,
            fail_open=settings.usage_cap_fail_open,
        )
    return OpenGate()


def assert_within_cap(gate: UsageCapGate | None, tenant_id: str, action: str) -> None:
    """Raise QuotaExceeded when the collaborator refuses the write."""
    if gate is None:
        return
    blocked, reason = gate.is_blocked(tenant_id, action)
    if blocked:
        logger.info("Usage cap blocked tenant=%s action=%s reason=%s", tenant_id, action, reason)
        raise QuotaExceeded(reason or MSG_QUOTA_EXCEEDED)
