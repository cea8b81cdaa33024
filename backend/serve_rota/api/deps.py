"""
Request dependencies: acting principal and usage-cap gate.

Identity comes from the auth collaborator in front of this service and is trusted as-is:
  X-User-Id       acting staff user id (required)
  X-Tenant-Id     organization/site the request is scoped to (required)
  X-Capabilities  comma-separated capabilities, e.g. "schedule.manage"
"""
from fastapi import Header

from serve_rota.core.errors import Unauthenticated
from serve_rota.core.principal import Principal
from serve_rota.services.usage_cap import UsageCapGate, get_usage_cap_gate


def get_principal(
    x_user_id: str | None = Header(None, alias="X-User-Id"),
    x_tenant_id: str | None = Header(None, alias="X-Tenant-Id"),
    x_capabilities: str | None = Header(None, alias="X-Capabilities"),
) -> Principal:
    user_id = (x_user_id or "").strip()
    tenant_id = (x_tenant_id or "").strip()
    if not user_id or not tenant_id:
        raise Unauthenticated("X-User-Id and X-Tenant-Id are required")
    caps = frozenset(c.strip() for c in (x_capabilities or "").split(",") if c.strip())
    return Principal(user_id=user_id, tenant_id=tenant_id, capabilities=caps)


def get_gate() -> UsageCapGate:
    return get_usage_cap_gate()
