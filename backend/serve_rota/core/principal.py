"""Acting principal: who is calling and what they may do. Passed explicitly into every service call."""
from dataclasses import dataclass, field

from serve_rota.core.constants import CAP_MANAGE_SCHEDULE
from serve_rota.core.errors import Forbidden


@dataclass(frozen=True)
class Principal:
    user_id: str
    tenant_id: str
    capabilities: frozenset[str] = field(default_factory=frozenset)

    def can(self, capability: str) -> bool:
        return capability in self.capabilities

    @property
    def can_manage_schedule(self) -> bool:
        return self.can(CAP_MANAGE_SCHEDULE)


def require(principal: Principal, capability: str, action: str) -> None:
    if not principal.can(capability):
        raise Forbidden(f"{action} requires the {capability} capability")
