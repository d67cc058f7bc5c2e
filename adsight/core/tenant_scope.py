"""AdSight — Tenant Scope Policy.

Single place where role-based tenant visibility is decided. Every read and
write path resolves its client_id constraint through one of the policies
below instead of re-checking roles inline.
"""

from enum import Enum
from typing import Any, FrozenSet, Iterable, Optional

from pydantic import BaseModel

from adsight.core.errors import AuthorizationDenied, ValidationError
from adsight.models.analysis_models import MetricFilter


class Role(str, Enum):
    """Closed set of caller roles issued by the auth collaborator."""

    VIEWER = "viewer"
    MANAGER = "manager"
    ADMIN = "admin"
    SUPERADMIN = "superadmin"


class TenantPrincipal(BaseModel):
    """Authenticated caller: identity, home tenant and role."""

    id: int
    client_id: Optional[int] = None
    role: Role

    model_config = {"frozen": True}

    @classmethod
    def from_claims(
        cls, user_id: Any, client_id: Any, role: Any
    ) -> "TenantPrincipal":
        """Build a principal from raw auth claims, rejecting unknown roles."""
        try:
            parsed_role = Role(str(role).strip().lower())
        except ValueError:
            raise ValidationError(f"Unrecognized role: {role!r}")
        try:
            uid = int(user_id)
            cid = int(client_id) if client_id not in (None, "") else None
        except (TypeError, ValueError):
            raise ValidationError("Principal id and client_id must be integers")
        return cls(id=uid, client_id=cid, role=parsed_role)


class TenantScope:
    """Tenant visibility policy.

    Principals whose role is in ``cross_tenant_roles`` may target any tenant
    (or all of them); everyone else is pinned to their own client_id.
    """

    def __init__(self, name: str, cross_tenant_roles: Iterable[Role]):
        self.name = name
        self.cross_tenant_roles: FrozenSet[Role] = frozenset(cross_tenant_roles)

    def is_cross_tenant(self, principal: TenantPrincipal) -> bool:
        return principal.role in self.cross_tenant_roles

    def client_constraint(
        self, principal: TenantPrincipal, target_client_id: Optional[int] = None
    ) -> Optional[int]:
        """Resolve the client_id every query must be constrained to.

        Returns None only for privileged principals that did not name a
        target tenant, meaning "all tenants".
        """
        if self.is_cross_tenant(principal):
            return target_client_id

        if principal.client_id is None:
            raise AuthorizationDenied(
                f"{principal.role.value} principal {principal.id} has no tenant"
            )
        if target_client_id is not None and target_client_id != principal.client_id:
            raise AuthorizationDenied(
                f"{principal.role.value} may not access client {target_client_id}"
            )
        return principal.client_id

    def apply(
        self, principal: TenantPrincipal, query: MetricFilter
    ) -> MetricFilter:
        """Return a copy of the filter with the tenant constraint injected."""
        client_id = self.client_constraint(principal, query.client_id)
        return query.model_copy(update={"client_id": client_id})

    def __repr__(self) -> str:
        roles = ",".join(sorted(r.value for r in self.cross_tenant_roles))
        return f"<TenantScope {self.name} cross_tenant={roles}>"


# Analytics reads: managers and admins work across client accounts.
ANALYTICS_SCOPE = TenantScope("analytics", (Role.ADMIN, Role.MANAGER, Role.SUPERADMIN))

# Alert rules: only the platform superadmin sees every tenant's rules.
ALERT_SCOPE = TenantScope("alerts", (Role.SUPERADMIN,))

# Roles allowed to author alert rules.
RULE_AUTHOR_ROLES = frozenset({Role.ADMIN, Role.MANAGER, Role.SUPERADMIN})
