"""
Warden - Authorization Engine
=============================
The operations a principal exposes. Mutations write exactly one edge,
then invalidate the cache for the tenant value that was persisted.

Invalidation runs right after the write and again once the surrounding
transaction commits, so a concurrent reader cannot keep a decision it
cached between the write and the commit.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from warden.cache import AuthorizationCache
from warden.principal import PrincipalIdentity
from warden.resolver import AuthorizationResolver
from warden.resolvers import (
    PermissionValueResolver,
    RoleValueResolver,
    resolve_permission_id,
    resolve_role_id,
)
from warden.tenancy import TenantContext, normalize_tenant

logger = logging.getLogger("warden.engine")


class AuthorizationEngine:
    def __init__(
        self,
        *,
        store,
        cache: AuthorizationCache,
        resolver: AuthorizationResolver,
        tenant_context: TenantContext,
        permission_resolver: PermissionValueResolver,
        role_resolver: RoleValueResolver,
    ):
        self.store = store
        self.cache = cache
        self.resolver = resolver
        self.tenant_context = tenant_context
        self.permission_resolver = permission_resolver
        self.role_resolver = role_resolver

    def for_principal(self, principal: PrincipalIdentity) -> "PrincipalCapabilities":
        return PrincipalCapabilities(self, principal)

    def resolve_tenant(self, tenant: Any) -> str | None:
        """Explicit tenant argument, else the ambient tenant context."""
        if tenant is None:
            tenant = self.tenant_context.get_tenant_id()
        return normalize_tenant(tenant)

    # ── Checks ───────────────────────────────────────────────

    def has_permission(self, principal: PrincipalIdentity, permission: Any, tenant: Any = None) -> bool:
        return self.resolver.has_permission(principal, permission, self.resolve_tenant(tenant))

    def has_role(self, principal: PrincipalIdentity, role: Any, tenant: Any = None) -> bool:
        role_id = self._role_id(role)
        return self.store.has_role(principal, role_id, self.resolve_tenant(tenant))

    def is_denied(self, principal: PrincipalIdentity, permission: Any, tenant: Any = None) -> bool:
        """True when an explicit deny edge matches, under the tenant or globally."""
        permission_id = resolve_permission_id(
            permission,
            store=self.store,
            value_resolver=self.permission_resolver,
        )
        if permission_id is None:
            return False
        tenant = self.resolve_tenant(tenant)
        if tenant is not None and self.store.has_deny(principal, permission_id, tenant):
            return True
        return self.store.has_deny(principal, permission_id, None)

    # ── Mutations ────────────────────────────────────────────

    def allow(self, principal: PrincipalIdentity, permission: Any, tenant: Any = None) -> None:
        self._write_permission_edge(self.store.add_allow, "allow", principal, permission, tenant)

    def deny(self, principal: PrincipalIdentity, permission: Any, tenant: Any = None) -> None:
        self._write_permission_edge(self.store.add_deny, "deny", principal, permission, tenant)

    def add_role(self, principal: PrincipalIdentity, role: Any, tenant: Any = None) -> None:
        role_id = self._role_id(role)
        tenant = self.resolve_tenant(tenant)
        self.store.add_role(principal, role_id, tenant)
        logger.info(f"Role {role_id} assigned to {principal} (tenant={tenant}).")
        self._invalidate(principal, tenant)

    def remove_role(self, principal: PrincipalIdentity, role: Any, tenant: Any = None) -> None:
        role_id = self._role_id(role)
        tenant = self.resolve_tenant(tenant)
        removed = self.store.remove_role(principal, role_id, tenant)
        logger.info(
            f"Role {role_id} removed from {principal} (tenant={tenant}, rows={removed})."
        )
        self._invalidate(principal, tenant)

    def _write_permission_edge(
        self,
        write: Callable[[PrincipalIdentity, int, Any], None],
        verb: str,
        principal: PrincipalIdentity,
        permission: Any,
        tenant: Any,
    ) -> None:
        permission_id = resolve_permission_id(
            permission,
            store=self.store,
            value_resolver=self.permission_resolver,
        )
        if permission_id is None:
            logger.info(f"Ignoring {verb} of unknown permission '{permission}' for {principal}.")
            return

        tenant = self.resolve_tenant(tenant)
        write(principal, permission_id, tenant)
        logger.info(f"Permission {permission_id} {verb} for {principal} (tenant={tenant}).")

        # Global allow/deny edges take part in every tenant's decision.
        self._invalidate(principal, tenant, principal_wide=tenant is None)

    def _invalidate(self, principal, tenant, principal_wide: bool = False) -> None:
        def flush() -> None:
            if principal_wide:
                self.cache.flush_principal(principal)
            else:
                self.cache.flush_for(principal, tenant)

        flush()
        self.store.on_commit(flush)

    def _role_id(self, role: Any) -> int:
        return resolve_role_id(role, store=self.store, value_resolver=self.role_resolver)


class PrincipalCapabilities:
    """``PermissionHolder`` for one principal, backed by a shared engine."""

    def __init__(self, engine: AuthorizationEngine, principal: PrincipalIdentity):
        self._engine = engine
        self._principal = principal

    def principal_identity(self) -> PrincipalIdentity:
        return self._principal

    def allow(self, permission, tenant=None) -> "PrincipalCapabilities":
        self._engine.allow(self._principal, permission, tenant)
        return self

    def deny(self, permission, tenant=None) -> "PrincipalCapabilities":
        self._engine.deny(self._principal, permission, tenant)
        return self

    def add_role(self, role, tenant=None) -> "PrincipalCapabilities":
        self._engine.add_role(self._principal, role, tenant)
        return self

    def remove_role(self, role, tenant=None) -> "PrincipalCapabilities":
        self._engine.remove_role(self._principal, role, tenant)
        return self

    def has_role(self, role, tenant=None) -> bool:
        return self._engine.has_role(self._principal, role, tenant)

    def has_permission(self, permission, tenant=None) -> bool:
        return self._engine.has_permission(self._principal, permission, tenant)

    def __repr__(self) -> str:
        return f"PrincipalCapabilities({self._principal})"
