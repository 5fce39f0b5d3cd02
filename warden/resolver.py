"""
Warden - Authorization Resolver
===============================
Precedence: explicit deny > explicit allow > role-derived grant.

- Deny and allow edges match when either the exact-tenant edge or the
  global edge exists. Neither scope overrides the other within a polarity.
- Role assignments must match the tenant argument exactly. A global
  role does not grant under a tenant, and a tenant role does not grant
  globally.
- Unknown permissions are denied. That decision is cached like any
  other deny and is invalidated the same way.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

from warden.cache import AuthorizationCache
from warden.principal import PrincipalIdentity
from warden.resolvers import PermissionValueResolver, resolve_permission_id
from warden.tenancy import normalize_tenant

logger = logging.getLogger("warden.resolver")


@runtime_checkable
class AuthorizationResolver(Protocol):
    def has_permission(
        self,
        principal: PrincipalIdentity,
        permission: Any,
        tenant: Any = None,
    ) -> bool:
        ...


class DefaultAuthorizationResolver:
    def __init__(
        self,
        *,
        store,
        cache: AuthorizationCache,
        permission_resolver: PermissionValueResolver,
    ):
        self._store = store
        self._cache = cache
        self._permission_resolver = permission_resolver

    def has_permission(
        self,
        principal: PrincipalIdentity,
        permission: Any,
        tenant: Any = None,
    ) -> bool:
        if self._cache.is_enabled():
            cached = self._cache.get(principal, permission, tenant)
            if cached is not None:
                return cached

        result = self._evaluate(principal, permission, tenant)

        if self._cache.is_enabled():
            self._cache.put(principal, permission, tenant, result)

        return result

    def _evaluate(self, principal: PrincipalIdentity, permission: Any, tenant: Any) -> bool:
        permission_id = resolve_permission_id(
            permission,
            store=self._store,
            value_resolver=self._permission_resolver,
        )
        if permission_id is None:
            logger.debug(f"Unknown permission '{permission}' for {principal}: denied.")
            return False

        if self._either_scope(self._store.has_deny, principal, permission_id, tenant):
            logger.debug(f"{principal} explicitly denied permission {permission_id}.")
            return False

        if self._either_scope(self._store.has_allow, principal, permission_id, tenant):
            logger.debug(f"{principal} explicitly allowed permission {permission_id}.")
            return True

        granted = self._store.has_role_permission(principal, permission_id, tenant)
        logger.debug(
            f"{principal} {'granted' if granted else 'lacks'} permission "
            f"{permission_id} via role (tenant={tenant})."
        )
        return granted

    @staticmethod
    def _either_scope(check, principal, permission_id, tenant) -> bool:
        if normalize_tenant(tenant) is not None and check(principal, permission_id, tenant):
            return True
        return check(principal, permission_id, None)
