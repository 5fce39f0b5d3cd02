"""
Warden - Grant Store Protocol and In-Memory Store
=================================================
Every edge lookup is an exact-tenant existence check. Combining global
and tenant-scoped edges is the resolver's job, not the store's.
"""

from __future__ import annotations

from typing import Callable, Iterable, Mapping, Optional, Protocol

from warden.principal import PrincipalIdentity
from warden.tenancy import normalize_tenant


class GrantStore(Protocol):
    def permission_id_for_name(self, name: str) -> int | None:
        ...

    def permission_exists(self, permission_id: int) -> bool:
        ...

    def permission_name_for_id(self, permission_id: int) -> str | None:
        ...

    def role_id_for_name(self, name: str) -> int | None:
        ...

    def role_exists(self, role_id: int) -> bool:
        ...

    def has_allow(self, principal: PrincipalIdentity, permission_id: int, tenant) -> bool:
        ...

    def has_deny(self, principal: PrincipalIdentity, permission_id: int, tenant) -> bool:
        ...

    def has_role(self, principal: PrincipalIdentity, role_id: int, tenant) -> bool:
        ...

    def has_role_permission(
        self, principal: PrincipalIdentity, permission_id: int, tenant
    ) -> bool:
        ...

    def add_allow(self, principal: PrincipalIdentity, permission_id: int, tenant) -> None:
        ...

    def add_deny(self, principal: PrincipalIdentity, permission_id: int, tenant) -> None:
        ...

    def add_role(self, principal: PrincipalIdentity, role_id: int, tenant) -> None:
        ...

    def remove_role(self, principal: PrincipalIdentity, role_id: int, tenant) -> int:
        ...

    def on_commit(self, callback: Callable[[], None]) -> None:
        ...


_Edge = tuple[str, str, int, Optional[str]]


def _edge(principal: PrincipalIdentity, target_id: int, tenant) -> _Edge:
    return (principal.kind, principal.key, target_id, normalize_tenant(tenant))


class InMemoryGrantStore:
    """
    Deterministic in-memory store used by tests/bootstrap.

    permissions: name -> id
    roles: name -> id
    role_permissions: role id -> permission ids
    """

    def __init__(
        self,
        permissions: Mapping[str, int] | None = None,
        roles: Mapping[str, int] | None = None,
        role_permissions: Mapping[int, Iterable[int]] | None = None,
    ):
        self._permissions: dict[str, int] = {}
        self._roles: dict[str, int] = {}
        self._role_permissions: dict[int, frozenset[int]] = {}
        self._allows: set[_Edge] = set()
        self._denies: set[_Edge] = set()
        self._assignments: set[_Edge] = set()

        for name, permission_id in (permissions or {}).items():
            if permission_id in self._permissions.values():
                raise ValueError(f"Duplicate permission id '{permission_id}'.")
            self._permissions[name] = permission_id

        for name, role_id in (roles or {}).items():
            if role_id in self._roles.values():
                raise ValueError(f"Duplicate role id '{role_id}'.")
            self._roles[name] = role_id

        for role_id, permission_ids in (role_permissions or {}).items():
            if role_id not in self._roles.values():
                raise ValueError(f"Unknown role id '{role_id}'.")
            ids = frozenset(permission_ids)
            unknown = ids - set(self._permissions.values())
            if unknown:
                raise ValueError(f"Unknown permission ids {sorted(unknown)}.")
            self._role_permissions[role_id] = ids

    def permission_id_for_name(self, name: str) -> int | None:
        return self._permissions.get(name)

    def permission_exists(self, permission_id: int) -> bool:
        return permission_id in self._permissions.values()

    def permission_name_for_id(self, permission_id: int) -> str | None:
        for name, candidate in self._permissions.items():
            if candidate == permission_id:
                return name
        return None

    def role_id_for_name(self, name: str) -> int | None:
        return self._roles.get(name)

    def role_exists(self, role_id: int) -> bool:
        return role_id in self._roles.values()

    def has_allow(self, principal, permission_id, tenant) -> bool:
        return _edge(principal, permission_id, tenant) in self._allows

    def has_deny(self, principal, permission_id, tenant) -> bool:
        return _edge(principal, permission_id, tenant) in self._denies

    def has_role(self, principal, role_id, tenant) -> bool:
        return _edge(principal, role_id, tenant) in self._assignments

    def has_role_permission(self, principal, permission_id, tenant) -> bool:
        normalized = normalize_tenant(tenant)
        for kind, key, role_id, edge_tenant in self._assignments:
            if (kind, key, edge_tenant) != (principal.kind, principal.key, normalized):
                continue
            if permission_id in self._role_permissions.get(role_id, frozenset()):
                return True
        return False

    def add_allow(self, principal, permission_id, tenant) -> None:
        self._allows.add(_edge(principal, permission_id, tenant))

    def add_deny(self, principal, permission_id, tenant) -> None:
        self._denies.add(_edge(principal, permission_id, tenant))

    def add_role(self, principal, role_id, tenant) -> None:
        self._assignments.add(_edge(principal, role_id, tenant))

    def remove_role(self, principal, role_id, tenant) -> int:
        edge = _edge(principal, role_id, tenant)
        if edge not in self._assignments:
            return 0
        self._assignments.discard(edge)
        return 1

    def on_commit(self, callback: Callable[[], None]) -> None:
        callback()
