"""
Warden - Identity Resolvers
===========================
Turn permission/role references into canonical names, then into ids.

Accepted reference shapes, interchangeably, everywhere in the public API:
- a Permission / Role model instance
- a numeric id (int)
- a string name
- an Enum member
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Protocol, runtime_checkable

from warden.errors import RoleNotFoundError


@runtime_checkable
class PermissionValueResolver(Protocol):
    def resolve(self, permission: Any) -> str:
        ...


@runtime_checkable
class RoleValueResolver(Protocol):
    def resolve(self, role: Any) -> str:
        ...


def resolve_enum_member(member: Enum) -> str:
    """
    Members with a scalar value (StrEnum, IntEnum, TextChoices, or a plain
    Enum whose value is a string) resolve to that value; anything else
    resolves to the member name.
    """
    if isinstance(member, (str, int)) or isinstance(member.value, str):
        return str(member.value)
    return member.name


def _resolve_value(value: Any, model_class) -> str:
    if isinstance(value, model_class):
        return value.name
    if isinstance(value, Enum):
        return resolve_enum_member(value)
    return str(value)


class DefaultPermissionValueResolver:
    def resolve(self, permission: Any) -> str:
        from warden.models import Permission

        return _resolve_value(permission, Permission)


class DefaultRoleValueResolver:
    def resolve(self, role: Any) -> str:
        from warden.models import Role

        return _resolve_value(role, Role)


def is_numeric_reference(value: Any) -> bool:
    """Ints and digit-only strings are ids. Enum members never are."""
    if isinstance(value, (bool, Enum)):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and value.isascii() and value.isdigit()


def resolve_permission_id(
    permission: Any,
    *,
    store,
    value_resolver: PermissionValueResolver,
) -> int | None:
    """Return the permission id, or None when the permission is unknown."""
    from warden.models import Permission

    if isinstance(permission, Permission) and permission.pk is not None:
        return permission.pk
    if is_numeric_reference(permission):
        permission = int(permission)
        return permission if store.permission_exists(permission) else None
    return store.permission_id_for_name(value_resolver.resolve(permission))


def resolve_role_id(
    role: Any,
    *,
    store,
    value_resolver: RoleValueResolver,
) -> int:
    """Return the role id. Roles must be provisioned: unknown roles raise."""
    from warden.models import Role

    if isinstance(role, Role) and role.pk is not None:
        return role.pk
    if is_numeric_reference(role):
        role = int(role)
        if not store.role_exists(role):
            raise RoleNotFoundError(role)
        return role
    name = value_resolver.resolve(role)
    role_id = store.role_id_for_name(name)
    if role_id is None:
        raise RoleNotFoundError(name)
    return role_id


def permission_cache_name(
    permission: Any,
    *,
    store,
    value_resolver: PermissionValueResolver,
) -> str:
    """
    Canonical permission name for cache keys, so an instance, an id and a
    name for the same permission share one entry.
    """
    if is_numeric_reference(permission):
        name = store.permission_name_for_id(int(permission))
        return str(int(permission)) if name is None else name
    return value_resolver.resolve(permission)
