"""
Warden - DB-backed Grant Store
==============================
Resolves permissions, roles, and principal edges from the relational
tables in warden.models.
"""

from __future__ import annotations

from typing import Callable

from django.db import transaction

from warden.principal import PrincipalIdentity
from warden.tenancy import normalize_tenant


def _edge_filter(principal: PrincipalIdentity, tenant) -> dict:
    # tenant_id=None filters IS NULL, so global edges are their own bucket.
    return {
        "principal_type": principal.kind,
        "principal_id": principal.key,
        "tenant_id": normalize_tenant(tenant),
    }


class DbGrantStore:
    def permission_id_for_name(self, name: str) -> int | None:
        from warden.models import Permission

        return (
            Permission.objects.filter(name=name)
            .values_list("id", flat=True)
            .first()
        )

    def permission_exists(self, permission_id: int) -> bool:
        from warden.models import Permission

        return Permission.objects.filter(id=permission_id).exists()

    def permission_name_for_id(self, permission_id: int) -> str | None:
        from warden.models import Permission

        return (
            Permission.objects.filter(id=permission_id)
            .values_list("name", flat=True)
            .first()
        )

    def role_id_for_name(self, name: str) -> int | None:
        from warden.models import Role

        return Role.objects.filter(name=name).values_list("id", flat=True).first()

    def role_exists(self, role_id: int) -> bool:
        from warden.models import Role

        return Role.objects.filter(id=role_id).exists()

    def has_allow(self, principal, permission_id, tenant) -> bool:
        from warden.models import PermissionGrant

        return PermissionGrant.objects.filter(
            permission_id=permission_id,
            **_edge_filter(principal, tenant),
        ).exists()

    def has_deny(self, principal, permission_id, tenant) -> bool:
        from warden.models import PermissionDenial

        return PermissionDenial.objects.filter(
            permission_id=permission_id,
            **_edge_filter(principal, tenant),
        ).exists()

    def has_role(self, principal, role_id, tenant) -> bool:
        from warden.models import RoleAssignment

        return RoleAssignment.objects.filter(
            role_id=role_id,
            **_edge_filter(principal, tenant),
        ).exists()

    def has_role_permission(self, principal, permission_id, tenant) -> bool:
        from warden.models import RoleAssignment

        return RoleAssignment.objects.filter(
            role__role_permissions__permission_id=permission_id,
            **_edge_filter(principal, tenant),
        ).exists()

    def add_allow(self, principal, permission_id, tenant) -> None:
        from warden.models import PermissionGrant

        PermissionGrant.objects.get_or_create(
            permission_id=permission_id,
            **_edge_filter(principal, tenant),
        )

    def add_deny(self, principal, permission_id, tenant) -> None:
        from warden.models import PermissionDenial

        PermissionDenial.objects.get_or_create(
            permission_id=permission_id,
            **_edge_filter(principal, tenant),
        )

    def add_role(self, principal, role_id, tenant) -> None:
        from warden.models import RoleAssignment

        RoleAssignment.objects.get_or_create(
            role_id=role_id,
            **_edge_filter(principal, tenant),
        )

    def remove_role(self, principal, role_id, tenant) -> int:
        from warden.models import RoleAssignment

        deleted, _ = RoleAssignment.objects.filter(
            role_id=role_id,
            **_edge_filter(principal, tenant),
        ).delete()
        return deleted

    def on_commit(self, callback: Callable[[], None]) -> None:
        transaction.on_commit(callback)
