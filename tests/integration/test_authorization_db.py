from __future__ import annotations

import pytest

from warden.errors import RoleNotFoundError
from warden.models import Permission, PermissionDenial, PermissionGrant, Role, RoleAssignment
from warden.principal import PrincipalIdentity
from tests.workbench.catalogs import Flags, PostPermissions, Roles
from tests.workbench.models import Member, ServiceAccount

pytestmark = pytest.mark.django_db(transaction=True)


def _member(name: str = "John Doe") -> Member:
    return Member.objects.create(name=name)


def _editor() -> tuple[Role, Permission]:
    role = Role.objects.create(name="editor")
    permission = Permission.objects.create(name="posts.edit")
    role.permissions.add(permission)
    return role, permission


def test_role_grants_permission() -> None:
    member = _member()
    role, _ = _editor()

    member.add_role(role)

    assert member.has_permission("posts.edit") is True


def test_global_deny_overrides_role_grant() -> None:
    member = _member()
    _editor()
    member.add_role("editor")

    member.deny("posts.edit")

    assert member.has_permission("posts.edit") is False


def test_tenant_scoped_role() -> None:
    member = _member()
    role, _ = _editor()

    member.add_role(role, 1)

    assert member.has_permission("posts.edit", 1) is True
    assert member.has_permission("posts.edit", 2) is False
    assert member.has_permission("posts.edit", None) is False


def test_tenant_deny_overrides_global_allow() -> None:
    member = _member()
    permission = Permission.objects.create(name="posts.edit")

    member.allow(permission)
    member.deny(permission, 1)

    assert member.has_permission(permission, 1) is False
    assert member.has_permission(permission, None) is True


def test_global_deny_overrides_tenant_allow() -> None:
    member = _member()
    Permission.objects.create(name="posts.edit")

    member.allow("posts.edit", 1)
    member.deny("posts.edit")

    assert member.has_permission("posts.edit", 1) is False


def test_multiple_roles_with_overlapping_permissions() -> None:
    member = _member()
    Role.objects.create(name="editor")
    publisher = Role.objects.create(name="publisher")
    publisher.permissions.add(Permission.objects.create(name="posts.publish"))

    member.add_role("editor").add_role("publisher")

    assert member.has_permission("posts.publish") is True


def test_every_reference_shape_reaches_the_same_permission() -> None:
    member = _member()
    permission = Permission.objects.create(name="posts.create")
    Permission.objects.create(name="ARCHIVE")

    member.allow(PostPermissions.CREATE).allow(Flags.ARCHIVE)

    assert member.has_permission("posts.create") is True
    assert member.has_permission(permission) is True
    assert member.has_permission(permission.pk) is True
    assert member.has_permission(PostPermissions.CREATE) is True
    assert member.has_permission("ARCHIVE") is True


def test_edges_are_persisted_with_principal_and_tenant() -> None:
    member = _member()
    role, permission = _editor()

    member.allow(permission, 3).deny(permission).add_role(role, "3")

    grant = PermissionGrant.objects.get()
    assert (grant.principal_type, grant.principal_id, grant.tenant_id) == (
        "workbench.member",
        str(member.pk),
        "3",
    )
    assert PermissionDenial.objects.get().is_global is True
    assert RoleAssignment.objects.get().tenant_id == "3"


def test_repeated_writes_are_idempotent() -> None:
    member = _member()
    role, permission = _editor()

    member.allow(permission).allow(permission)
    member.add_role(role, 1).add_role(role, 1)

    assert PermissionGrant.objects.count() == 1
    assert RoleAssignment.objects.count() == 1


def test_unknown_permission_is_denied_and_not_written() -> None:
    member = _member()

    member.allow("posts.missing").deny("posts.missing")

    assert member.has_permission("posts.missing") is False
    assert PermissionGrant.objects.count() == 0
    assert PermissionDenial.objects.count() == 0


def test_role_lifecycle() -> None:
    member = _member()
    role, _ = _editor()
    Role.objects.create(name="ADMIN")

    member.add_role(Roles.ADMIN).add_role(role.pk, 1)

    assert member.has_role("ADMIN") is True
    assert member.has_role(role, 1) is True
    assert member.has_role(role) is False

    member.remove_role(role, 1)

    assert member.has_role(role, 1) is False
    assert member.has_permission("posts.edit", 1) is False


def test_unknown_role_raises() -> None:
    member = _member()

    with pytest.raises(RoleNotFoundError):
        member.add_role("ghost")
    with pytest.raises(RoleNotFoundError):
        member.has_role(12345)


def test_principal_kinds_are_isolated() -> None:
    account = ServiceAccount.objects.create(name="ci")
    member = Member.objects.create(id=account.pk, name="same id")
    Permission.objects.create(name="posts.edit")

    account.allow("posts.edit")

    assert account.principal_identity() == PrincipalIdentity("service", account.pk)
    assert account.has_permission("posts.edit") is True
    assert member.has_permission("posts.edit") is False


def test_deleting_a_permission_removes_its_edges() -> None:
    member = _member()
    role, permission = _editor()
    member.allow(permission).add_role(role)

    permission.delete()

    assert PermissionGrant.objects.count() == 0
    assert role.permissions.count() == 0


def test_unsaved_principal_cannot_hold_grants() -> None:
    with pytest.raises(ValueError):
        Member(name="draft").principal_identity()
