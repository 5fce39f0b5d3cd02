from __future__ import annotations

import pytest
from django.contrib.auth.models import _user_has_perm
from django.core.exceptions import PermissionDenied

from warden.auth_backend import WardenPermissionBackend
from warden.container import get_container
from warden.models import Permission, Role
from warden.policy import resolve
from tests.workbench import services
from tests.workbench.models import Member, Post

pytestmark = pytest.mark.django_db(transaction=True)


@pytest.fixture
def member() -> Member:
    return Member.objects.create(name="John Doe")


@pytest.fixture
def switchable_tenant(settings):
    settings.WARDEN = {
        "SERVICES": {"TENANT_CONTEXT": "tests.workbench.services.SwitchableTenantContext"},
        "POLICY": {"MODELS": ["workbench.post"]},
    }
    services.CURRENT_TENANT["id"] = None
    yield services.CURRENT_TENANT
    services.CURRENT_TENANT["id"] = None


class TestResolve:
    def test_ability_without_subject(self):
        assert resolve("export") == "export"

    def test_subject_instance_class_and_label(self):
        assert resolve("update", Post()) == "posts.update"
        assert resolve("update", Post) == "posts.update"
        assert resolve("update", "workbench.Post") == "posts.update"

    def test_unknown_subject_falls_back_to_ability(self):
        assert resolve("update", "nowhere.Thing") == "update"
        assert resolve("update", object()) == "update"


class TestPolicy:
    def test_policy_with_direct_allow(self, member):
        Permission.objects.create(name="posts.update")
        policy = get_container().policy

        assert policy.check(member, "update", Post()) is False
        member.allow("posts.update")
        assert policy.check(member, "update", Post()) is True

    def test_policy_with_role(self, member):
        role = Role.objects.create(name="editor")
        role.permissions.add(Permission.objects.create(name="posts.delete"))
        policy = get_container().policy

        assert policy.check(member, "delete", Post()) is False
        member.add_role(role)
        assert policy.check(member, "delete", Post()) is True

    def test_non_holder_is_refused(self):
        assert get_container().policy.check(object(), "update", Post()) is False

    def test_policy_is_tenant_aware(self, member, switchable_tenant):
        Permission.objects.create(name="posts.view")
        member.allow("posts.view", 1)
        policy = get_container().policy

        assert policy.check(member, "view", Post()) is False
        switchable_tenant["id"] = 1
        assert policy.check(member, "view", Post()) is True
        switchable_tenant["id"] = 2
        assert policy.check(member, "view", Post()) is False


class TestBackend:
    def test_delegates_plain_abilities(self, member):
        Permission.objects.create(name="posts.update")
        backend = WardenPermissionBackend()

        assert backend.has_perm(member, "posts.update") is False
        member.allow("posts.update")
        assert backend.has_perm(member, "posts.update") is True

    def test_respects_explicit_deny(self, member):
        role = Role.objects.create(name="editor")
        role.permissions.add(Permission.objects.create(name="posts.update"))
        member.add_role(role).deny("posts.update")

        with pytest.raises(PermissionDenied):
            WardenPermissionBackend().has_perm(member, "posts.update")

    def test_missing_grant_without_deny_defers(self, member):
        Permission.objects.create(name="posts.update")

        assert WardenPermissionBackend().has_perm(member, "posts.update") is False
        assert WardenPermissionBackend().has_perm(member, "auth.change_user") is False

    def test_routes_policy_models_through_policy(self, member):
        Permission.objects.create(name="posts.update")
        member.allow("posts.update")

        assert WardenPermissionBackend().has_perm(member, "update", Post()) is True

    def test_tenant_aware(self, member, switchable_tenant):
        Permission.objects.create(name="posts.update")
        member.allow("posts.update", 1)
        backend = WardenPermissionBackend()

        assert backend.has_perm(member, "posts.update") is False
        switchable_tenant["id"] = 1
        assert backend.has_perm(member, "posts.update") is True
        member.deny("posts.update", 1)
        with pytest.raises(PermissionDenied):
            backend.has_perm(member, "posts.update")
        switchable_tenant["id"] = 2
        assert backend.has_perm(member, "posts.update") is False

    def test_policy_model_deny_raises(self, member):
        Permission.objects.create(name="posts.update")
        member.deny("posts.update")

        with pytest.raises(PermissionDenied):
            WardenPermissionBackend().has_perm(member, "update", Post())

    def test_ignores_non_holders(self):
        from django.contrib.auth.models import AnonymousUser

        assert WardenPermissionBackend().has_perm(AnonymousUser(), "posts.update") is False

    def test_disabled_gate(self, member, settings):
        settings.WARDEN = {"GATE": {"ENABLED": False}}
        Permission.objects.create(name="posts.update")
        member.allow("posts.update")

        assert WardenPermissionBackend().has_perm(member, "posts.update") is False


class TestBackendChain:
    @pytest.fixture(autouse=True)
    def _granting_fallback(self, settings):
        settings.AUTHENTICATION_BACKENDS = [
            "warden.auth_backend.WardenPermissionBackend",
            "tests.workbench.services.GrantingBackend",
        ]

    def test_explicit_deny_beats_later_backends(self, member):
        Permission.objects.create(name="posts.update")
        member.deny("posts.update")

        assert member.has_permission("posts.update") is False
        assert _user_has_perm(member, "posts.update", None) is False

    def test_role_grant_with_deny_is_refused(self, member):
        role = Role.objects.create(name="editor")
        role.permissions.add(Permission.objects.create(name="posts.update"))
        member.add_role(role).deny("posts.update")

        assert _user_has_perm(member, "posts.update", None) is False

    def test_undecided_permissions_fall_through(self, member):
        Permission.objects.create(name="posts.update")

        assert _user_has_perm(member, "posts.update", None) is True
        assert _user_has_perm(member, "auth.change_user", None) is True

    def test_policy_model_deny_beats_later_backends(self, member):
        Permission.objects.create(name="posts.update")
        member.deny("posts.update")

        assert _user_has_perm(member, "update", Post()) is False
