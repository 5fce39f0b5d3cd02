"""
Warden - Principal Identity and Capability Surface
==================================================
A principal is anything that can hold grants. The engine only needs a
stable (kind, id) pair; it never introspects the principal itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@dataclass(frozen=True)
class PrincipalIdentity:
    """Discriminated principal reference used for edge rows and cache keys."""

    kind: str
    id: int | str

    def __post_init__(self):
        if not isinstance(self.kind, str) or not self.kind.strip():
            raise ValueError("kind must be a non-empty string.")
        if self.id is None or isinstance(self.id, bool) or str(self.id) == "":
            raise ValueError("id must be a non-empty int or string.")

    @property
    def key(self) -> str:
        return str(self.id)

    @classmethod
    def for_model(cls, instance) -> "PrincipalIdentity":
        """
        Build the identity of a saved Django model instance.

        ``principal_kind`` on the model overrides the default
        ``app_label.modelname`` tag.
        """
        if instance.pk is None:
            raise ValueError("Principal must be saved before it can hold grants.")
        kind = getattr(instance, "principal_kind", None) or instance._meta.label_lower
        return cls(kind=kind, id=instance.pk)

    def __str__(self) -> str:
        return f"{self.kind}:{self.key}"


@runtime_checkable
class PermissionHolder(Protocol):
    def principal_identity(self) -> PrincipalIdentity:
        ...

    def allow(self, permission: Any, tenant: Any = None) -> "PermissionHolder":
        ...

    def deny(self, permission: Any, tenant: Any = None) -> "PermissionHolder":
        ...

    def add_role(self, role: Any, tenant: Any = None) -> "PermissionHolder":
        ...

    def remove_role(self, role: Any, tenant: Any = None) -> "PermissionHolder":
        ...

    def has_role(self, role: Any, tenant: Any = None) -> bool:
        ...

    def has_permission(self, permission: Any, tenant: Any = None) -> bool:
        ...


class PermissionHolderMixin:
    """
    Gives a Django model the ``PermissionHolder`` surface by delegating
    to the process-wide engine.

        class Member(PermissionHolderMixin, models.Model):
            ...

        member.add_role("editor").deny("posts.delete", tenant=7)
    """

    principal_kind: str | None = None

    def principal_identity(self) -> PrincipalIdentity:
        return PrincipalIdentity.for_model(self)

    def _capabilities(self):
        from warden.container import get_engine

        return get_engine().for_principal(self.principal_identity())

    def allow(self, permission, tenant=None):
        self._capabilities().allow(permission, tenant)
        return self

    def deny(self, permission, tenant=None):
        self._capabilities().deny(permission, tenant)
        return self

    def add_role(self, role, tenant=None):
        self._capabilities().add_role(role, tenant)
        return self

    def remove_role(self, role, tenant=None):
        self._capabilities().remove_role(role, tenant)
        return self

    def has_role(self, role, tenant=None) -> bool:
        return self._capabilities().has_role(role, tenant)

    def has_permission(self, permission, tenant=None) -> bool:
        return self._capabilities().has_permission(permission, tenant)
