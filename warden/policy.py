"""
Warden - Default Policy
=======================
Maps an ability on a resource to a permission name and asks the
authorization resolver.

    resolve("update", post)  -> "posts.update"   (posts = Post's db_table)
    resolve("export")        -> "export"
"""

from __future__ import annotations

from typing import Any

from warden.principal import PermissionHolder
from warden.resolver import AuthorizationResolver
from warden.tenancy import TenantContext, normalize_tenant


def _collection_name(subject: Any) -> str | None:
    from django.apps import apps
    from django.db import models

    if isinstance(subject, str):
        try:
            subject = apps.get_model(subject)
        except (LookupError, ValueError):
            return None
    if isinstance(subject, models.Model) or (
        isinstance(subject, type) and issubclass(subject, models.Model)
    ):
        return subject._meta.db_table
    return None


def resolve(ability: str, subject: Any = None) -> str:
    """Permission name for ``ability``, prefixed by the subject's table if any."""
    collection = None if subject is None else _collection_name(subject)
    if collection is None:
        return ability
    return f"{collection}.{ability}"


class DefaultPolicy:
    def __init__(self, *, resolver: AuthorizationResolver, tenant_context: TenantContext):
        self._resolver = resolver
        self._tenant_context = tenant_context

    def resolve(self, ability: str, subject: Any = None) -> str:
        return resolve(ability, subject)

    def check(self, holder: Any, ability: str, subject: Any = None) -> bool:
        if not isinstance(holder, PermissionHolder):
            return False
        return self._resolver.has_permission(
            holder.principal_identity(),
            self.resolve(ability, subject),
            normalize_tenant(self._tenant_context.get_tenant_id()),
        )
