"""
Warden - Django Authorization Backend
=====================================
The single integration point with django.contrib.auth. List it first:

    AUTHENTICATION_BACKENDS = [
        "warden.auth_backend.WardenPermissionBackend",
        "django.contrib.auth.backends.ModelBackend",
    ]

Django stops at the first backend that grants a permission, and at the
first one that raises PermissionDenied. An explicit Warden deny raises,
so no later backend can grant what Warden denied. Any other False lets
the remaining backends decide.
"""

from __future__ import annotations

import logging

from django.contrib.auth.backends import BaseBackend
from django.core.exceptions import PermissionDenied

from warden.principal import PermissionHolder

logger = logging.getLogger("warden.engine")


class WardenPermissionBackend(BaseBackend):
    def has_perm(self, user_obj, perm, obj=None):
        from warden.container import get_container

        container = get_container()
        if not container.settings.gate_enabled:
            return False
        if not isinstance(user_obj, PermissionHolder):
            return False

        meta = getattr(obj, "_meta", None)
        if meta is not None and meta.label_lower in container.settings.policy_models:
            permission = container.policy.resolve(perm, obj)
            allowed = container.policy.check(user_obj, perm, obj)
        else:
            permission = perm
            allowed = user_obj.has_permission(perm)

        if allowed:
            return True
        if container.engine.is_denied(user_obj.principal_identity(), permission):
            logger.info(f"{user_obj.principal_identity()} explicitly denied '{permission}'.")
            raise PermissionDenied(permission)
        return False
