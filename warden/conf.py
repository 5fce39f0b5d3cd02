"""
Warden - Settings
=================
Reads the ``WARDEN`` Django setting once and merges it over defaults.

``CACHE.STORE`` names a Django ``CACHES`` alias. ``"memory"`` selects the
process-local tagged store, whose invalidations other workers never see.

    WARDEN = {
        "CACHE": {"ENABLED": True, "STORE": "default", "TTL": 300, "PREFIX": "warden"},
        "SERVICES": {"TENANT_CONTEXT": "myproject.tenancy.RequestTenantContext"},
        "ROLE_CATALOG": "myproject.catalogs.Roles",
        "PERMISSION_CATALOGS": ["myproject.catalogs.PostPermissions"],
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

SETTING_NAME = "WARDEN"

MEMORY_STORE = "memory"
DEFAULT_CACHE_ALIAS = "default"

SERVICE_TENANT_CONTEXT = "TENANT_CONTEXT"
SERVICE_PERMISSION_VALUE_RESOLVER = "PERMISSION_VALUE_RESOLVER"
SERVICE_ROLE_VALUE_RESOLVER = "ROLE_VALUE_RESOLVER"
SERVICE_AUTHORIZATION_RESOLVER = "AUTHORIZATION_RESOLVER"

DEFAULT_SERVICES: dict[str, str] = {
    SERVICE_TENANT_CONTEXT: "warden.tenancy.DefaultTenantContext",
    SERVICE_PERMISSION_VALUE_RESOLVER: "warden.resolvers.DefaultPermissionValueResolver",
    SERVICE_ROLE_VALUE_RESOLVER: "warden.resolvers.DefaultRoleValueResolver",
    SERVICE_AUTHORIZATION_RESOLVER: "warden.resolver.DefaultAuthorizationResolver",
}


@dataclass(frozen=True)
class CacheSettings:
    enabled: bool = True
    store: str = DEFAULT_CACHE_ALIAS
    ttl: int = 300
    prefix: str = "warden"

    def __post_init__(self):
        if not isinstance(self.ttl, int) or self.ttl <= 0:
            raise ValueError("CACHE.TTL must be a positive integer.")
        if not isinstance(self.prefix, str) or not self.prefix:
            raise ValueError("CACHE.PREFIX must be a non-empty string.")
        if not isinstance(self.store, str) or not self.store:
            raise ValueError("CACHE.STORE must be a non-empty string.")


@dataclass(frozen=True)
class WardenSettings:
    cache: CacheSettings = field(default_factory=CacheSettings)
    services: Mapping[str, str] = field(
        default_factory=lambda: dict(DEFAULT_SERVICES)
    )
    role_catalog: str | None = None
    permission_catalogs: tuple[str, ...] = ()
    role_permissions: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    gate_enabled: bool = True
    policy_models: tuple[str, ...] = ()


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = raw.get(name) or {}
    if not isinstance(value, Mapping):
        raise ValueError(f"WARDEN['{name}'] must be a mapping.")
    return value


def build_settings(raw: Mapping[str, Any] | None) -> WardenSettings:
    """Merge a raw ``WARDEN`` mapping over the defaults."""
    raw = raw or {}
    cache_raw = _section(raw, "CACHE")
    defaults = CacheSettings()
    store = cache_raw.get("STORE")
    cache = CacheSettings(
        enabled=bool(cache_raw.get("ENABLED", defaults.enabled)),
        store=defaults.store if store is None else store,
        ttl=cache_raw.get("TTL", defaults.ttl),
        prefix=cache_raw.get("PREFIX", defaults.prefix),
    )

    services = dict(DEFAULT_SERVICES)
    for key, path in _section(raw, "SERVICES").items():
        if key not in DEFAULT_SERVICES:
            raise ValueError(
                f"Unknown service key '{key}'. "
                f"Must be one of: {sorted(DEFAULT_SERVICES)}"
            )
        services[key] = path

    role_permissions = {
        str(role): tuple(str(permission) for permission in permissions)
        for role, permissions in _section(raw, "ROLE_PERMISSIONS").items()
    }

    return WardenSettings(
        cache=cache,
        services=services,
        role_catalog=raw.get("ROLE_CATALOG"),
        permission_catalogs=tuple(raw.get("PERMISSION_CATALOGS") or ()),
        role_permissions=role_permissions,
        gate_enabled=bool(_section(raw, "GATE").get("ENABLED", True)),
        policy_models=tuple(
            label.lower() for label in _section(raw, "POLICY").get("MODELS", ())
        ),
    )


def load_settings() -> WardenSettings:
    from django.conf import settings

    return build_settings(getattr(settings, SETTING_NAME, None))
