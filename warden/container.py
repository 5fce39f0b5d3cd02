"""
Warden - Composition Root
=========================
Builds every service explicitly from WardenSettings and hands out one
process-wide container.

Pluggable services come from WARDEN["SERVICES"] as dotted paths:
- TENANT_CONTEXT, PERMISSION_VALUE_RESOLVER, ROLE_VALUE_RESOLVER are
  instantiated without arguments.
- AUTHORIZATION_RESOLVER is instantiated with keyword arguments
  ``store``, ``cache`` and ``permission_resolver``.

Each one is checked against its protocol before anything is served.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable

from django.utils.module_loading import import_string

from warden.cache import AuthorizationCache, DjangoCacheBackend, TaggedMemoryCache
from warden.conf import (
    MEMORY_STORE,
    SERVICE_AUTHORIZATION_RESOLVER,
    SERVICE_PERMISSION_VALUE_RESOLVER,
    SERVICE_ROLE_VALUE_RESOLVER,
    SERVICE_TENANT_CONTEXT,
    WardenSettings,
    load_settings,
)
from warden.db_store import DbGrantStore
from warden.engine import AuthorizationEngine
from warden.errors import ServiceConfigurationError
from warden.policy import DefaultPolicy
from warden.resolver import AuthorizationResolver
from warden.resolvers import PermissionValueResolver, RoleValueResolver
from warden.tenancy import TenantContext

logger = logging.getLogger("warden.container")

_CONTAINER_LOCK = threading.Lock()
_CONTAINER: "WardenContainer | None" = None


@dataclass(frozen=True)
class WardenContainer:
    settings: WardenSettings
    tenant_context: TenantContext
    permission_resolver: PermissionValueResolver
    role_resolver: RoleValueResolver
    store: Any
    cache: AuthorizationCache
    resolver: AuthorizationResolver
    engine: AuthorizationEngine
    policy: DefaultPolicy


def _load_service(
    settings: WardenSettings,
    config_key: str,
    contract: type,
    factory: Callable[[type], Any] = lambda cls: cls(),
) -> Any:
    path = settings.services[config_key]
    try:
        service_class = import_string(path)
    except ImportError as exc:
        raise ServiceConfigurationError(
            config_key, contract.__name__, f"'{path}' could not be imported."
        ) from exc

    try:
        instance = factory(service_class)
    except TypeError as exc:
        raise ServiceConfigurationError(
            config_key, contract.__name__, f"'{path}' could not be constructed: {exc}"
        ) from exc

    if not isinstance(instance, contract):
        raise ServiceConfigurationError(
            config_key, contract.__name__, f"Got {type(instance).__name__}."
        )
    return instance


def build_cache_backend(settings: WardenSettings):
    if settings.cache.store == MEMORY_STORE:
        return TaggedMemoryCache()
    return DjangoCacheBackend(alias=settings.cache.store)


def build_container(
    settings: WardenSettings | None = None,
    *,
    store: Any = None,
    cache_backend: Any = None,
) -> WardenContainer:
    """
    Construct and validate every service.

    ``store`` and ``cache_backend`` override the defaults
    (DbGrantStore and the backend selected by CACHE.STORE).
    """
    settings = settings or load_settings()

    tenant_context = _load_service(settings, SERVICE_TENANT_CONTEXT, TenantContext)
    permission_resolver = _load_service(
        settings, SERVICE_PERMISSION_VALUE_RESOLVER, PermissionValueResolver
    )
    role_resolver = _load_service(settings, SERVICE_ROLE_VALUE_RESOLVER, RoleValueResolver)

    store = store if store is not None else DbGrantStore()
    cache = AuthorizationCache(
        cache_backend if cache_backend is not None else build_cache_backend(settings),
        store=store,
        permission_resolver=permission_resolver,
        enabled=settings.cache.enabled,
        ttl=settings.cache.ttl,
        prefix=settings.cache.prefix,
    )

    resolver = _load_service(
        settings,
        SERVICE_AUTHORIZATION_RESOLVER,
        AuthorizationResolver,
        factory=lambda cls: cls(
            store=store,
            cache=cache,
            permission_resolver=permission_resolver,
        ),
    )

    engine = AuthorizationEngine(
        store=store,
        cache=cache,
        resolver=resolver,
        tenant_context=tenant_context,
        permission_resolver=permission_resolver,
        role_resolver=role_resolver,
    )
    policy = DefaultPolicy(resolver=resolver, tenant_context=tenant_context)

    logger.info(
        f"Warden services built (cache={'on' if settings.cache.enabled else 'off'}, "
        f"store={settings.cache.store}, "
        f"tags={'yes' if cache.supports_tags() else 'no'})."
    )

    return WardenContainer(
        settings=settings,
        tenant_context=tenant_context,
        permission_resolver=permission_resolver,
        role_resolver=role_resolver,
        store=store,
        cache=cache,
        resolver=resolver,
        engine=engine,
        policy=policy,
    )


def get_container() -> WardenContainer:
    global _CONTAINER
    with _CONTAINER_LOCK:
        if _CONTAINER is None:
            _CONTAINER = build_container()
        return _CONTAINER


def set_container(container: WardenContainer | None) -> None:
    global _CONTAINER
    with _CONTAINER_LOCK:
        _CONTAINER = container


def reset_container() -> None:
    set_container(None)


def get_engine() -> AuthorizationEngine:
    return get_container().engine
