"""
Warden - Public API
===================
Names are imported lazily so that loading the package does not touch
the Django app registry.
"""

_EXPORTS = {
    "AuthorizationCache": "warden.cache",
    "AuthorizationEngine": "warden.engine",
    "AuthorizationResolver": "warden.resolver",
    "DefaultAuthorizationResolver": "warden.resolver",
    "DefaultPolicy": "warden.policy",
    "PermissionHolder": "warden.principal",
    "PermissionHolderMixin": "warden.principal",
    "PrincipalCapabilities": "warden.engine",
    "PrincipalIdentity": "warden.principal",
    "RoleNotFoundError": "warden.errors",
    "ServiceConfigurationError": "warden.errors",
    "TenantContext": "warden.tenancy",
    "get_container": "warden.container",
    "get_engine": "warden.container",
}


def __getattr__(name: str):
    module_path = _EXPORTS.get(name)
    if module_path is None:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
    from importlib import import_module

    return getattr(import_module(module_path), name)


__all__ = sorted(_EXPORTS)
