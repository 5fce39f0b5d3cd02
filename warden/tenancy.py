"""
Warden - Tenant Context
=======================
Supplies the ambient tenant when a caller does not pass one.
None means global scope.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

GLOBAL_TENANT = "global"


@runtime_checkable
class TenantContext(Protocol):
    def get_tenant_id(self) -> Any:
        ...


class DefaultTenantContext:
    """No ambient tenant: every call without an explicit tenant is global."""

    def get_tenant_id(self) -> Any:
        return None


class StaticTenantContext:
    def __init__(self, tenant_id: Any = None):
        self._tenant_id = tenant_id

    def get_tenant_id(self) -> Any:
        return self._tenant_id


def normalize_tenant(tenant: Any) -> str | None:
    """Canonical stored form of a tenant identifier (``1`` and ``"1"`` match)."""
    if tenant is None:
        return None
    if isinstance(tenant, bool):
        raise ValueError("tenant must be an identifier, not a boolean.")
    normalized = str(tenant).strip()
    if not normalized:
        raise ValueError("tenant must be a non-empty identifier or None.")
    if normalized == GLOBAL_TENANT:
        raise ValueError(f"'{GLOBAL_TENANT}' is reserved for unscoped grants.")
    return normalized


def tenant_label(tenant: Any) -> str:
    normalized = normalize_tenant(tenant)
    return GLOBAL_TENANT if normalized is None else normalized
