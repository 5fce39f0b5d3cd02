"""
Warden - Catalog Sync
=====================
Reconciles role/permission catalogs (Enum classes named in settings)
into the relational store.

- Missing rows are created. Existing rows are left unchanged.
- prune: rows absent from the catalogs are deleted.
- sync_pivots: ROLE_PERMISSIONS edges are attached.
- dry_run: every action is reported, nothing is written.

Deleting rows or attaching role grants changes decisions for principals
the sync cannot enumerate, so the whole authorization cache is flushed
when that happens.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from django.db import transaction
from django.utils.module_loading import import_string

from warden.conf import WardenSettings

logger = logging.getLogger("warden.sync")

LEVEL_INFO = "info"
LEVEL_COMMENT = "comment"
LEVEL_WARNING = "warning"
LEVEL_ERROR = "error"

Emitter = Callable[[str, str], None]


def _log_emitter(level: str, message: str) -> None:
    if level in (LEVEL_WARNING, LEVEL_ERROR):
        logger.warning(message)
    else:
        logger.info(message)


@dataclass
class SyncReport:
    created_roles: list[str] = field(default_factory=list)
    deleted_roles: list[str] = field(default_factory=list)
    created_permissions: list[str] = field(default_factory=list)
    deleted_permissions: list[str] = field(default_factory=list)
    attached_pivots: list[tuple[str, str]] = field(default_factory=list)

    @property
    def invalidates_decisions(self) -> bool:
        return bool(self.deleted_roles or self.deleted_permissions or self.attached_pivots)


class CatalogSync:
    def __init__(
        self,
        *,
        settings: WardenSettings,
        permission_resolver,
        role_resolver,
        cache=None,
        emit: Emitter = _log_emitter,
        dry_run: bool = False,
        prune: bool = False,
        sync_pivots: bool = False,
    ):
        self._settings = settings
        self._permission_resolver = permission_resolver
        self._role_resolver = role_resolver
        self._cache = cache
        self._emit = emit
        self._dry_run = dry_run
        self._prune = prune
        self._sync_pivots = sync_pivots

    def run(self) -> SyncReport:
        report = SyncReport()
        with transaction.atomic():
            self._sync_roles(report)
            self._sync_permissions(report)
            if self._sync_pivots:
                self._sync_role_permissions(report)

        if not self._dry_run and report.invalidates_decisions and self._cache is not None:
            self._cache.flush_all()

        self._emit(LEVEL_INFO, "Sync completed.")
        return report

    # ── Catalogs ─────────────────────────────────────────────

    def _load_catalog(self, path: str) -> type[Enum] | None:
        try:
            catalog = import_string(path)
        except ImportError:
            return None
        if not isinstance(catalog, type) or not issubclass(catalog, Enum):
            return None
        return catalog

    def _defined_roles(self) -> list[str] | None:
        path = self._settings.role_catalog
        catalog = self._load_catalog(path) if path else None
        if catalog is None:
            self._emit(LEVEL_WARNING, "No role catalog configured or catalog does not exist.")
            return None
        return [self._role_resolver.resolve(member) for member in catalog]

    def _defined_permissions(self) -> list[str] | None:
        paths = self._settings.permission_catalogs
        if not paths:
            self._emit(LEVEL_WARNING, "No permission catalogs configured.")
            return None

        names: list[str] = []
        for path in paths:
            catalog = self._load_catalog(path)
            if catalog is None:
                self._emit(LEVEL_ERROR, f"Catalog {path} does not exist.")
                continue
            names.extend(self._permission_resolver.resolve(member) for member in catalog)
        return names

    # ── Rows ─────────────────────────────────────────────────

    def _sync_roles(self, report: SyncReport) -> None:
        from warden.models import Role

        defined = self._defined_roles()
        if defined is None:
            return
        self._emit(LEVEL_COMMENT, "Syncing roles...")
        self._sync_rows(Role, "role", defined, report.created_roles, report.deleted_roles)

    def _sync_permissions(self, report: SyncReport) -> None:
        from warden.models import Permission

        defined = self._defined_permissions()
        if defined is None:
            return
        self._emit(LEVEL_COMMENT, "Syncing permissions...")
        self._sync_rows(
            Permission,
            "permission",
            defined,
            report.created_permissions,
            report.deleted_permissions,
        )

    def _sync_rows(self, model, label: str, defined: list[str], created: list, deleted: list) -> None:
        for name in defined:
            if self._dry_run:
                self._emit(LEVEL_INFO, f"Would create/update {label}: {name}")
                continue
            _, was_created = model.objects.get_or_create(name=name)
            if was_created:
                created.append(name)
                logger.info(f"Created {label} '{name}'.")

        if not self._prune:
            return

        for row in model.objects.exclude(name__in=defined).order_by("name"):
            if self._dry_run:
                self._emit(LEVEL_INFO, f"Would delete {label}: {row.name}")
                continue
            row.delete()
            deleted.append(row.name)
            logger.info(f"Deleted {label} '{row.name}'.")

    def _sync_role_permissions(self, report: SyncReport) -> None:
        from warden.models import Permission, Role, RolePermission

        self._emit(LEVEL_COMMENT, "Syncing role permissions...")
        for role_name, permission_names in sorted(self._settings.role_permissions.items()):
            role = Role.objects.filter(name=role_name).first()
            if role is None and not self._dry_run:
                self._emit(LEVEL_WARNING, f"Skipping unknown role: {role_name}")
                continue

            for permission_name in permission_names:
                if self._dry_run:
                    self._emit(
                        LEVEL_INFO,
                        f"Would attach permission {permission_name} to role {role_name}",
                    )
                    continue

                permission = Permission.objects.filter(name=permission_name).first()
                if permission is None:
                    self._emit(LEVEL_WARNING, f"Skipping unknown permission: {permission_name}")
                    continue

                _, was_created = RolePermission.objects.get_or_create(
                    role=role,
                    permission=permission,
                )
                if was_created:
                    report.attached_pivots.append((role_name, permission_name))
                    logger.info(f"Attached '{permission_name}' to role '{role_name}'.")
