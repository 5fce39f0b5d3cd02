"""
Warden - Relational Grant Store
===============================
Permissions, roles, role grants, and the three principal edge tables.

Principal edges are polymorphic: (principal_type, principal_id) instead
of a foreign key. tenant_id NULL means the edge is global.
"""

from __future__ import annotations

from django.db import models


class Permission(models.Model):
    name = models.CharField(max_length=255, unique=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "warden_permissions"
        ordering = ["name", "id"]

    def __str__(self) -> str:
        return self.name


class Role(models.Model):
    name = models.CharField(max_length=255, unique=True)
    permissions = models.ManyToManyField(
        Permission,
        through="RolePermission",
        related_name="roles",
        blank=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "warden_roles"
        ordering = ["name", "id"]

    def __str__(self) -> str:
        return self.name


class RolePermission(models.Model):
    role = models.ForeignKey(
        Role,
        on_delete=models.CASCADE,
        related_name="role_permissions",
        db_column="role_id",
    )
    permission = models.ForeignKey(
        Permission,
        on_delete=models.CASCADE,
        related_name="role_permissions",
        db_column="permission_id",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "warden_role_permissions"
        ordering = ["role_id", "permission_id", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["role", "permission"],
                name="uq_warden_role_permission",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.role_id}:{self.permission_id}"


class PrincipalEdge(models.Model):
    principal_type = models.CharField(max_length=100)
    principal_id = models.CharField(max_length=64)
    tenant_id = models.CharField(max_length=64, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True

    @property
    def is_global(self) -> bool:
        return self.tenant_id is None


class PermissionGrant(PrincipalEdge):
    """Explicit allow."""

    permission = models.ForeignKey(
        Permission,
        on_delete=models.CASCADE,
        related_name="grants",
        db_column="permission_id",
    )

    class Meta:
        db_table = "warden_permission_grants"
        ordering = ["principal_type", "principal_id", "tenant_id", "permission_id", "id"]
        indexes = [
            models.Index(
                fields=["principal_type", "principal_id", "tenant_id"],
                name="idx_warden_grant_principal",
            ),
        ]

    def __str__(self) -> str:
        return f"allow {self.principal_type}:{self.principal_id}:{self.permission_id}"


class PermissionDenial(PrincipalEdge):
    """Explicit deny."""

    permission = models.ForeignKey(
        Permission,
        on_delete=models.CASCADE,
        related_name="denials",
        db_column="permission_id",
    )

    class Meta:
        db_table = "warden_permission_denials"
        ordering = ["principal_type", "principal_id", "tenant_id", "permission_id", "id"]
        indexes = [
            models.Index(
                fields=["principal_type", "principal_id", "tenant_id"],
                name="idx_warden_denial_principal",
            ),
        ]

    def __str__(self) -> str:
        return f"deny {self.principal_type}:{self.principal_id}:{self.permission_id}"


class RoleAssignment(PrincipalEdge):
    role = models.ForeignKey(
        Role,
        on_delete=models.CASCADE,
        related_name="assignments",
        db_column="role_id",
    )

    class Meta:
        db_table = "warden_role_assignments"
        ordering = ["principal_type", "principal_id", "tenant_id", "role_id", "id"]
        indexes = [
            models.Index(
                fields=["principal_type", "principal_id", "tenant_id"],
                name="idx_warden_role_asg_principal",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.principal_type}:{self.principal_id}:{self.role_id}"
