from django.db import migrations, models


def _edge_fields():
    return [
        (
            "id",
            models.BigAutoField(
                auto_created=True,
                primary_key=True,
                serialize=False,
                verbose_name="ID",
            ),
        ),
        ("principal_type", models.CharField(max_length=100)),
        ("principal_id", models.CharField(max_length=64)),
        ("tenant_id", models.CharField(blank=True, max_length=64, null=True)),
        ("created_at", models.DateTimeField(auto_now_add=True)),
        ("updated_at", models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Permission",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("name", models.CharField(max_length=255, unique=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "warden_permissions",
                "ordering": ["name", "id"],
            },
        ),
        migrations.CreateModel(
            name="Role",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("name", models.CharField(max_length=255, unique=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "db_table": "warden_roles",
                "ordering": ["name", "id"],
            },
        ),
        migrations.CreateModel(
            name="RolePermission",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "permission",
                    models.ForeignKey(
                        db_column="permission_id",
                        on_delete=models.deletion.CASCADE,
                        related_name="role_permissions",
                        to="warden.permission",
                    ),
                ),
                (
                    "role",
                    models.ForeignKey(
                        db_column="role_id",
                        on_delete=models.deletion.CASCADE,
                        related_name="role_permissions",
                        to="warden.role",
                    ),
                ),
            ],
            options={
                "db_table": "warden_role_permissions",
                "ordering": ["role_id", "permission_id", "id"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("role", "permission"),
                        name="uq_warden_role_permission",
                    ),
                ],
            },
        ),
        migrations.AddField(
            model_name="role",
            name="permissions",
            field=models.ManyToManyField(
                blank=True,
                related_name="roles",
                through="warden.RolePermission",
                to="warden.permission",
            ),
        ),
        migrations.CreateModel(
            name="PermissionGrant",
            fields=_edge_fields()
            + [
                (
                    "permission",
                    models.ForeignKey(
                        db_column="permission_id",
                        on_delete=models.deletion.CASCADE,
                        related_name="grants",
                        to="warden.permission",
                    ),
                ),
            ],
            options={
                "db_table": "warden_permission_grants",
                "ordering": ["principal_type", "principal_id", "tenant_id", "permission_id", "id"],
                "indexes": [
                    models.Index(
                        fields=["principal_type", "principal_id", "tenant_id"],
                        name="idx_warden_grant_principal",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PermissionDenial",
            fields=_edge_fields()
            + [
                (
                    "permission",
                    models.ForeignKey(
                        db_column="permission_id",
                        on_delete=models.deletion.CASCADE,
                        related_name="denials",
                        to="warden.permission",
                    ),
                ),
            ],
            options={
                "db_table": "warden_permission_denials",
                "ordering": ["principal_type", "principal_id", "tenant_id", "permission_id", "id"],
                "indexes": [
                    models.Index(
                        fields=["principal_type", "principal_id", "tenant_id"],
                        name="idx_warden_denial_principal",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="RoleAssignment",
            fields=_edge_fields()
            + [
                (
                    "role",
                    models.ForeignKey(
                        db_column="role_id",
                        on_delete=models.deletion.CASCADE,
                        related_name="assignments",
                        to="warden.role",
                    ),
                ),
            ],
            options={
                "db_table": "warden_role_assignments",
                "ordering": ["principal_type", "principal_id", "tenant_id", "role_id", "id"],
                "indexes": [
                    models.Index(
                        fields=["principal_type", "principal_id", "tenant_id"],
                        name="idx_warden_role_asg_principal",
                    ),
                ],
            },
        ),
    ]
