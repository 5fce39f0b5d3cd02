from django.core.management.base import BaseCommand

from warden.container import get_container
from warden.sync import LEVEL_COMMENT, LEVEL_ERROR, LEVEL_WARNING, CatalogSync


class Command(BaseCommand):
    help = "Sync roles and permissions from the configured catalogs to the database."

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Display the changes without applying them.",
        )
        parser.add_argument(
            "--prune",
            action="store_true",
            help="Remove roles and permissions that are no longer in the catalogs.",
        )
        parser.add_argument(
            "--sync-pivots",
            action="store_true",
            help="Attach the permissions listed in WARDEN['ROLE_PERMISSIONS'] to their roles.",
        )

    def _emit(self, level, message):
        if level == LEVEL_WARNING:
            message = self.style.WARNING(message)
        elif level == LEVEL_ERROR:
            message = self.style.ERROR(message)
        elif level == LEVEL_COMMENT:
            message = self.style.MIGRATE_HEADING(message)
        self.stdout.write(message)

    def handle(self, *args, **options):
        container = get_container()
        CatalogSync(
            settings=container.settings,
            permission_resolver=container.permission_resolver,
            role_resolver=container.role_resolver,
            cache=container.cache,
            emit=self._emit,
            dry_run=options["dry_run"],
            prune=options["prune"],
            sync_pivots=options["sync_pivots"],
        ).run()
