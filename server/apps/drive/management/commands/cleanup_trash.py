"""Management command to purge old resources from the trash."""

import logging
from datetime import timedelta
from typing import Any, Final

from django.conf import settings
from django.core.management.base import BaseCommand
from django.utils import timezone

from server.apps.drive.exceptions import DriveError
from server.apps.drive.logic.trash_operations import (
    permanent_delete_file,
    permanent_delete_folder,
)
from server.apps.drive.models import File, Folder

_DEFAULT_BATCH_SIZE: Final = 1000

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Permanently delete files and folders past the trash retention."""

    help = 'Purge files and folders that stayed in the trash too long'

    def add_arguments(self, parser: Any) -> None:
        """Add command line arguments.

        Args:
            parser: Argument parser.
        """
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be purged without purging',
        )
        parser.add_argument(
            '--batch-size',
            type=int,
            default=_DEFAULT_BATCH_SIZE,
            help=f'Max resources per kind (default: {_DEFAULT_BATCH_SIZE})',
        )

    def handle(self, *args: Any, **options: Any) -> None:
        """Execute the cleanup command.

        Args:
            args: Positional arguments (unused).
            options: Command options.
        """
        dry_run = options['dry_run']
        batch_size = options['batch_size']
        retention_days = settings.DRIVE_TRASH_RETENTION_DAYS

        cutoff = timezone.now() - timedelta(days=retention_days)
        self.stdout.write(
            f'Looking for resources trashed before {cutoff} '
            f'(older than {retention_days} days)',
        )

        old_files = File.objects.trashed().filter(
            trashed_at__lte=cutoff,
        ).order_by('trashed_at')[:batch_size]
        old_folders = Folder.objects.trashed().filter(
            trashed_at__lte=cutoff,
        ).order_by('trashed_at')[:batch_size]

        purged = 0
        failed = 0
        for resource, purge in (
            *((file_instance, permanent_delete_file) for file_instance in old_files),
            *((folder, permanent_delete_folder) for folder in old_folders),
        ):
            if dry_run:
                self.stdout.write(
                    f'Would purge: {resource} (trashed: {resource.trashed_at})',
                )
                purged += 1
                continue

            # Removed earlier by a parent folder's cascade
            if not type(resource).objects.filter(pk=resource.pk).exists():
                continue

            try:
                purge(resource.owner_id, resource.pk)
            except DriveError as exc:
                self.stderr.write(f'Failed to purge {resource}: {exc.message}')
                logger.warning('Failed to purge %s: %s', resource, exc.message)
                failed += 1
            else:
                purged += 1
                logger.info('Purged from trash: %s', resource)

        if dry_run:
            self.stdout.write(
                self.style.SUCCESS(f'Would purge {purged} resources from trash'),
            )
        else:
            self.stdout.write(
                self.style.SUCCESS(
                    f'Purged {purged} resources from trash, {failed} failed',
                ),
            )
