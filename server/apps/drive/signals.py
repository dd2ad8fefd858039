"""Signal handlers for drive app."""

import logging
from functools import partial

from django.db import transaction
from django.db.models.signals import post_delete
from django.dispatch import receiver

from server.apps.drive.infrastructure.storage import get_storage
from server.apps.drive.models import File

logger = logging.getLogger(__name__)


@receiver(post_delete, sender=File)
def delete_file_from_storage(
    sender: type[File],
    instance: File,
    origin: object = None,
    **kwargs: object,
) -> None:
    """Delete the object of a file removed by a cascade.

    Purging a folder deletes the rows of every file below it. This
    handler removes their objects from storage once the delete commits,
    so a rolled back purge leaves every object in place. Files purged
    directly already had their object discarded, so they are skipped.

    Args:
        sender: The File model class.
        instance: The File instance being deleted.
        origin: Instance or queryset the delete started from.
        **kwargs: Additional signal arguments.
    """
    if origin is instance or not instance.storage_path:
        return

    logger.info(
        'Scheduling object delete of cascaded file %d: %s',
        instance.pk or 0,
        instance.storage_path,
    )
    # Best effort, runs only after the row delete commits
    transaction.on_commit(partial(get_storage().discard, instance.storage_path))
