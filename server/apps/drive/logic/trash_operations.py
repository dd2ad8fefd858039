"""Business logic for trash (soft delete) operations.

Moving a resource to the trash and restoring it are single conditional
updates on ``trashed_at``; nothing else on the row changes. Permanent
deletion is only legal from the trash.
"""

import logging
from dataclasses import dataclass
from typing import Final

from django.db import transaction
from django.db.models import Model, QuerySet
from django.utils import timezone

from server.apps.drive.exceptions import (
    InvalidArgumentError,
    NotFoundError,
    collaborator_errors,
)
from server.apps.drive.infrastructure.metadata import validate_id
from server.apps.drive.infrastructure.storage import get_storage
from server.apps.drive.logic.permission_operations import authorize
from server.apps.drive.logic.results import OperationResult, Page
from server.apps.drive.models import File, Folder, PermissionLevel, ResourceKind

logger = logging.getLogger(__name__)

_DEFAULT_PAGE_SIZE: Final = 20
_MAX_PAGE_SIZE: Final = 100

_MODELS: Final[dict[ResourceKind, type[Model]]] = {
    ResourceKind.FILE: File,
    ResourceKind.FOLDER: Folder,
}


@dataclass(frozen=True)
class EmptyTrashResult:
    """Counts of resources purged by ``empty_trash``."""

    files: int
    folders: int


def soft_delete_folder(caller_id: int, folder_id: int) -> OperationResult[Folder]:
    """Move folder to trash.

    Children are not touched: each keeps its own lifecycle state.

    Args:
        caller_id: ID of the requesting user (needs owner level).
        folder_id: Folder ID.

    Returns:
        Result with the trashed folder.

    Raises:
        NotFoundError: If the folder is already in the trash.
    """
    folder = _soft_delete(caller_id, ResourceKind.FOLDER, folder_id)
    return OperationResult(folder, 'Folder moved to trash')


def soft_delete_file(caller_id: int, file_id: int) -> OperationResult[File]:
    """Move file to trash.

    Args:
        caller_id: ID of the requesting user (needs owner level).
        file_id: File ID.

    Returns:
        Result with the trashed file.

    Raises:
        NotFoundError: If the file is already in the trash.
    """
    file_instance = _soft_delete(caller_id, ResourceKind.FILE, file_id)
    return OperationResult(file_instance, 'File moved to trash')


def restore_folder(caller_id: int, folder_id: int) -> OperationResult[Folder]:
    """Restore folder from trash.

    Raises:
        NotFoundError: If the folder is not in the trash.
    """
    folder = _restore(caller_id, ResourceKind.FOLDER, folder_id)
    return OperationResult(folder, 'Folder restored')


def restore_file(caller_id: int, file_id: int) -> OperationResult[File]:
    """Restore file from trash.

    Raises:
        NotFoundError: If the file is not in the trash.
    """
    file_instance = _restore(caller_id, ResourceKind.FILE, file_id)
    return OperationResult(file_instance, 'File restored')


def permanent_delete_folder(
    caller_id: int,
    folder_id: int,
) -> OperationResult[Folder]:
    """Permanently delete a trashed folder and everything below it.

    Descendant folders, their files and all grants are removed by the
    database cascade. Objects of cascaded files are removed by the
    ``post_delete`` signal, best effort.

    Args:
        caller_id: ID of the requesting user (needs owner level).
        folder_id: Folder ID.

    Returns:
        Result without resource.

    Raises:
        NotFoundError: If the folder is not in the trash.
    """
    authorize(ResourceKind.FOLDER, folder_id, caller_id, PermissionLevel.OWNER)
    folder = _load_trashed(ResourceKind.FOLDER, folder_id)

    with collaborator_errors('Purge folder'):
        with transaction.atomic():
            deleted, per_model = folder.delete()

    logger.info(
        'Folder permanently deleted: %s (ID: %d, rows: %d, files: %d)',
        folder.name,
        folder_id,
        deleted,
        per_model.get(File._meta.label, 0),
    )
    return OperationResult(None, 'Folder permanently deleted')


def permanent_delete_file(caller_id: int, file_id: int) -> OperationResult[File]:
    """Permanently delete a trashed file.

    The object is removed from storage first, best effort, then the row.
    A storage failure leaves an orphaned object and is only logged.

    Args:
        caller_id: ID of the requesting user (needs owner level).
        file_id: File ID.

    Returns:
        Result without resource.

    Raises:
        NotFoundError: If the file is not in the trash.
    """
    authorize(ResourceKind.FILE, file_id, caller_id, PermissionLevel.OWNER)
    file_instance = _load_trashed(ResourceKind.FILE, file_id)
    storage_path = file_instance.storage_path

    get_storage().discard(storage_path)

    with collaborator_errors('Purge file'):
        file_instance.delete()

    logger.info(
        'File permanently deleted: %s (ID: %d, size: %d)',
        storage_path,
        file_id,
        file_instance.size_bytes,
    )
    return OperationResult(None, 'File permanently deleted')


def list_trash(
    caller_id: int,
    kind: ResourceKind | str,
    page: int = 1,
    limit: int = _DEFAULT_PAGE_SIZE,
) -> Page[Model]:
    """List the caller's trashed resources of one kind, newest first.

    Args:
        caller_id: Owner whose trash to list.
        kind: 'file' or 'folder'.
        page: Page number, starting at 1.
        limit: Page size (1-100).

    Returns:
        Page with total count.
    """
    kind = ResourceKind.parse(kind)
    if page < 1:
        raise InvalidArgumentError('Page must be at least 1')
    if not 1 <= limit <= _MAX_PAGE_SIZE:
        raise InvalidArgumentError(f'Limit must be between 1 and {_MAX_PAGE_SIZE}')

    queryset = _trash_of(caller_id, kind).order_by('-trashed_at', '-pk')
    offset = (page - 1) * limit

    with collaborator_errors('List trash'):
        total = queryset.count()
        items = list(queryset[offset:offset + limit])

    return Page(
        items=items,
        limit=limit,
        has_more=offset + len(items) < total,
        page=page,
        total=total,
    )


def empty_trash(caller_id: int) -> OperationResult[EmptyTrashResult]:
    """Permanently delete everything in the caller's trash.

    Trashed files are purged one by one, then trashed folders. Folders
    already removed by a parent's cascade are skipped.

    Args:
        caller_id: Owner whose trash to empty.

    Returns:
        Result with purge counts.
    """
    with collaborator_errors('Empty trash'):
        file_ids = list(
            _trash_of(caller_id, ResourceKind.FILE).values_list('pk', flat=True),
        )
        folder_ids = list(
            _trash_of(caller_id, ResourceKind.FOLDER).values_list('pk', flat=True),
        )

    for file_id in file_ids:
        permanent_delete_file(caller_id, file_id)

    folders = 0
    for folder_id in folder_ids:
        if not Folder.objects.trashed().filter(pk=folder_id).exists():
            continue
        permanent_delete_folder(caller_id, folder_id)
        folders += 1

    logger.info(
        'Trash emptied for user %d: %d files, %d folders',
        caller_id,
        len(file_ids),
        folders,
    )
    return OperationResult(
        EmptyTrashResult(files=len(file_ids), folders=folders),
        'Trash emptied',
    )


def _soft_delete(caller_id: int, kind: ResourceKind, resource_id: int) -> Model:
    authorize(kind, resource_id, caller_id, PermissionLevel.OWNER)
    model = _MODELS[kind]

    # Conditional update so a concurrent delete cannot succeed twice
    with collaborator_errors('Move to trash'):
        updated = model.objects.filter(
            pk=resource_id,
            trashed_at__isnull=True,
        ).update(trashed_at=timezone.now())
        if not updated:
            raise NotFoundError(f'{kind.label} not found or already in trash')
        resource = model.objects.get(pk=resource_id)

    logger.info('%s moved to trash: %s (ID: %d)', kind.label, resource, resource_id)
    return resource


def _restore(caller_id: int, kind: ResourceKind, resource_id: int) -> Model:
    authorize(kind, resource_id, caller_id, PermissionLevel.OWNER)
    model = _MODELS[kind]

    with collaborator_errors('Restore from trash'):
        updated = model.objects.filter(
            pk=resource_id,
            trashed_at__isnull=False,
        ).update(trashed_at=None)
        if not updated:
            raise NotFoundError(f'{kind.label} not found in trash')
        resource = model.objects.get(pk=resource_id)

    logger.info('%s restored: %s (ID: %d)', kind.label, resource, resource_id)
    return resource


def _load_trashed(kind: ResourceKind, resource_id: int) -> Model:
    resource_id = validate_id(resource_id)
    with collaborator_errors('Load trashed resource'):
        try:
            return _MODELS[kind].objects.trashed().get(pk=resource_id)
        except _MODELS[kind].DoesNotExist as error:
            raise NotFoundError(f'{kind.label} not found in trash') from error


def _trash_of(caller_id: int, kind: ResourceKind) -> QuerySet:
    return _MODELS[kind].objects.trashed().filter(owner_id=caller_id)
