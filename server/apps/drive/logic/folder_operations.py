"""Business logic for folder operations."""

import logging
from typing import Final

from django.db import IntegrityError, transaction

from server.apps.drive.exceptions import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    collaborator_errors,
)
from server.apps.drive.infrastructure.metadata import validate_id, validate_name
from server.apps.drive.logic.permission_operations import authorize
from server.apps.drive.logic.results import OperationResult
from server.apps.drive.models import Folder, PermissionLevel, ResourceKind

logger = logging.getLogger(__name__)

_LIST_MAX_LIMIT: Final = 100
_DUPLICATE_NAME_MESSAGE: Final = 'Folder with this name already exists'


def create_folder(
    caller_id: int,
    name: str,
    parent_id: int | None = None,
) -> OperationResult[Folder]:
    """Create a folder owned by the caller.

    Args:
        caller_id: ID of the requesting user, becomes the owner.
        name: Folder name.
        parent_id: Parent folder ID, None for the root level. The caller
            needs edit level on the parent.

    Returns:
        Result with the created folder.

    Raises:
        InvalidArgumentError: If the name is invalid.
        NotFoundError: If the parent is in the trash.
        ConflictError: If a sibling with the same name exists.
    """
    name = validate_name(name)
    if parent_id is not None:
        parent_id = validate_id(parent_id)
        get_folder_for(caller_id, parent_id, PermissionLevel.EDIT)

    with collaborator_errors('Create folder'):
        try:
            with transaction.atomic():
                folder = Folder.objects.create(
                    name=name,
                    owner_id=caller_id,
                    parent_id=parent_id,
                )
        except IntegrityError as error:
            logger.info(
                'Folder name conflict for user %d: %s (parent %s)',
                caller_id,
                name,
                parent_id,
            )
            raise ConflictError(_DUPLICATE_NAME_MESSAGE) from error

    logger.info(
        'Folder created: %s (ID: %d, owner: %d, parent: %s)',
        folder.name,
        folder.id,
        caller_id,
        parent_id,
    )
    return OperationResult(folder, 'Folder created successfully')


def rename_folder(
    caller_id: int,
    folder_id: int,
    name: str,
) -> OperationResult[Folder]:
    """Rename a folder.

    Args:
        caller_id: ID of the requesting user (needs edit level).
        folder_id: Folder ID.
        name: New name.

    Returns:
        Result with the renamed folder.

    Raises:
        NotFoundError: If the folder is in the trash.
        ConflictError: If a sibling already has that name.
    """
    folder = get_folder_for(caller_id, folder_id, PermissionLevel.EDIT)
    name = validate_name(name)
    old_name = folder.name

    with collaborator_errors('Rename folder'):
        try:
            with transaction.atomic():
                folder.name = name
                folder.save(update_fields=['name', 'updated_at'])
        except IntegrityError as error:
            folder.name = old_name
            raise ConflictError(_DUPLICATE_NAME_MESSAGE) from error

    logger.info(
        'Folder renamed: %s -> %s (ID: %d)',
        old_name,
        name,
        folder.id,
    )
    return OperationResult(folder, 'Folder renamed successfully')


def get_folder(caller_id: int, folder_id: int) -> Folder:
    """Get an active folder the caller may view.

    Args:
        caller_id: ID of the requesting user.
        folder_id: Folder ID.

    Returns:
        Folder instance.
    """
    return get_folder_for(caller_id, folder_id, PermissionLevel.VIEW)


def list_folders(
    caller_id: int,
    parent_id: int | None = None,
    limit: int = _LIST_MAX_LIMIT,
) -> list[Folder]:
    """List the caller's own active folders under one parent.

    Folders shared with the caller are not listed here; they are
    reachable by explicit lookup and search only.

    Args:
        caller_id: ID of the requesting user.
        parent_id: Parent folder ID, None for the root level.
        limit: Maximum number of folders (1-100).

    Returns:
        Folders ordered by name.
    """
    if not 1 <= limit <= _LIST_MAX_LIMIT:
        raise InvalidArgumentError(f'Limit must be between 1 and {_LIST_MAX_LIMIT}')

    queryset = Folder.objects.active().filter(owner_id=caller_id)
    if parent_id is None:
        queryset = queryset.filter(parent__isnull=True)
    else:
        queryset = queryset.filter(parent_id=validate_id(parent_id))

    logger.debug('Listing folders for user %d under %s', caller_id, parent_id)
    with collaborator_errors('List folders'):
        return list(queryset.order_by('name', 'pk')[:limit])


def get_folder_for(
    caller_id: int,
    folder_id: int,
    required: PermissionLevel,
) -> Folder:
    """Authorize the caller and load the folder if it is active.

    Args:
        caller_id: ID of the requesting user.
        folder_id: Folder ID.
        required: Minimum level needed.

    Returns:
        Folder instance.

    Raises:
        NotFoundError: If the folder is in the trash.
    """
    authorize(ResourceKind.FOLDER, folder_id, caller_id, required)
    with collaborator_errors('Load folder'):
        try:
            return Folder.objects.active().get(pk=folder_id)
        except Folder.DoesNotExist as error:
            raise NotFoundError('Folder not found') from error
