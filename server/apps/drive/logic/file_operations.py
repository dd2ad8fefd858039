"""Business logic for file operations."""

import logging
from datetime import datetime, timedelta
from typing import BinaryIO, Final

from django.conf import settings
from django.core.files.base import File as DjangoFile
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from server.apps.drive.exceptions import (
    ConflictError,
    DriveError,
    InvalidArgumentError,
    NotFoundError,
    collaborator_errors,
)
from server.apps.drive.infrastructure.metadata import (
    detect_format,
    generate_storage_path,
    get_content_size,
    validate_id,
    validate_name,
    validate_storage_path,
)
from server.apps.drive.infrastructure.storage import get_storage
from server.apps.drive.logic.folder_operations import get_folder_for
from server.apps.drive.logic.permission_operations import authorize
from server.apps.drive.logic.results import OperationResult, Page, SignedDownload
from server.apps.drive.models import (
    File,
    FilePermission,
    PermissionLevel,
    ResourceKind,
)

logger = logging.getLogger(__name__)

_DEFAULT_PAGE_SIZE: Final = 20
_MAX_PAGE_SIZE: Final = 100


def upload_file(
    caller_id: int,
    name: str,
    file_obj: BinaryIO | DjangoFile,
    folder_id: int | None = None,
    content_type: str | None = None,
) -> OperationResult[File]:
    """Upload file to storage and create database record.

    Transaction safety: Upload to storage first, then create DB record.
    If the DB insert fails, the uploaded object is deleted from storage
    before the error is raised. Once the record exists the upload is
    complete; the owner permission row written afterwards is optional.

    Args:
        caller_id: ID of the requesting user, becomes the owner.
        name: File name.
        file_obj: File-like object to upload.
        folder_id: Folder to place the file in (needs edit level).
        content_type: Declared MIME type; guessed from the name if absent.

    Returns:
        Result with the created file.

    Raises:
        InvalidArgumentError: If name or size is invalid.
        NotFoundError: If the folder is in the trash.
        UnavailableError: If storage or database is unreachable.
    """
    name = validate_name(name)
    if folder_id is not None:
        folder_id = validate_id(folder_id)
        get_folder_for(caller_id, folder_id, PermissionLevel.EDIT)

    size_bytes = get_content_size(file_obj)
    _check_upload_size(size_bytes)
    file_format = detect_format(name, content_type)

    storage = get_storage()
    storage_path = generate_storage_path(caller_id, name)

    # Step 1: Upload to storage first
    with collaborator_errors('Upload to storage'):
        saved_name = storage.save(storage_path, file_obj)

    # Step 2: Create database record
    try:
        file_instance = _create_file_record(
            caller_id,
            name,
            saved_name,
            size_bytes,
            file_format,
            folder_id,
        )
    except DriveError:
        # Compensation: the object must not outlive a failed insert
        logger.warning(
            'File record not created, rolling back storage upload: %s',
            saved_name,
        )
        storage.rollback_upload(saved_name)
        raise

    _record_owner_permission(file_instance)
    return OperationResult(file_instance, 'File uploaded successfully')


def register_file(  # noqa: WPS211
    caller_id: int,
    name: str,
    storage_path: str,
    size_bytes: int,
    folder_id: int | None = None,
    content_type: str | None = None,
) -> OperationResult[File]:
    """Create the record for an object the caller already stored.

    Second phase of a two-phase upload. The object is not touched if
    this fails; its writer owns the cleanup.

    Args:
        caller_id: ID of the requesting user, becomes the owner.
        name: File name.
        storage_path: Key the object was stored under.
        size_bytes: Object size in bytes.
        folder_id: Folder to place the file in (needs edit level).
        content_type: Declared MIME type; guessed from the name if absent.

    Returns:
        Result with the created file.
    """
    name = validate_name(name)
    validate_storage_path(caller_id, storage_path)
    if not isinstance(size_bytes, int) or size_bytes < 0:
        raise InvalidArgumentError('Size must be a non-negative integer')
    _check_upload_size(size_bytes)
    if folder_id is not None:
        folder_id = validate_id(folder_id)
        get_folder_for(caller_id, folder_id, PermissionLevel.EDIT)

    file_instance = _create_file_record(
        caller_id,
        name,
        storage_path,
        size_bytes,
        detect_format(name, content_type),
        folder_id,
    )
    _record_owner_permission(file_instance)
    return OperationResult(file_instance, 'File registered successfully')


def rename_file(
    caller_id: int,
    file_id: int,
    name: str,
) -> OperationResult[File]:
    """Rename a file.

    Args:
        caller_id: ID of the requesting user (needs edit level).
        file_id: File ID.
        name: New name.

    Returns:
        Result with the renamed file.

    Raises:
        NotFoundError: If the file is in the trash.
    """
    file_instance = get_file_for(caller_id, file_id, PermissionLevel.EDIT)
    name = validate_name(name)
    old_name = file_instance.name

    with collaborator_errors('Rename file'):
        try:
            with transaction.atomic():
                file_instance.name = name
                file_instance.save(update_fields=['name', 'updated_at'])
        except IntegrityError as error:
            file_instance.name = old_name
            raise ConflictError('File with this name already exists') from error

    logger.info(
        'File renamed: %s -> %s (ID: %d)',
        old_name,
        name,
        file_instance.id,
    )
    return OperationResult(file_instance, 'File renamed successfully')


def get_file(caller_id: int, file_id: int) -> File:
    """Get an active file the caller may view."""
    return get_file_for(caller_id, file_id, PermissionLevel.VIEW)


def list_files(
    caller_id: int,
    folder_id: int | None = None,
    limit: int = _DEFAULT_PAGE_SIZE,
    cursor: datetime | None = None,
) -> Page[File]:
    """List the caller's own active files in one folder, newest first.

    Uses keyset pagination: pass the previous page's ``next_cursor`` to
    get the following page.

    Args:
        caller_id: ID of the requesting user.
        folder_id: Folder ID, None for files outside any folder.
        limit: Page size (1-100).
        cursor: Only files created before this moment.

    Returns:
        Page of files.
    """
    if not 1 <= limit <= _MAX_PAGE_SIZE:
        raise InvalidArgumentError(f'Limit must be between 1 and {_MAX_PAGE_SIZE}')

    queryset = File.objects.active().filter(owner_id=caller_id)
    if folder_id is None:
        queryset = queryset.filter(folder__isnull=True)
    else:
        queryset = queryset.filter(folder_id=validate_id(folder_id))
    if cursor is not None:
        queryset = queryset.filter(created_at__lt=cursor)

    with collaborator_errors('List files'):
        items = list(queryset.order_by('-created_at', '-pk')[:limit])

    has_more = len(items) == limit
    return Page(
        items=items,
        limit=limit,
        has_more=has_more,
        next_cursor=items[-1].created_at if has_more else None,
    )


def get_download_url(caller_id: int, file_id: int) -> SignedDownload:
    """Create a time-limited download URL for a file.

    Args:
        caller_id: ID of the requesting user (needs view level).
        file_id: File ID.

    Returns:
        Signed download URL with its expiry.
    """
    file_instance = get_file_for(caller_id, file_id, PermissionLevel.VIEW)
    return sign_download(file_instance)


def sign_download(file_instance: File) -> SignedDownload:
    """Ask the object store for a signed URL to a file's content.

    Args:
        file_instance: Active file.

    Returns:
        Signed download URL with its expiry.
    """
    ttl = settings.DRIVE_SIGNED_URL_TTL
    with collaborator_errors('Sign download URL'):
        url = get_storage().signed_url(file_instance.storage_path, ttl)

    logger.info('Download URL issued for file %d', file_instance.id)
    return SignedDownload(
        url=url,
        expires_at=timezone.now() + timedelta(seconds=ttl),
        file_name=file_instance.name,
    )


def get_file_for(
    caller_id: int,
    file_id: int,
    required: PermissionLevel,
) -> File:
    """Authorize the caller and load the file if it is active.

    Raises:
        NotFoundError: If the file is in the trash.
    """
    authorize(ResourceKind.FILE, file_id, caller_id, required)
    with collaborator_errors('Load file'):
        try:
            return File.objects.active().get(pk=file_id)
        except File.DoesNotExist as error:
            raise NotFoundError('File not found') from error


def _check_upload_size(size_bytes: int) -> None:
    limit = settings.DRIVE_MAX_UPLOAD_BYTES
    if size_bytes > limit:
        raise InvalidArgumentError(f'File exceeds the {limit} byte limit')


def _create_file_record(  # noqa: WPS211
    caller_id: int,
    name: str,
    storage_path: str,
    size_bytes: int,
    file_format: str,
    folder_id: int | None,
) -> File:
    with collaborator_errors('Create file record'):
        try:
            with transaction.atomic():
                file_instance = File.objects.create(
                    name=name,
                    owner_id=caller_id,
                    folder_id=folder_id,
                    storage_path=storage_path,
                    size_bytes=size_bytes,
                    format=file_format,
                )
        except IntegrityError as error:
            raise ConflictError('File already exists') from error

    logger.info(
        'File record created in database: %s (ID: %d, owner: %d)',
        storage_path,
        file_instance.id,
        caller_id,
    )
    return file_instance


def _record_owner_permission(file_instance: File) -> None:
    """Write the owner's permission row, best effort.

    Ownership is decided by ``File.owner``, never by this row, so a
    failure is logged and the upload still succeeds.
    """
    try:
        with transaction.atomic():
            FilePermission.objects.create(
                file=file_instance,
                grantee_id=file_instance.owner_id,
                level=PermissionLevel.OWNER,
            )
    except DatabaseError:
        logger.exception(
            'Failed to record owner permission for file %d',
            file_instance.id,
        )
