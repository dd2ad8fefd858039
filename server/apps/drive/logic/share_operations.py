"""Business logic for public share links.

A share token is an unguessable bearer secret. Anyone holding it can
read the file's public projection and download it, as long as the file
is public and not in the trash.
"""

import logging
import secrets
from typing import Final
from urllib.parse import quote

from django.conf import settings
from django.db import IntegrityError, transaction

from server.apps.drive.exceptions import (
    ConflictError,
    InvalidArgumentError,
    NotFoundError,
    collaborator_errors,
)
from server.apps.drive.logic.file_operations import get_file_for, sign_download
from server.apps.drive.logic.results import (
    OperationResult,
    SharedFileView,
    ShareLink,
    SignedDownload,
)
from server.apps.drive.models import File, PermissionLevel

logger = logging.getLogger(__name__)

_TOKEN_BYTES: Final = 32
_TOKEN_MAX_LENGTH: Final = 255
_ISSUE_ATTEMPTS: Final = 3


def issue_share_link(caller_id: int, file_id: int) -> ShareLink:
    """Make a file public under a fresh token.

    Any previous token of the file stops working.

    Args:
        caller_id: ID of the requesting user (needs owner level).
        file_id: File ID.

    Returns:
        Share link with its absolute URL.

    Raises:
        NotFoundError: If the file is in the trash.
        ConflictError: If no unique token could be stored.
    """
    file_instance = get_file_for(caller_id, file_id, PermissionLevel.OWNER)

    for attempt in range(1, _ISSUE_ATTEMPTS + 1):
        token = secrets.token_urlsafe(_TOKEN_BYTES)
        with collaborator_errors('Issue share link'):
            try:
                with transaction.atomic():
                    updated = File.objects.active().filter(
                        pk=file_instance.pk,
                    ).update(share_token=token, is_public=True)
            except IntegrityError:
                logger.warning(
                    'Share token collision for file %d (attempt %d)',
                    file_instance.pk,
                    attempt,
                )
                continue
        if not updated:
            raise NotFoundError('File not found')

        file_instance.share_token = token
        file_instance.is_public = True
        logger.info('Share link issued for file %d', file_instance.pk)
        return ShareLink(url=build_share_url(token), token=token, file=file_instance)

    raise ConflictError('Could not generate a unique share token')


def revoke_share_link(caller_id: int, file_id: int) -> OperationResult[File]:
    """Make a file private again and forget its token.

    Args:
        caller_id: ID of the requesting user (needs owner level).
        file_id: File ID.

    Returns:
        Result with the updated file.
    """
    file_instance = get_file_for(caller_id, file_id, PermissionLevel.OWNER)

    with collaborator_errors('Revoke share link'):
        File.objects.filter(pk=file_instance.pk).update(
            share_token=None,
            is_public=False,
        )

    file_instance.share_token = None
    file_instance.is_public = False
    logger.info('Share link revoked for file %d', file_instance.pk)
    return OperationResult(file_instance, 'Share link revoked')


def get_shared_file(token: str) -> SharedFileView:
    """Resolve a share token without authentication.

    Args:
        token: Share token from the link.

    Returns:
        Public projection of the file.

    Raises:
        InvalidArgumentError: If the token is empty or too long.
        NotFoundError: If the token matches no public, active file.
    """
    file_instance = _load_shared(token)
    return SharedFileView(
        id=file_instance.pk,
        name=file_instance.name,
        size_bytes=file_instance.size_bytes,
        format=file_instance.format,
        created_at=file_instance.created_at,
    )


def get_shared_download_url(token: str) -> SignedDownload:
    """Create a time-limited download URL through a share token.

    Args:
        token: Share token from the link.

    Returns:
        Signed download URL with its expiry.
    """
    return sign_download(_load_shared(token))


def build_share_url(token: str) -> str:
    """Absolute public URL for a share token."""
    base_url = settings.DRIVE_SHARE_BASE_URL.rstrip('/')
    return f'{base_url}/share/{quote(token, safe="")}'


def _load_shared(token: str) -> File:
    if not isinstance(token, str) or not token or len(token) > _TOKEN_MAX_LENGTH:
        raise InvalidArgumentError('Invalid share token')

    with collaborator_errors('Resolve share token'):
        file_instance = File.objects.active().filter(
            share_token=token,
            is_public=True,
        ).first()

    if file_instance is None:
        # Token itself is a secret, never logged
        logger.info('Share token did not resolve to a public file')
        raise NotFoundError('Shared file not found')
    return file_instance
