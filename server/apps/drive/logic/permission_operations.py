"""Business logic for permission resolution and grant management.

The owner of a resource always has implicit ``owner`` level. Grants are
additive delegations consulted only when the caller is not the owner,
and they apply to exactly one resource: nothing is inherited through
the folder tree.
"""

import logging
from typing import Final

from django.contrib.auth import get_user_model
from django.db import IntegrityError, models, transaction

from server.apps.drive.exceptions import (
    AccessDeniedError,
    ConflictError,
    InsufficientPermissionError,
    InvalidArgumentError,
    NotFoundError,
    collaborator_errors,
)
from server.apps.drive.infrastructure.metadata import validate_id
from server.apps.drive.logic.results import OperationResult
from server.apps.drive.models import (
    File,
    FilePermission,
    Folder,
    FolderPermission,
    PermissionLevel,
    ResourceKind,
)

User = get_user_model()
logger = logging.getLogger(__name__)

# Levels a grant may be created with; owner rows are engine bookkeeping
_GRANTABLE_LEVELS: Final = frozenset((PermissionLevel.VIEW, PermissionLevel.EDIT))
_EMAIL_MAX_LENGTH: Final = 254

_RESOURCE_MODELS: Final[dict[ResourceKind, type[models.Model]]] = {
    ResourceKind.FILE: File,
    ResourceKind.FOLDER: Folder,
}
_GRANT_MODELS: Final[dict[ResourceKind, type[models.Model]]] = {
    ResourceKind.FILE: FilePermission,
    ResourceKind.FOLDER: FolderPermission,
}


def authorize(
    kind: ResourceKind | str,
    resource_id: int,
    caller_id: int,
    required: PermissionLevel | str,
) -> None:
    """Check that the caller may act on a resource at the required level.

    A missing resource and a missing grant raise the same error, so
    non-owners cannot tell whether a resource exists.

    Args:
        kind: Resource kind ('file' or 'folder').
        resource_id: Resource ID.
        caller_id: ID of the requesting user.
        required: Minimum level needed for the operation.

    Raises:
        AccessDeniedError: If the resource is missing or no grant exists.
        InsufficientPermissionError: If the grant is below ``required``.
        InvalidArgumentError: If kind, id or level is malformed.
    """
    kind = ResourceKind.parse(kind)
    required = PermissionLevel.parse(required)
    resource_id = validate_id(resource_id)

    with collaborator_errors('Permission check'):
        owner_id = (
            _RESOURCE_MODELS[kind].objects
            .filter(pk=resource_id)
            .values_list('owner_id', flat=True)
            .first()
        )
        if owner_id is None:
            logger.warning(
                'Access denied: %s %d does not exist (caller %d)',
                kind,
                resource_id,
                caller_id,
            )
            raise AccessDeniedError()

        # Owner implies the maximal level
        if owner_id == caller_id:
            return

        granted = (
            _grants_for(kind, resource_id)
            .filter(grantee_id=caller_id)
            .values_list('level', flat=True)
            .first()
        )

    if granted is None:
        logger.warning(
            'Access denied: no grant on %s %d for caller %d',
            kind,
            resource_id,
            caller_id,
        )
        raise AccessDeniedError()

    if PermissionLevel(granted) < required:
        logger.warning(
            'Insufficient permission on %s %d for caller %d: %s < %s',
            kind,
            resource_id,
            caller_id,
            PermissionLevel(granted).label,
            required.label,
        )
        raise InsufficientPermissionError()


def grant_permission(
    caller_id: int,
    kind: ResourceKind | str,
    resource_id: int,
    grantee_email: str,
    level: PermissionLevel | str,
) -> OperationResult[models.Model]:
    """Create or overwrite another user's grant on a resource.

    Args:
        caller_id: ID of the requesting user (needs owner level).
        kind: Resource kind.
        resource_id: Resource ID.
        grantee_email: Email of the user receiving access.
        level: 'view' or 'edit'.

    Returns:
        Result with the stored grant.

    Raises:
        InvalidArgumentError: If the level or email is invalid, or the
            grantee already owns the resource.
        NotFoundError: If no user has that email.
    """
    kind = ResourceKind.parse(kind)
    authorize(kind, resource_id, caller_id, PermissionLevel.OWNER)

    level = PermissionLevel.parse(level)
    if level not in _GRANTABLE_LEVELS:
        raise InvalidArgumentError('Permission must be view or edit')

    email = (grantee_email or '').strip()
    if not email or '@' not in email or len(email) > _EMAIL_MAX_LENGTH:
        raise InvalidArgumentError('Valid email is required')

    with collaborator_errors('Grant permission'):
        grantee = (
            User.objects.filter(email__iexact=email)
            .order_by('pk')
            .first()
        )
        if grantee is None:
            raise NotFoundError('User not found')

        owner_id = (
            _RESOURCE_MODELS[kind].objects
            .filter(pk=resource_id)
            .values_list('owner_id', flat=True)
            .get()
        )
        if grantee.pk == owner_id:
            raise InvalidArgumentError('Owner already has full access')

        try:
            with transaction.atomic():
                grant, created = _GRANT_MODELS[kind].objects.update_or_create(
                    grantee=grantee,
                    defaults={'level': level},
                    **{_resource_field(kind): resource_id},
                )
        except IntegrityError as error:
            raise ConflictError('Permission was changed concurrently') from error

    logger.info(
        'Permission %s on %s %d: user %d -> %s',
        'granted' if created else 'updated',
        kind,
        resource_id,
        grantee.pk,
        level.label,
    )
    return OperationResult(grant, 'Permission granted')


def revoke_permission(
    caller_id: int,
    kind: ResourceKind | str,
    resource_id: int,
    grantee_id: int,
) -> OperationResult[models.Model]:
    """Remove a user's grant on a resource.

    Args:
        caller_id: ID of the requesting user (needs owner level).
        kind: Resource kind.
        resource_id: Resource ID.
        grantee_id: ID of the user losing access.

    Returns:
        Result without resource.

    Raises:
        NotFoundError: If the user had no grant.
    """
    kind = ResourceKind.parse(kind)
    authorize(kind, resource_id, caller_id, PermissionLevel.OWNER)
    grantee_id = validate_id(grantee_id)

    with collaborator_errors('Revoke permission'):
        deleted, _ = (
            _grants_for(kind, resource_id)
            .filter(grantee_id=grantee_id)
            .delete()
        )

    if not deleted:
        raise NotFoundError('Permission not found')

    logger.info(
        'Permission revoked on %s %d: user %d',
        kind,
        resource_id,
        grantee_id,
    )
    return OperationResult(None, 'Permission removed')


def list_permissions(
    caller_id: int,
    kind: ResourceKind | str,
    resource_id: int,
) -> list[models.Model]:
    """List grants on a resource, oldest first.

    Args:
        caller_id: ID of the requesting user (needs owner level).
        kind: Resource kind.
        resource_id: Resource ID.

    Returns:
        Grants with their grantee loaded.
    """
    kind = ResourceKind.parse(kind)
    authorize(kind, resource_id, caller_id, PermissionLevel.OWNER)

    with collaborator_errors('List permissions'):
        return list(
            _grants_for(kind, resource_id)
            .select_related('grantee')
            .order_by('created_at', 'pk'),
        )


def _resource_field(kind: ResourceKind) -> str:
    return 'file_id' if kind == ResourceKind.FILE else 'folder_id'


def _grants_for(kind: ResourceKind, resource_id: int) -> models.QuerySet:
    return _GRANT_MODELS[kind].objects.filter(
        **{_resource_field(kind): resource_id},
    )
