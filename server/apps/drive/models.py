"""Database models for drive app."""

from typing import Final, Self, final, override

from django.contrib.auth import get_user_model
from django.db import models

from server.apps.drive.exceptions import InvalidArgumentError
from server.apps.drive.infrastructure.metadata import NAME_MAX_LENGTH

User = get_user_model()

# Constants for field max lengths
_FORMAT_MAX_LENGTH: Final = 100
_STORAGE_PATH_MAX_LENGTH: Final = 1024
_SHARE_TOKEN_MAX_LENGTH: Final = 255


class PermissionLevel(models.IntegerChoices):
    """Access level of a grant.

    Members compare by their integer value, so ``VIEW < EDIT < OWNER``
    holds for the enum itself.
    """

    VIEW = 1, 'view'
    EDIT = 2, 'edit'
    OWNER = 3, 'owner'

    @classmethod
    def parse(cls, level: 'str | PermissionLevel') -> Self:
        """Turn a level name into a member.

        Args:
            level: Level name ('view', 'edit', 'owner') or a member.

        Returns:
            Matching PermissionLevel.

        Raises:
            InvalidArgumentError: If the name is unknown.
        """
        if isinstance(level, cls):
            return level
        for member in cls:
            if member.label == str(level).strip().lower():
                return member
        raise InvalidArgumentError('Invalid permission level')


class ResourceKind(models.TextChoices):
    """The two kinds of resources the engine manages."""

    FILE = 'file', 'File'
    FOLDER = 'folder', 'Folder'

    @classmethod
    def parse(cls, kind: 'str | ResourceKind') -> Self:
        """Turn a kind name into a member.

        Raises:
            InvalidArgumentError: If the kind is unknown.
        """
        try:
            return cls(kind)
        except ValueError as error:
            raise InvalidArgumentError('Invalid resource kind') from error


class TrashableQuerySet(models.QuerySet):
    """Lifecycle filters shared by folders and files."""

    def active(self) -> Self:
        """Resources that are not in the trash."""
        return self.filter(trashed_at__isnull=True)

    def trashed(self) -> Self:
        """Resources that are in the trash."""
        return self.filter(trashed_at__isnull=False)


@final
class Folder(models.Model):
    """Folder in a user's tree.

    ``parent`` forms the hierarchy (null means root). Moving a folder to
    the trash does not touch its children; only permanent deletion
    cascades down the tree.
    """

    name = models.CharField(max_length=NAME_MAX_LENGTH)

    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='folders',
    )

    parent = models.ForeignKey(
        'self',
        on_delete=models.CASCADE,
        related_name='children',
        null=True,
        blank=True,
        db_index=True,
    )

    trashed_at = models.DateTimeField(null=True, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TrashableQuerySet.as_manager()

    class Meta:
        """Model metadata."""

        verbose_name = 'Folder'  # type: ignore[mutable-override]
        verbose_name_plural = 'Folders'  # type: ignore[mutable-override]
        ordering = ['name']

        indexes = [
            # Owner listings of active folders
            models.Index(
                fields=['owner', 'trashed_at'],
                name='folders_owner_trashed_idx',
            ),
            models.Index(
                fields=['parent', 'trashed_at'],
                name='folders_parent_trashed_idx',
            ),
        ]

        constraints = [
            models.UniqueConstraint(
                fields=['owner', 'parent', 'name'],
                name='folders_owner_parent_name_unique',
            ),
            # NULL parents are distinct in SQL, root level needs its own rule
            models.UniqueConstraint(
                fields=['owner', 'name'],
                condition=models.Q(parent__isnull=True),
                name='folders_owner_root_name_unique',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.owner_id}:{self.name}'

    @property
    def is_trashed(self) -> bool:
        """Whether the folder is in the trash."""
        return self.trashed_at is not None


@final
class File(models.Model):
    """File whose bytes live in the object store.

    ``storage_path`` is the opaque object store key. It is generated once
    at upload time and never reused.
    """

    name = models.CharField(max_length=NAME_MAX_LENGTH)

    size_bytes = models.BigIntegerField(help_text='File size in bytes')

    format = models.CharField(  # noqa: WPS125
        max_length=_FORMAT_MAX_LENGTH,
        help_text='MIME type',
    )

    storage_path = models.CharField(
        max_length=_STORAGE_PATH_MAX_LENGTH,
        unique=True,
        help_text='Object store key: {owner_id}/{uuid}_{name}',
    )

    owner = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='files',
    )

    folder = models.ForeignKey(
        Folder,
        on_delete=models.CASCADE,
        related_name='files',
        null=True,
        blank=True,
    )

    # Public sharing
    share_token = models.CharField(
        max_length=_SHARE_TOKEN_MAX_LENGTH,
        unique=True,
        null=True,
        blank=True,
    )
    is_public = models.BooleanField(default=False)

    trashed_at = models.DateTimeField(null=True, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = TrashableQuerySet.as_manager()

    class Meta:
        """Model metadata."""

        verbose_name = 'File'  # type: ignore[mutable-override]
        verbose_name_plural = 'Files'  # type: ignore[mutable-override]
        ordering = ['-created_at']

        indexes = [
            models.Index(
                fields=['owner', 'trashed_at'],
                name='files_owner_trashed_idx',
            ),
            models.Index(
                fields=['folder', 'trashed_at'],
                name='files_folder_trashed_idx',
            ),
            # Recent files and search tiebreak
            models.Index(
                fields=['-created_at'],
                name='files_created_idx',
            ),
            models.Index(fields=['format'], name='files_format_idx'),
            models.Index(fields=['size_bytes'], name='files_size_idx'),
        ]

        constraints = [
            models.CheckConstraint(
                condition=models.Q(size_bytes__gte=0),
                name='files_size_non_negative',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'{self.owner_id}:{self.name}'

    @property
    def is_trashed(self) -> bool:
        """Whether the file is in the trash."""
        return self.trashed_at is not None


class _PermissionGrant(models.Model):
    """Delegated access of one user to one resource."""

    grantee = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='+',
    )

    level = models.PositiveSmallIntegerField(choices=PermissionLevel.choices)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        """Model metadata."""

        abstract = True

    @property
    def permission(self) -> PermissionLevel:
        """Grant level as an enum member."""
        return PermissionLevel(self.level)


@final
class FolderPermission(_PermissionGrant):
    """Grant on a folder. Applies to that folder only, not its contents."""

    folder = models.ForeignKey(
        Folder,
        on_delete=models.CASCADE,
        related_name='permissions',
    )

    class Meta:
        """Model metadata."""

        verbose_name = 'Folder permission'  # type: ignore[mutable-override]
        verbose_name_plural = 'Folder permissions'  # type: ignore[mutable-override]
        ordering = ['created_at']

        constraints = [
            models.UniqueConstraint(
                fields=['folder', 'grantee'],
                name='folder_permissions_unique',
            ),
        ]

        indexes = [
            models.Index(
                fields=['grantee', 'folder'],
                name='folder_perms_grantee_idx',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'folder {self.folder_id}: {self.grantee_id}={self.permission.label}'


@final
class FilePermission(_PermissionGrant):
    """Grant on a single file."""

    file = models.ForeignKey(  # noqa: WPS110
        File,
        on_delete=models.CASCADE,
        related_name='permissions',
    )

    class Meta:
        """Model metadata."""

        verbose_name = 'File permission'  # type: ignore[mutable-override]
        verbose_name_plural = 'File permissions'  # type: ignore[mutable-override]
        ordering = ['created_at']

        constraints = [
            models.UniqueConstraint(
                fields=['file', 'grantee'],
                name='file_permissions_unique',
            ),
        ]

        indexes = [
            models.Index(
                fields=['grantee', 'file'],
                name='file_perms_grantee_idx',
            ),
        ]

    @override
    def __str__(self) -> str:
        """String representation."""
        return f'file {self.file_id}: {self.grantee_id}={self.permission.label}'
