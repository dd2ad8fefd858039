"""Custom storage backend for S3-compatible storage."""

import logging
from typing import Any, final, override

from django.core.files.storage import default_storage
from storages.backends.s3 import S3Storage

logger = logging.getLogger(__name__)


@final
class FileStorage(S3Storage):
    """Custom S3 storage backend for user files.

    Extends django-storages S3Storage with:
    - Compensation support for failed DB operations
    - Time-limited signed download URLs
    - Enhanced error logging
    """

    @override
    def save(  # noqa: WPS211
        self,
        name: str,
        content: Any,
        max_length: int | None = None,
    ) -> str:
        """Save file to S3 with error handling and logging.

        Args:
            name: Storage path for the file.
            content: File content (file-like object).
            max_length: Optional maximum length for the filename.

        Returns:
            Actual storage path used (may differ from name if conflicts).

        Raises:
            Exception: If S3 upload fails.
        """
        try:
            logger.info('Uploading file to storage: %s', name)
            saved_name = super().save(name, content, max_length)
            logger.info('Successfully uploaded file: %s', saved_name)
        except Exception:
            logger.exception('Failed to upload file to storage: %s', name)
            raise
        else:
            return saved_name

    @override
    def delete(self, name: str) -> None:
        """Delete file from S3 with error handling and logging.

        Args:
            name: Storage path of file to delete.

        Raises:
            Exception: If S3 delete fails.
        """
        try:
            logger.info('Deleting file from storage: %s', name)
            super().delete(name)
            logger.info('Successfully deleted file: %s', name)
        except Exception:
            logger.exception('Failed to delete file from storage: %s', name)
            raise

    def rollback_upload(self, name: str) -> None:
        """Delete uploaded file after its DB record could not be written.

        This is a best-effort operation - if deletion fails, the error
        is logged but not raised, so it never masks the DB error.

        Args:
            name: Storage path of file to delete.
        """
        try:
            logger.warning('Rolling back upload, deleting file: %s', name)
            self.delete(name)
            logger.info('Successfully rolled back file upload: %s', name)
        except Exception:
            # The object stays in storage without a DB row
            logger.exception(
                'Failed to rollback upload, orphaned file: %s',
                name,
            )

    def discard(self, name: str) -> bool:
        """Delete a purged file's object, best effort.

        The DB row is the source of truth for existence, so a failure
        here is logged and reported, never raised.

        Args:
            name: Storage path of file to delete.

        Returns:
            True if the object was deleted, False otherwise.
        """
        try:
            self.delete(name)
        except Exception:
            logger.exception(
                'Failed to delete purged file (orphaned): %s',
                name,
            )
            return False
        return True

    def signed_url(self, name: str, ttl_seconds: int) -> str:
        """Create a time-limited download URL.

        Args:
            name: Storage path of the file.
            ttl_seconds: URL lifetime in seconds.

        Returns:
            Presigned GET URL.
        """
        logger.debug('Signing download URL for %s (%d s)', name, ttl_seconds)
        return self.url(name, expire=ttl_seconds)


def get_storage() -> FileStorage:
    """Get the configured default storage backend.

    Returns:
        FileStorage instance with proper S3 configuration.
    """
    return default_storage  # type: ignore[return-value]
