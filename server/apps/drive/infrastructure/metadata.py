"""Name validation and metadata helpers for drive resources."""

import mimetypes
import re
import uuid
from typing import BinaryIO, Final

from server.apps.drive.exceptions import InvalidArgumentError

NAME_MAX_LENGTH: Final = 255
_DEFAULT_FORMAT: Final = 'application/octet-stream'
_FORMAT_MAX_LENGTH: Final = 100

# Path separators and control characters are never valid in a name
_FORBIDDEN_NAME_CHARS: Final = re.compile(r'[/\\\x00-\x1f\x7f]')
_RESERVED_NAMES: Final = frozenset(('.', '..'))


def validate_name(name: str | None) -> str:
    """Validate and normalize a folder or file name.

    Args:
        name: Proposed name.

    Returns:
        Name with surrounding whitespace removed.

    Raises:
        InvalidArgumentError: If the name is empty, too long or unsafe.
    """
    if not isinstance(name, str):
        raise InvalidArgumentError('Name is required')

    cleaned = name.strip()
    if not cleaned:
        raise InvalidArgumentError('Name is required')
    if len(cleaned) > NAME_MAX_LENGTH:
        raise InvalidArgumentError(
            f'Name must be at most {NAME_MAX_LENGTH} characters',
        )
    if cleaned in _RESERVED_NAMES or _FORBIDDEN_NAME_CHARS.search(cleaned):
        raise InvalidArgumentError('Name contains invalid characters')
    return cleaned


def validate_id(resource_id: object) -> int:
    """Validate a resource identifier.

    Args:
        resource_id: Identifier as received from the caller.

    Returns:
        Positive integer id.

    Raises:
        InvalidArgumentError: If the id is not a positive integer.
    """
    if isinstance(resource_id, bool):
        raise InvalidArgumentError('Invalid id')
    try:
        parsed = int(resource_id)  # type: ignore[call-overload]
    except (TypeError, ValueError) as error:
        raise InvalidArgumentError('Invalid id') from error
    if parsed < 1:
        raise InvalidArgumentError('Invalid id')
    return parsed


def detect_format(filename: str, content_type: str | None = None) -> str:
    """Determine the MIME-like format of a file.

    Uses the declared content type when given, otherwise guesses from
    the filename extension.

    Args:
        filename: Filename with extension.
        content_type: Content type declared by the uploader.

    Returns:
        MIME type string (e.g., 'image/jpeg', 'application/pdf').
        Returns 'application/octet-stream' if type cannot be determined.
    """
    if content_type and content_type.strip():
        declared = content_type.strip().lower()
        if len(declared) > _FORMAT_MAX_LENGTH:
            raise InvalidArgumentError('Invalid content type')
        return declared

    mime_type, _ = mimetypes.guess_type(filename)
    if mime_type is None:
        return _DEFAULT_FORMAT
    return mime_type


def get_content_size(file_obj: BinaryIO) -> int:
    """Get size of a file-like object.

    Args:
        file_obj: File-like object.

    Returns:
        Size in bytes. The file pointer is left at the beginning.
    """
    if hasattr(file_obj, 'size'):
        return file_obj.size
    file_obj.seek(0, 2)
    size = file_obj.tell()
    file_obj.seek(0)
    return size


def generate_storage_path(owner_id: int, name: str) -> str:
    """Generate a fresh object store key for an upload.

    Keys are unique per upload and never reused, even for the same name.

    Args:
        owner_id: Owner's user ID (keeps per-user prefixes).
        name: Validated file name.

    Returns:
        Key of the form '{owner_id}/{uuid}_{name}'.
    """
    return f'{owner_id}/{uuid.uuid4().hex}_{name}'


def validate_storage_path(owner_id: int, storage_path: str) -> str:
    """Validate storage path follows user isolation rules.

    Ensures the storage path starts with the owner's ID so one user can
    never register another user's object.

    Args:
        owner_id: Owner's user ID.
        storage_path: Object store key.

    Returns:
        The storage path.

    Raises:
        InvalidArgumentError: If path doesn't start with owner_id or is invalid.
    """
    if not storage_path or not storage_path.strip():
        raise InvalidArgumentError('Storage path cannot be empty')

    first_component, _, remainder = storage_path.partition('/')
    if not remainder or '..' in storage_path.split('/'):
        raise InvalidArgumentError('Invalid storage path')

    try:
        path_owner_id = int(first_component)
    except ValueError as error:
        raise InvalidArgumentError(
            'Storage path must start with user ID',
        ) from error

    if path_owner_id != owner_id:
        raise InvalidArgumentError('Storage path does not belong to caller')
    return storage_path
