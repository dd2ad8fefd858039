"""Exceptions for drive app.

Every error the engine raises derives from ``DriveError``. The message
is always safe to return to a caller: collaborator failures are logged
and replaced with a generic message before they reach this layer.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import ClassVar

from botocore.exceptions import BotoCoreError, ClientError
from django.db import DatabaseError, InterfaceError, OperationalError

from server.apps.drive.infrastructure.redaction import redact

logger = logging.getLogger(__name__)


class DriveError(Exception):
    """Base class for all engine errors."""

    code: ClassVar[str] = 'internal'
    default_message: ClassVar[str] = 'Internal error'

    def __init__(self, message: str | None = None) -> None:
        """Initialize DriveError.

        Args:
            message: Caller-safe description. Defaults to the class message.
        """
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidArgumentError(DriveError):
    """Raised for a malformed name, id, level, query or filter."""

    code = 'invalid_argument'
    default_message = 'Invalid argument'


class UnauthenticatedError(DriveError):
    """Raised when a caller credential cannot be verified."""

    code = 'unauthenticated'
    default_message = 'Authentication required'


class AccessDeniedError(DriveError):
    """Raised when the caller has no access to a resource.

    Also raised when the resource does not exist, so non-owners
    cannot probe for existence.
    """

    code = 'access_denied'
    default_message = 'Access denied'


class InsufficientPermissionError(AccessDeniedError):
    """Raised when the caller's grant is below the required level."""

    code = 'insufficient_permission'
    default_message = 'Insufficient permissions'


class NotFoundError(DriveError):
    """Raised when a resource is absent or in the wrong lifecycle state."""

    code = 'not_found'
    default_message = 'Resource not found'


class ConflictError(DriveError):
    """Raised on a uniqueness violation."""

    code = 'conflict'
    default_message = 'Resource already exists'


class UnavailableError(DriveError):
    """Raised when a backing service failed or timed out (retryable)."""

    code = 'unavailable'
    default_message = 'Service temporarily unavailable, please retry'


class InternalError(DriveError):
    """Raised for unexpected failures of a backing service."""


_UNAVAILABLE_ERRORS = (
    OperationalError,
    InterfaceError,
    BotoCoreError,
    ClientError,
)


@contextmanager
def collaborator_errors(operation: str) -> Iterator[None]:
    """Translate backing-service failures into engine errors.

    The original error is logged (through the redacting filter) and
    chained, its text never becomes part of the raised message.

    Args:
        operation: Short description used in the log line.

    Yields:
        Nothing, wraps the block.

    Raises:
        UnavailableError: On connectivity failures and timeouts.
        InternalError: On any other database failure.
    """
    try:
        yield
    except DriveError:
        raise
    except _UNAVAILABLE_ERRORS as error:
        logger.exception('%s failed: %s', operation, redact(str(error)))
        raise UnavailableError() from error
    except DatabaseError as error:
        logger.exception('%s failed: %s', operation, redact(str(error)))
        raise InternalError() from error
