"""Caller identity verification.

Credentials are strings signed with Django's signing framework by
whichever service logs users in. This module only verifies them and
resolves the stable user id the engine trusts as ``caller_id``.
"""

import logging
from typing import Final

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core import signing

from server.apps.drive.exceptions import UnauthenticatedError

logger = logging.getLogger(__name__)

User = get_user_model()

# Salt shared with the service that signs credentials
CREDENTIAL_SALT: Final = 'drive.identity'
_BEARER_PREFIX: Final = 'bearer '


def resolve_caller(credential: str | None) -> int:
    """Verify a credential and return the caller's user id.

    Accepts the bare credential or an ``Authorization`` header value
    (``Bearer <credential>``).

    Args:
        credential: Signed credential.

    Returns:
        ID of an existing, active user.

    Raises:
        UnauthenticatedError: If the credential is missing, tampered,
            expired, or names an unknown or inactive user.
    """
    if not credential or not credential.strip():
        raise UnauthenticatedError('Access token required')

    token = credential.strip()
    if token.lower().startswith(_BEARER_PREFIX):
        token = token[len(_BEARER_PREFIX):].strip()

    try:
        payload = signing.loads(
            token,
            salt=CREDENTIAL_SALT,
            max_age=settings.DRIVE_CREDENTIAL_MAX_AGE,
        )
    except signing.SignatureExpired as error:
        logger.warning('Expired credential presented')
        raise UnauthenticatedError('Access token expired') from error
    except signing.BadSignature as error:
        logger.warning('Invalid credential presented')
        raise UnauthenticatedError('Invalid access token') from error

    user_id = payload.get('user_id') if isinstance(payload, dict) else None
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        logger.warning('Credential without a user id presented')
        raise UnauthenticatedError('Invalid access token')

    if not User.objects.filter(pk=user_id, is_active=True).exists():
        logger.warning('Credential for unknown or inactive user: %d', user_id)
        raise UnauthenticatedError('Invalid access token')

    logger.debug('Caller resolved: %d', user_id)
    return user_id
