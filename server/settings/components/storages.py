"""Django storage configuration for S3-compatible backends.

This module configures django-storages to work with:
- MinIO for local development
- Any S3-compatible service in production

Every call to the object store is bounded by the botocore client
timeouts below; a timeout surfaces as a retryable error.
"""

from typing import Any, Final

from botocore.config import Config

from server.settings.components import config

_S3_CLIENT_CONFIG: Final = Config(
    connect_timeout=config('AWS_S3_CONNECT_TIMEOUT', cast=int, default=5),
    read_timeout=config('AWS_S3_READ_TIMEOUT', cast=int, default=30),
    retries={
        'max_attempts': config('AWS_S3_MAX_ATTEMPTS', cast=int, default=3),
        'mode': 'standard',
    },
)

# Storage configuration dictionary
# Uses S3-compatible storage for user files, local storage for static files
STORAGES: Final[dict[str, dict[str, Any]]] = {
    'default': {
        'BACKEND': 'server.apps.drive.infrastructure.storage.FileStorage',
        'OPTIONS': {
            'bucket_name': config(
                'AWS_STORAGE_BUCKET_NAME',
                default='drive-files',
            ),
            'access_key': config('AWS_ACCESS_KEY_ID', default='testing'),
            'secret_key': config('AWS_SECRET_ACCESS_KEY', default='testing'),
            'endpoint_url': config(
                'AWS_S3_ENDPOINT_URL',
                default=None,
            ),
            'region_name': config(
                'AWS_S3_REGION_NAME',
                default='us-east-1',
            ),
            'client_config': _S3_CLIENT_CONFIG,
            'file_overwrite': False,  # Prevent accidental overwrites
            'default_acl': None,  # Inherit bucket ACL
            'querystring_auth': True,  # Downloads go through signed URLs
        },
    },
    'staticfiles': {
        # Keep static files separate from user files
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}
