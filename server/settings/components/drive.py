"""Drive engine settings."""

from server.settings.components import config

# Base URL that share links are built on
DRIVE_SHARE_BASE_URL = config(
    'DRIVE_SHARE_BASE_URL',
    default='http://localhost:3000',
)

# Lifetime of signed download URLs, in seconds
DRIVE_SIGNED_URL_TTL = config('DRIVE_SIGNED_URL_TTL', cast=int, default=3600)

# Largest accepted upload, in bytes (5 MB)
DRIVE_MAX_UPLOAD_BYTES = config(
    'DRIVE_MAX_UPLOAD_BYTES',
    cast=int,
    default=5 * 1024 * 1024,
)

# Trashed resources older than this are purged by `cleanup_trash`
DRIVE_TRASH_RETENTION_DAYS = config(
    'DRIVE_TRASH_RETENTION_DAYS',
    cast=int,
    default=30,
)

# Maximum age of a caller credential, in seconds (7 days)
DRIVE_CREDENTIAL_MAX_AGE = config(
    'DRIVE_CREDENTIAL_MAX_AGE',
    cast=int,
    default=7 * 24 * 60 * 60,
)
