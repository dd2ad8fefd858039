"""Logging configuration.

Every module logs through ``logging.getLogger(__name__)``.
Console output passes through the redacting filter so credential-like
values never reach the log sink.
"""

from server.settings.components import config

_LOG_LEVEL = config('DRIVE_LOG_LEVEL', default='INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'console': {
            'format': '%(asctime)s %(levelname)s %(name)s %(message)s',
        },
    },
    'filters': {
        'redact_credentials': {
            '()': 'server.apps.drive.infrastructure.redaction.RedactingFilter',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'console',
            'filters': ['redact_credentials'],
        },
    },
    'loggers': {
        'server': {
            'handlers': ['console'],
            'level': _LOG_LEVEL,
            'propagate': True,
        },
        'django': {
            'handlers': ['console'],
            'level': 'WARNING',
            'propagate': True,
        },
        'botocore': {
            'handlers': ['console'],
            'level': 'WARNING',
            'propagate': False,
        },
    },
}
