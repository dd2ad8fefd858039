"""
Django settings shared by every environment.

Values that differ between deployments are read with ``config``
from ``config/.env`` or the process environment.
"""

from typing import Any, Final

from server.settings.components import BASE_DIR, config

SECRET_KEY = config('DJANGO_SECRET_KEY', default='drive-insecure-development-key')

DEBUG = config('DJANGO_DEBUG', cast=bool, default=False)

INSTALLED_APPS: Final = (
    'django.contrib.auth',
    'django.contrib.contenttypes',

    # Our apps:
    'server.apps.drive',
)

# Database
# https://docs.djangoproject.com/en/5.1/ref/settings/#databases

_DATABASE_ENGINE: Final = config(
    'DJANGO_DATABASE_ENGINE',
    default='django.db.backends.sqlite3',
)

_DATABASE_OPTIONS: dict[str, Any] = {}
if _DATABASE_ENGINE == 'django.db.backends.postgresql':
    # Bound every query so an unhealthy database surfaces as an error
    _DATABASE_OPTIONS = {
        'connect_timeout': config(
            'DJANGO_DATABASE_CONNECT_TIMEOUT',
            cast=int,
            default=10,
        ),
        'options': '-c statement_timeout={0}'.format(
            config(
                'DJANGO_DATABASE_STATEMENT_TIMEOUT_MS',
                cast=int,
                default=15000,
            ),
        ),
    }

DATABASES = {
    'default': {
        'ENGINE': _DATABASE_ENGINE,
        'NAME': config(
            'DJANGO_DATABASE_NAME',
            default=str(BASE_DIR.joinpath('drive.sqlite3')),
        ),
        'USER': config('POSTGRES_USER', default=''),
        'PASSWORD': config('POSTGRES_PASSWORD', default=''),
        'HOST': config('DJANGO_DATABASE_HOST', default=''),
        'PORT': config('DJANGO_DATABASE_PORT', default=''),
        'CONN_MAX_AGE': config('CONN_MAX_AGE', cast=int, default=60),
        'OPTIONS': _DATABASE_OPTIONS,
    },
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Internationalization
# https://docs.djangoproject.com/en/5.1/topics/i18n/

LANGUAGE_CODE = 'en-us'

USE_I18N = True

TIME_ZONE = 'UTC'
USE_TZ = True
