"""
This file contains all the settings used in production.

This file is required and if development.py is present these
values are overridden.
"""

from server.settings.components import config

DEBUG = False

ALLOWED_HOSTS = [
    config('DOMAIN_NAME', default='localhost'),
]

# Share links must point at the public client in production
DRIVE_SHARE_BASE_URL = config('DRIVE_SHARE_BASE_URL')
