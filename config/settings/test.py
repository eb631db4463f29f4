"""Test settings.

File-backed SQLite (so threaded tests share one database and its write
lock), eager Celery and the locmem mail backend so the suite
runs without Redis or an SMTP server.
"""

import os
import tempfile

from .base import *  # noqa: F401,F403

DEBUG = False

TEST_DB_PATH = os.environ.get(
    'TEST_DB_PATH', os.path.join(tempfile.gettempdir(), 'club-reservations-test.sqlite3')
)

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': TEST_DB_PATH,
        'OPTIONS': SQLITE_OPTIONS,  # noqa: F405
        'TEST': {'NAME': TEST_DB_PATH},
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'club-reservations-tests',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

STORAGES = {
    'default': {
        'BACKEND': 'django.core.files.storage.FileSystemStorage',
    },
    'staticfiles': {
        'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage',
    },
}

CLUB_TIME_ZONE = 'Europe/Madrid'

LOGGING['handlers']['console']['level'] = 'WARNING'  # noqa: F405
