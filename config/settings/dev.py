"""Development settings for the club reservations project.

Debug on, every host allowed, e-mails printed to the console and the
booking policy re-read almost immediately after an edit in the admin.
Do not use these settings in production!
"""

from .base import *  # noqa: F401,F403

DEBUG = True

ALLOWED_HOSTS = ['*']

EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'

# Policy edits from another process show up within a few seconds
RESERVATION_POLICY_CACHE_TIMEOUT = int(os.environ.get('RESERVATION_POLICY_CACHE_TIMEOUT', 5))  # noqa: F405

# Rule rejections are logged at INFO by the reservation handlers
LOGGING['loggers']['apps']['level'] = os.environ.get('LOG_LEVEL', 'DEBUG')  # noqa: F405
