import tempfile

from .base import *

DEBUG = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
ADMINS = [('Operations', 'ops@example.com')]

MEDIA_ROOT = tempfile.mkdtemp(prefix='ringring-test-media-')
MEDIA_URL = '/media/'

TWILIO_ACCOUNT_SID = 'ACtest'
TWILIO_AUTH_TOKEN = 'test_token'
WEBHOOK_BASE_URL = 'https://example.com'
CRON_SECRET = 'cron-secret'
