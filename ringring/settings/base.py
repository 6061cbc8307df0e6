from pathlib import Path

from decouple import Csv, config

BASE_DIR = Path(__file__).resolve().parent.parent.parent

SECRET_KEY = config('SECRET_KEY', default='insecure-dev-key')
DEBUG = config('DEBUG', default=False, cast=bool)
ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1', cast=Csv())

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'django_celery_beat',
    'apps.events',
    'apps.telephony',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'ringring.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'ringring.wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'en-gb'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
MEDIA_URL = config('MEDIA_URL', default='/media/')
MEDIA_ROOT = config('MEDIA_ROOT', default=str(BASE_DIR / 'media'))

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.SessionAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAdminUser',
    ],
}

# Celery
CELERY_BROKER_URL = config('REDIS_URL', default='redis://localhost:6379/0')
CELERY_TIMEZONE = 'UTC'
CELERY_TASK_SERIALIZER = 'json'
CELERY_ACCEPT_CONTENT = ['json']

# Twilio
TWILIO_ACCOUNT_SID = config('TWILIO_ACCOUNT_SID', default='')
TWILIO_AUTH_TOKEN = config('TWILIO_AUTH_TOKEN', default='')
TWILIO_REGULATORY_BUNDLE_SID = config('TWILIO_REGULATORY_BUNDLE_SID', default='')
TWILIO_ADDRESS_SID = config('TWILIO_ADDRESS_SID', default='')
TWILIO_HTTP_TIMEOUT = config('TWILIO_HTTP_TIMEOUT', default=10, cast=int)
WEBHOOK_BASE_URL = config('WEBHOOK_BASE_URL', default='')
CRON_SECRET = config('CRON_SECRET', default='')

# Number lifecycle
DEFAULT_COUNTRY_CODE = config('DEFAULT_COUNTRY_CODE', default='GB')
PURCHASE_THRESHOLD_DAYS = config('PURCHASE_THRESHOLD_DAYS', default=7, cast=int)
NUMBER_RETENTION_DAYS = config('NUMBER_RETENTION_DAYS', default=37, cast=int)
RELEASE_BATCH_SIZE = config('RELEASE_BATCH_SIZE', default=50, cast=int)
PURCHASE_BATCH_SIZE = config('PURCHASE_BATCH_SIZE', default=50, cast=int)
PROVISIONING_LEASE_SECONDS = config('PROVISIONING_LEASE_SECONDS', default=300, cast=int)
PURCHASE_TASK_HOUR = config('PURCHASE_TASK_HOUR', default=6, cast=int)
RELEASE_TASK_HOUR = config('RELEASE_TASK_HOUR', default=3, cast=int)

# Call treatment
DEFAULT_MAX_MESSAGE_SECONDS = config('DEFAULT_MAX_MESSAGE_SECONDS', default=240, cast=int)
GREETING_VOICE = config('GREETING_VOICE', default='Polly.Amy')
RECORDINGS_STORAGE_PREFIX = config('RECORDINGS_STORAGE_PREFIX', default='message-recordings')

# Email (notifier + operator alerts)
EMAIL_BACKEND = config('EMAIL_BACKEND', default='django.core.mail.backends.smtp.EmailBackend')
EMAIL_HOST = config('EMAIL_HOST', default='localhost')
EMAIL_PORT = config('EMAIL_PORT', default=25, cast=int)
EMAIL_HOST_USER = config('EMAIL_HOST_USER', default='')
EMAIL_HOST_PASSWORD = config('EMAIL_HOST_PASSWORD', default='')
EMAIL_USE_TLS = config('EMAIL_USE_TLS', default=False, cast=bool)
DEFAULT_FROM_EMAIL = config('DEFAULT_FROM_EMAIL', default='RingRing <noreply@ringring.local>')
SERVER_EMAIL = DEFAULT_FROM_EMAIL
ADMINS = [('Operations', addr) for addr in config('ADMIN_EMAILS', default='', cast=Csv())]

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': config('LOG_LEVEL', default='INFO'),
    },
}
