from datetime import timedelta
from pathlib import Path

from decouple import config, Csv
from kombu import Queue
import dj_database_url

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# Quick-start development settings - unsuitable for production
SECRET_KEY = config('SECRET_KEY', default='django-insecure-cfboard-dev-key')

DEBUG = config('DEBUG', default=False, cast=bool)

ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1,testserver', cast=Csv())

# Application definition
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    # Third-party
    'corsheaders',

    # Local
    'core',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'core.middleware.RequestLogMiddleware',
    'core.middleware.ApiErrorMiddleware',
]

ROOT_URLCONF = 'cfboard_project.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'cfboard_project.wsgi.application'

# Database
# Uses DATABASE_URL from .env
DATABASES = {
    'default': dj_database_url.config(
        default=config('DATABASE_URL', default='sqlite:///db.sqlite3')
    )
}

REDIS_URL = config('REDIS_URL', default='redis://localhost:6379/0')

# Cache used for Codeforces responses. LocMem is per process; set CACHE_BACKEND
# to django.core.cache.backends.redis.RedisCache so the warm-up worker and the
# web process share entries.
CACHE_BACKEND = config('CACHE_BACKEND', default='django.core.cache.backends.locmem.LocMemCache')
SHARED_CACHE = CACHE_BACKEND.endswith('RedisCache')
CACHES = {
    'default': {
        'BACKEND': CACHE_BACKEND,
        'LOCATION': config('CACHE_LOCATION', default=REDIS_URL if SHARED_CACHE else 'cfboard'),
    }
}

# CORS: the API serves a separate frontend. With no explicit origins every
# origin is allowed.
CORS_ALLOWED_ORIGINS = config('CORS_ALLOWED_ORIGINS', default='', cast=Csv())
CORS_ALLOW_ALL_ORIGINS = config('CORS_ALLOW_ALL_ORIGINS', default=not CORS_ALLOWED_ORIGINS, cast=bool)
CORS_URLS_REGEX = r'^/(api/.*|health)$'

# Internationalization
LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images)
STATIC_URL = 'static/'

# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Logging
LOG_LEVEL = config('LOG_LEVEL', default='INFO')
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'WARNING',
    },
    'loggers': {
        'core': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
    },
}

# Celery Configuration
CELERY_BROKER_URL = config('CELERY_BROKER_URL', default=REDIS_URL)
CELERY_RESULT_BACKEND = config('CELERY_RESULT_BACKEND', default=REDIS_URL)
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_DEFAULT_QUEUE = 'celery'
CELERY_TASK_QUEUES = (
    Queue('celery'),
    Queue('cf_warmup'),
)
CELERY_TASK_ROUTES = {
    'core.tasks.warm_team_summaries': {'queue': 'cf_warmup'},
}
TEAM_WARMUP_MINUTES = config('TEAM_WARMUP_MINUTES', default=10, cast=int)
# Warming only helps when the worker and the web process read the same cache.
CELERY_BEAT_SCHEDULE = {}
if SHARED_CACHE:
    CELERY_BEAT_SCHEDULE['warm-team-summaries'] = {
        'task': 'core.tasks.warm_all_team_summaries',
        'schedule': timedelta(minutes=TEAM_WARMUP_MINUTES),
    }

# Codeforces API
CF_API_BASE_URL = config('CF_API_BASE_URL', default='https://codeforces.com/api')
CF_MIN_CALL_INTERVAL_SECONDS = config('CF_MIN_CALL_INTERVAL_SECONDS', default=2.0, cast=float)
# Stamp the interval in redis so every process (web, workers) shares one gate.
CF_SHARED_RATE_LIMIT = config('CF_SHARED_RATE_LIMIT', default=SHARED_CACHE, cast=bool)
CF_RATE_LIMIT_REDIS_URL = config('CF_RATE_LIMIT_REDIS_URL', default=REDIS_URL)
CF_RATE_LIMIT_KEY = config('CF_RATE_LIMIT_KEY', default='cf:rate_limit')
CF_TIMEOUT_SECONDS = config('CF_TIMEOUT_SECONDS', default=10, cast=int)
CF_CACHE_DEFAULT_TTL = config('CF_CACHE_DEFAULT_TTL', default=600, cast=int)
CF_CACHE_TTLS = {
    'user_info': config('CF_CACHE_TTL_USER_INFO', default=600, cast=int),
    'user_status': config('CF_CACHE_TTL_USER_STATUS', default=600, cast=int),
    'user_rating': config('CF_CACHE_TTL_USER_RATING', default=600, cast=int),
    'user_summary': config('CF_CACHE_TTL_USER_SUMMARY', default=300, cast=int),
}
CF_SOLVED_PROBLEMS_LIMIT = config('CF_SOLVED_PROBLEMS_LIMIT', default=100, cast=int)
