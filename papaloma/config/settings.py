"""
Django settings for the Papaloma Inventory client.

Only the parts of Django the client needs are configured: the cache framework
(persisted auth slice), DRF (payload validation) and logging.
"""
from pathlib import Path
import os
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent.parent

SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'papaloma-client-insecure-key')

DEBUG = os.getenv('DJANGO_DEBUG', 'False') == 'True'

INSTALLED_APPS = [
    'rest_framework',
    'papaloma.core',
]

# The client keeps no database; everything authoritative lives on the server
DATABASES = {}

LANGUAGE_CODE = 'id'
TIME_ZONE = 'Asia/Jakarta'
USE_I18N = True
USE_TZ = True

# --- Remote API ---
PAPALOMA_API_URL = os.getenv('PAPALOMA_API_URL', 'http://localhost:3000/api')
PAPALOMA_API_TIMEOUT = int(os.getenv('PAPALOMA_API_TIMEOUT', '30'))  # seconds
PAPALOMA_LOGIN_URL = '/login'

# --- Persisted auth slice ---
PAPALOMA_AUTH_STORAGE_KEY = 'auth-storage'
PAPALOMA_AUTH_CACHE = 'persistent'

# Apply only the latest response per slice instead of last-writer-wins
PAPALOMA_DISCARD_STALE_RESPONSES = os.getenv('PAPALOMA_DISCARD_STALE_RESPONSES', 'false').lower() == 'true'

REDIS_URL = os.getenv('PAPALOMA_REDIS_URL')

if REDIS_URL:
    PERSISTENT_CACHE = {
        'BACKEND': 'django_redis.cache.RedisCache',
        'LOCATION': REDIS_URL,
        'TIMEOUT': None,
        'KEY_PREFIX': 'papaloma',
        'OPTIONS': {
            'CLIENT_CLASS': 'django_redis.client.DefaultClient',
        },
    }
else:
    PERSISTENT_CACHE = {
        'BACKEND': 'django.core.cache.backends.filebased.FileBasedCache',
        'LOCATION': os.getenv('PAPALOMA_CACHE_DIR', str(Path.home() / '.papaloma' / 'cache')),
        'TIMEOUT': None,
    }

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'papaloma-default',
    },
    'persistent': PERSISTENT_CACHE,
}

REST_FRAMEWORK = {
    'UNAUTHENTICATED_USER': None,
}

# --- Logging ---
LOG_LEVEL = os.getenv('PAPALOMA_LOG_LEVEL', 'INFO')

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
    'loggers': {
        'papaloma': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
    },
}
