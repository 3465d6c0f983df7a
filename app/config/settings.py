import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "dev-only-insecure-key")
DEBUG = os.getenv("DJANGO_DEBUG", "0") in {"1", "true", "yes", "on"}
ALLOWED_HOSTS = [host.strip() for host in os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if host.strip()]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "docstore",
    "registry",
    "tracking",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.locale.LocaleMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.getenv("TRACKER_DB_PATH", str(BASE_DIR / "tracker.sqlite3")),
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "tracker",
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = os.getenv("TRACKER_LANGUAGE_CODE", "en-us")
TIME_ZONE = os.getenv("TRACKER_TIME_ZONE", "Asia/Bangkok")
USE_I18N = True
USE_TZ = True

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "UNAUTHENTICATED_USER": None,
}

# Registry lookups are served from this cache for at most TRACKER_TAG_CACHE_TTL seconds.
TRACKER_TAG_CACHE_ALIAS = os.getenv("TRACKER_TAG_CACHE_ALIAS", "default")
TRACKER_TAG_CACHE_TTL = int(os.getenv("TRACKER_TAG_CACHE_TTL", "300"))
TRACKER_RECENT_CACHE_ALIAS = os.getenv("TRACKER_RECENT_CACHE_ALIAS", "default")
TRACKER_RECENT_CACHE_TTL = int(os.getenv("TRACKER_RECENT_CACHE_TTL", "86400"))
TRACKER_UNSPECIFIED_DEPARTMENT = os.getenv("TRACKER_UNSPECIFIED_DEPARTMENT", "unspecified")
TRACKER_DATE_FORMAT = os.getenv("TRACKER_DATE_FORMAT", "%m/%d/%Y")
TRACKER_TIME_FORMAT = os.getenv("TRACKER_TIME_FORMAT", "%H:%M:%S")

LOG_LEVEL = os.getenv("TRACKER_LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {"format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "default"},
    },
    "loggers": {
        "docstore": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "registry": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "tracking": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}
