import os

from decouple import config  # type: ignore
from dj_database_url import parse as db_url


BASE_DIR = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def base_dir_join(*args):
    return os.path.join(BASE_DIR, *args)


DEBUG = config("DEBUG", cast=bool, default=False)

ALLOWED_HOSTS: list[str] = []

DATABASES = {
    "default": config(
        "DATABASE_URL", cast=db_url, default=f"sqlite:///{base_dir_join('db.sqlite3')}"
    ),
}
INTERNAL_INSTALLED_APPS = [
    "di_core",
    "common",
    "families",
    "events",
]
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django_guid",
    *INTERNAL_INSTALLED_APPS,
]

# Only the service layer takes collaborators through `Provide[...]` markers
DI_WIRED_PACKAGES = [
    "events.services",
]

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"

# Occurrence dates are calendar dates in this time zone
TIME_ZONE = config("TIME_ZONE", default="UTC")

USE_I18N = True

USE_TZ = True

REDIS_URL = config("REDIS_URL", default="")

if REDIS_URL:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.redis.RedisCache",
            "LOCATION": REDIS_URL,
        },
    }
else:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
            "LOCATION": "family-schedule-api",
        },
    }

# Occurrence engine
OCCURRENCE_MAX_INSTANCES_PER_EVENT = config(
    "OCCURRENCE_MAX_INSTANCES_PER_EVENT", cast=int, default=1000
)
OCCURRENCE_MAX_SPAN_DAYS = {
    "DAILY": config("OCCURRENCE_MAX_SPAN_DAYS_DAILY", cast=int, default=365),
    "WEEKLY": config("OCCURRENCE_MAX_SPAN_DAYS_WEEKLY", cast=int, default=730),
    "MONTHLY": config("OCCURRENCE_MAX_SPAN_DAYS_MONTHLY", cast=int, default=1095),
    "YEARLY": config("OCCURRENCE_MAX_SPAN_DAYS_YEARLY", cast=int, default=3650),
}
OCCURRENCE_CACHE_ALIAS = config("OCCURRENCE_CACHE_ALIAS", default="default")
OCCURRENCE_CACHE_TIMEOUT = config("OCCURRENCE_CACHE_TIMEOUT", cast=int, default=300)
OCCURRENCE_DEFAULT_UPCOMING_DAYS = config("OCCURRENCE_DEFAULT_UPCOMING_DAYS", cast=int, default=90)

# Logging
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "correlation_id": {"()": "django_guid.log_filters.CorrelationId"},
    },
    "formatters": {
        "standard": {
            "format": "%(levelname)-8s [%(asctime)s] [%(correlation_id)s] %(name)s: %(message)s"
        },
    },
    "handlers": {
        "console": {
            "level": "DEBUG",
            "class": "logging.StreamHandler",
            "formatter": "standard",
            "filters": ["correlation_id"],
        },
    },
    "loggers": {
        "": {"handlers": ["console"], "level": config("LOG_LEVEL", default="INFO")},
        "django_guid": {
            "handlers": ["console"],
            "level": "WARNING",
            "propagate": False,
        },
    },
}
