from .base import *


SECRET_KEY = "test"  # nosec

DATABASES = {
    "default": config("TEST_DATABASE_URL", cast=db_url, default="sqlite://:memory:"),
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "family-schedule-api-test",
    },
}

# Keep engine limits at their production values so tests exercise the real bounds
OCCURRENCE_MAX_INSTANCES_PER_EVENT = 1000
OCCURRENCE_MAX_SPAN_DAYS = {
    "DAILY": 365,
    "WEEKLY": 730,
    "MONTHLY": 1095,
    "YEARLY": 3650,
}

TIME_ZONE = "UTC"
