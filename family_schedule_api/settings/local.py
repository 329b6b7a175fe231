from .base import *


DEBUG = True

SECRET_KEY = "secret"  # noqa: S105

LOGGING["loggers"][""]["level"] = "DEBUG"  # type: ignore[index]
