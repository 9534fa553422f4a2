"""Development settings."""
from .base import *  # noqa: F401,F403

DEBUG = True
API_EXPOSE_ERROR_DETAILS = env.bool("API_EXPOSE_ERROR_DETAILS", default=True)  # noqa: F405

# CORS
CORS_ALLOW_ALL_ORIGINS = True

# Logging
LOGGING["root"]["level"] = "DEBUG"  # noqa: F405
LOGGING["loggers"]["bulwark"]["level"] = "DEBUG"  # noqa: F405
