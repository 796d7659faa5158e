"""
Test settings for LicenseEntitlementService.
"""

from .base import *  # noqa: F403, F401

DEBUG = False

# Use in-memory SQLite for tests
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}
MIGRATION_MODULES = {}

# Use in-memory cache for tests
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
    }
}

# Password hashers for faster tests
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

LICENSE_ENGINE = {
    **LICENSE_ENGINE,  # noqa: F405
    "SIGNING_SECRET": "test-signing-secret",
    "ACTIVATION_RETRY_BACKOFF_SECONDS": 0,
    "STRICT_INVARIANTS": True,
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

OTEL_ENABLED = False

# Disable logging during tests
LOGGING_CONFIG = None
