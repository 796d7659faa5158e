"""
Production settings for LicenseEntitlementService.
"""

import os

from .base import *  # noqa: F403, F401
from .logging import get_logging_config

DEBUG = False

ALLOWED_HOSTS = os.environ.get("ALLOWED_HOSTS", "").split(",")

# Security settings
SECURE_SSL_REDIRECT = True
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SECURE_CONTENT_TYPE_NOSNIFF = True
X_FRAME_OPTIONS = "DENY"

# Secret key from environment
SECRET_KEY = os.environ["SECRET_KEY"]
LICENSE_ENGINE = {
    **LICENSE_ENGINE,  # noqa: F405
    "SIGNING_SECRET": os.environ["LICENSE_SIGNING_SECRET"],
}

# Logging in production
LOGGING = get_logging_config(
    "production",
    log_file=os.environ.get("LOG_FILE", "/var/log/license_engine/app.log"),
)
