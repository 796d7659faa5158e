"""
Base Django settings for LicenseEntitlementService.

These settings are shared across all environments.
Environment-specific overrides are in dev.py, test.py, and prod.py
"""
import os
from pathlib import Path

from celery.schedules import crontab

from .logging import get_logging_config

# Build paths inside the project
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get(
    "SECRET_KEY", "django-insecure-0m3z!k8x_r2v#license-entitlement-dev-only-key"
)

# Application definition
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third party
    "rest_framework",
    "drf_spectacular",
    # Local apps
    "core.apps.CoreConfig",
    "products",
    "licenses",
    "subscriptions",
    "activations",
    "api",
]

MIDDLEWARE = [
    "core.middleware.metrics.MetricsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    # Custom middleware
    "core.middleware.auth.APIKeyAuthenticationMiddleware",
    "core.middleware.observability.ObservabilityMiddleware",
]

ROOT_URLCONF = "LicenseEntitlementService.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "LicenseEntitlementService.wsgi.application"
ASGI_APPLICATION = "LicenseEntitlementService.asgi.application"

# Database
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": os.environ.get("DB_NAME", "license_engine"),
        "USER": os.environ.get("DB_USER", "postgres"),
        "PASSWORD": os.environ.get("DB_PASSWORD", "postgres"),
        "HOST": os.environ.get("DB_HOST", "localhost"),
        "PORT": os.environ.get("DB_PORT", "5432"),
        "OPTIONS": {
            "connect_timeout": 10,
        },
    }
}

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.CommonPasswordValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.NumericPasswordValidator",
    },
]

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images)
STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# REST Framework
REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
    ],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [],
    "UNAUTHENTICATED_USER": None,
    "EXCEPTION_HANDLER": "api.exceptions.custom_exception_handler",
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
}

# drf-spectacular settings
SPECTACULAR_SETTINGS = {
    "TITLE": "License Entitlement Service API",
    "DESCRIPTION": (
        "Issues license keys, tracks per-machine activations against "
        "entitlement caps and manages license lifecycle and subscriptions."
    ),
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
    "COMPONENT_SPLIT_REQUEST": True,
    "SCHEMA_PATH_PREFIX": "/api/v1",
    "TAGS": [
        {"name": "Product API", "description": "Validation and activation for license holders"},
        {"name": "Admin API", "description": "Issuing and lifecycle administration"},
        {"name": "Health", "description": "Health check endpoints"},
    ],
}

# Redis Cache
CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.redis.RedisCache",
        "LOCATION": os.environ.get("REDIS_URL", "redis://127.0.0.1:6379/1"),
        "OPTIONS": {
            "socket_connect_timeout": 5,
            "socket_timeout": 5,
        },
    }
}

# Entitlement engine
LICENSE_ENGINE = {
    "SIGNING_SECRET": os.environ.get("LICENSE_SIGNING_SECRET", SECRET_KEY),
    "DEFAULT_KEY_FORMAT": os.environ.get("LICENSE_KEY_FORMAT", "standard"),
    "KEY_GENERATION_ATTEMPTS": int(os.environ.get("LICENSE_KEY_GENERATION_ATTEMPTS", "5")),
    "ACTIVATION_RETRY_ATTEMPTS": int(os.environ.get("LICENSE_ACTIVATION_RETRY_ATTEMPTS", "3")),
    "ACTIVATION_RETRY_BACKOFF_SECONDS": float(
        os.environ.get("LICENSE_ACTIVATION_RETRY_BACKOFF_SECONDS", "0.05")
    ),
    "DEFAULT_GRACE_PERIOD_DAYS": int(os.environ.get("LICENSE_DEFAULT_GRACE_PERIOD_DAYS", "7")),
    "STRICT_INVARIANTS": os.environ.get("LICENSE_STRICT_INVARIANTS", "false").lower() == "true",
    "SUPPORT_EMAIL": os.environ.get("SUPPORT_EMAIL", "support@example.com"),
    "PUBLIC_BASE_URL": os.environ.get("PUBLIC_BASE_URL", "http://localhost:8000"),
    "EXPIRING_NOTICE_DAYS": int(os.environ.get("LICENSE_EXPIRING_NOTICE_DAYS", "7")),
}

# Celery
CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "redis://127.0.0.1:6379/0")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", "redis://127.0.0.1:6379/0")
CELERY_TASK_SERIALIZER = "json"
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TIMEZONE = TIME_ZONE
CELERY_BEAT_SCHEDULE = {
    "publish-expiring-license-notices": {
        "task": "core.tasks.publish_expiring_license_notices",
        "schedule": crontab(hour=6, minute=0),
    },
}

# Observability
OTEL_ENABLED = os.environ.get("OTEL_ENABLED", "false").lower() == "true"
LOGGING = get_logging_config(os.environ.get("ENVIRONMENT", "development"))
