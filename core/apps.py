"""
Core app configuration.
"""

from django.apps import AppConfig
from django.conf import settings


class CoreConfig(AppConfig):
    """Wires event subscribers and tracing once the app registry is ready."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "core"

    def ready(self):
        from core.infrastructure.event_handlers import register_event_handlers
        from core.instrumentation import setup_opentelemetry

        register_event_handlers()
        if getattr(settings, "OTEL_ENABLED", False):
            setup_opentelemetry()
