"""
Core views for health checks and metrics.
"""

import logging

from django.core.cache import cache
from django.db import connection
from django.http import HttpResponse, JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

logger = logging.getLogger(__name__)


def check_database() -> bool:
    """Run a trivial query against the default database."""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        return True
    except Exception:  # pylint: disable=broad-exception-caught
        logger.warning("Database health check failed", exc_info=True)
        return False


def check_cache() -> bool:
    """Round-trip a value through the default cache."""
    try:
        cache.set("ready_check", "ok", 10)
        return cache.get("ready_check") == "ok"
    except Exception:  # pylint: disable=broad-exception-caught
        logger.warning("Cache health check failed", exc_info=True)
        return False


@method_decorator(csrf_exempt, name="dispatch")
class HealthView(View):
    """Health check endpoint."""

    def get(self, _request):
        """Return service health status."""
        return JsonResponse({"status": "healthy", "service": "license-entitlement-service"})


@method_decorator(csrf_exempt, name="dispatch")
class LiveView(View):
    """Liveness check endpoint; never touches dependencies."""

    def get(self, _request):
        return JsonResponse({"status": "alive"})


@method_decorator(csrf_exempt, name="dispatch")
class ReadyView(View):
    """Readiness check endpoint."""

    def get(self, _request):
        """Check if service is ready to accept traffic."""
        checks = {
            "database": check_database(),
            "cache": check_cache(),
        }

        all_healthy = all(checks.values())
        status_code = 200 if all_healthy else 503

        return JsonResponse(
            {
                "status": "ready" if all_healthy else "not_ready",
                "checks": checks,
            },
            status=status_code,
        )


class MetricsView(View):
    """Prometheus scrape endpoint."""

    def get(self, _request):
        return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)
