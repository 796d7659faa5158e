"""
Celery tasks for background processing.

Tasks for renewal reminders. They only publish events; license status
is never written from here.
"""
import logging
from typing import Optional

from asgiref.sync import async_to_sync
from django.conf import settings
from django.db import DatabaseError

from LicenseEntitlementService.celery import app

logger = logging.getLogger(__name__)


@app.task(bind=True, max_retries=3)
def publish_expiring_license_notices(self, days_ahead: Optional[int] = None) -> int:
    """
    Publish LicenseExpiringSoon for active licenses expiring within the window.

    Args:
        days_ahead: Window size; EXPIRING_NOTICE_DAYS from settings by default

    Returns:
        Number of notices published
    """
    from core.domain.clock import SystemClock
    from core.domain.config import EngineConfig
    from licenses.application.handlers.license_query_handlers import (
        PublishExpiringNoticesHandler,
    )
    from licenses.application.queries.license_queries import ExpiringLicensesQuery
    from licenses.infrastructure.repositories.django_license_repository import (
        DjangoLicenseRepository,
    )

    if days_ahead is None:
        days_ahead = EngineConfig.from_dict(settings.LICENSE_ENGINE).expiring_notice_days

    handler = PublishExpiringNoticesHandler(DjangoLicenseRepository(), SystemClock())
    try:
        return async_to_sync(handler.handle)(ExpiringLicensesQuery(days_ahead=days_ahead))
    except DatabaseError as exc:
        logger.error("Publishing expiring license notices failed: %s", exc, exc_info=True)
        raise self.retry(exc=exc, countdown=2**self.request.retries)
