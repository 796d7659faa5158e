"""
Event handlers for domain events.

These handlers process domain events after the originating
transaction has committed, for side effects like audit logging.
"""

import logging
import re

from asgiref.sync import sync_to_async

from activations.domain.events import (
    ActivationCountClamped,
    LicenseActivated,
    LicenseDeactivated,
)
from core.domain.events import DomainEvent, EventHandler
from licenses.domain.events import (
    GracePeriodEntered,
    LicenseEvent,
    LicenseExpiringSoon,
    LicenseExtended,
    LicenseIssued,
    LicenseOverridesChanged,
    LicenseReactivated,
    LicenseRevoked,
    LicenseSuspended,
    LicenseTransferred,
    TrialConverted,
    TrialStarted,
)
from subscriptions.domain.events import SubscriptionCanceled, SubscriptionRenewed

logger = logging.getLogger(__name__)

AUDITED_EVENTS = (
    LicenseIssued,
    LicenseRevoked,
    LicenseSuspended,
    LicenseReactivated,
    LicenseExtended,
    LicenseTransferred,
    LicenseOverridesChanged,
    TrialStarted,
    TrialConverted,
    GracePeriodEntered,
    LicenseExpiringSoon,
    LicenseActivated,
    LicenseDeactivated,
    ActivationCountClamped,
    SubscriptionRenewed,
    SubscriptionCanceled,
)

_BASE_FIELDS = {
    "event_type",
    "event_id",
    "aggregate_id",
    "occurred_at",
    "license_id",
    "license_key_partial",
}


def audit_action(event: DomainEvent) -> str:
    """Snake-case action name of an event, e.g. license_revoked."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", event.event_type).lower()


class AuditLogEventHandler(EventHandler):
    """
    Event handler for audit logging.

    Writes one LicenseAuditLog row per license event. Rows carry the
    masked key only.
    """

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for audit logging.

        Args:
            event: Domain event to log
        """
        if not isinstance(event, LicenseEvent):
            return
        await self._write(event)
        logger.info(
            "Audit log: %s - %s",
            event.event_type,
            event.license_key_partial,
            extra={
                "event_id": str(event.event_id),
                "event_type": event.event_type,
                "aggregate_id": event.aggregate_id,
                "occurred_at": event.occurred_at.isoformat(),
            },
        )

    @sync_to_async
    def _write(self, event: LicenseEvent) -> None:
        from licenses.infrastructure.models import LicenseAuditLog

        details = {
            key: value for key, value in event.to_dict().items() if key not in _BASE_FIELDS
        }
        # pylint: disable=no-member
        LicenseAuditLog.objects.get_or_create(
            event_id=event.event_id,
            defaults={
                "license_id": event.license_id,
                "license_key_partial": event.license_key_partial,
                "action": audit_action(event),
                "details": details,
                "created_at": event.occurred_at,
            },
        )


audit_handler = AuditLogEventHandler()


def register_event_handlers(bus=None) -> None:
    """
    Register event handlers with the event bus.

    Safe to call more than once; the module-level handler instances
    are only subscribed once per bus.

    Args:
        bus: Event bus to register with; the global bus by default
    """
    if bus is None:
        from core.infrastructure.events import event_bus as bus

    for event_type in AUDITED_EVENTS:
        bus.subscribe(event_type, audit_handler)

    logger.info("Registered audit handler for %d event types", len(AUDITED_EVENTS))
