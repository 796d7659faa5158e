"""
Subscription handlers.

Renewal and cancellation run under the owning license's row lock, so
the license expiration moves in the same transaction as the period.
"""

import logging
from typing import Optional

from core.domain.clock import Clock
from core.domain.config import EngineConfig
from core.domain.events import EventBus
from core.domain.exceptions import (
    DomainException,
    LicenseNotFoundError,
    ProductNotFoundError,
    SubscriptionNotFoundError,
)
from core.infrastructure.events import event_bus as default_event_bus
from core.metrics import subscription_actions_total
from licenses.application.dto.license_dto import LicenseDTO
from licenses.application.handlers.base import LockedLicenseOperations, license_event
from licenses.domain.license import License
from licenses.ports.license_repository import LicenseRepository
from products.ports.product_repository import ProductRepository
from subscriptions.application.commands.subscription_commands import (
    CancelSubscriptionCommand,
    RenewSubscriptionCommand,
)
from subscriptions.application.dto.subscription_dto import (
    SubscriptionDTO,
    SubscriptionResultDTO,
)
from subscriptions.domain.events import SubscriptionCanceled, SubscriptionRenewed
from subscriptions.domain.services import SubscriptionPeriodTracker
from subscriptions.ports.subscription_repository import SubscriptionRepository

logger = logging.getLogger(__name__)


class SubscriptionHandler(LockedLicenseOperations):
    """Base for handlers addressing a license through its subscription."""

    def __init__(
        self,
        subscription_repository: SubscriptionRepository,
        license_repository: LicenseRepository,
        product_repository: ProductRepository,
        config: EngineConfig,
        clock: Clock,
        event_bus: Optional[EventBus] = None,
    ):
        """Initialize handler with repositories, configuration and clock."""
        self.subscription_repository = subscription_repository
        self.license_repository = license_repository
        self.product_repository = product_repository
        self.config = config
        self.clock = clock
        self.event_bus = event_bus or default_event_bus

    async def owning_license(self, subscription_id) -> License:
        subscription = await self.subscription_repository.find_by_id(subscription_id)
        if subscription is None:
            raise SubscriptionNotFoundError()
        license = await self.license_repository.find_by_id(subscription.license_id)
        if license is None:
            raise LicenseNotFoundError()
        return license


class RenewSubscriptionHandler(SubscriptionHandler):
    """Handler for RenewSubscriptionCommand."""

    async def handle(self, command: RenewSubscriptionCommand) -> SubscriptionResultDTO:
        """
        Handle renew subscription command.

        The license is extended by the product's license duration, not
        by the length of the new period.

        Args:
            command: RenewSubscriptionCommand

        Returns:
            SubscriptionResultDTO with the renewed subscription and license
        """
        now = self.clock.now()
        try:
            owner = await self.owning_license(command.subscription_id)
            product = await self.product_repository.find_by_id(owner.product_id)
            if product is None:
                raise ProductNotFoundError()
            subscription, license = await self.run_locked(
                owner.license_key,
                lambda locked: SubscriptionPeriodTracker.renew(
                    locked, product, command.next_start, command.next_end, now
                ),
                "subscription_renew",
            )
        except DomainException as exc:
            logger.info(
                "Renewal of subscription %s rejected: %s", command.subscription_id, exc.code
            )
            return SubscriptionResultDTO.failure(exc)

        subscription_actions_total.labels(action="renew").inc()
        logger.info(
            "Renewed subscription %s until %s",
            subscription.id,
            subscription.current_period_end.isoformat(),
        )
        await self.event_bus.publish(
            license_event(
                SubscriptionRenewed,
                license,
                now,
                subscription_id=subscription.id,
                period_start=subscription.current_period_start,
                period_end=subscription.current_period_end,
                license_expires_at=license.effective_expires_at,
            )
        )
        return SubscriptionResultDTO(
            ok=True,
            message="Subscription renewed",
            subscription=SubscriptionDTO.from_entity(subscription),
            license=LicenseDTO.from_entity(license, now),
        )


class CancelSubscriptionHandler(SubscriptionHandler):
    """Handler for CancelSubscriptionCommand."""

    async def handle(self, command: CancelSubscriptionCommand) -> SubscriptionResultDTO:
        """
        Handle cancel subscription command.

        The license keeps running until it expires on its own.

        Args:
            command: CancelSubscriptionCommand

        Returns:
            SubscriptionResultDTO with the canceled subscription
        """
        now = self.clock.now()
        try:
            owner = await self.owning_license(command.subscription_id)

            def work(locked):
                current = locked.subscription()
                already_canceled = current is not None and current.is_canceled
                canceled = SubscriptionPeriodTracker.cancel(locked, now)
                return already_canceled, canceled, locked.license

            already_canceled, subscription, license = await self.run_locked(
                owner.license_key, work, "subscription_cancel"
            )
        except DomainException as exc:
            logger.info("Cancel of subscription %s rejected: %s", command.subscription_id, exc.code)
            return SubscriptionResultDTO.failure(exc)

        if not already_canceled:
            subscription_actions_total.labels(action="cancel").inc()
            logger.info("Canceled subscription %s", subscription.id)
            await self.event_bus.publish(
                license_event(SubscriptionCanceled, license, now, subscription_id=subscription.id)
            )
        return SubscriptionResultDTO(
            ok=True,
            message="Subscription canceled",
            subscription=SubscriptionDTO.from_entity(subscription),
            license=LicenseDTO.from_entity(license, now),
        )
