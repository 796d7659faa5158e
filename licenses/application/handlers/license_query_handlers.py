"""
License query and maintenance handlers.

Reporting never writes license status: expiration is derived from
the clock at query time.
"""

import logging
from datetime import timedelta
from typing import List, Optional

from activations.application.dto.activation_dto import ActivationDTO
from activations.ports.activation_repository import ActivationRepository
from core.domain.clock import Clock
from core.domain.config import EngineConfig
from core.domain.events import EventBus
from core.domain.exceptions import (
    InvalidArgumentError,
    LicenseNotFoundError,
    ProductNotFoundError,
)
from core.infrastructure.events import event_bus as default_event_bus
from licenses.application.dto.license_detail_dto import LicenseDetailDTO
from licenses.application.dto.license_dto import LicenseDTO, LicenseStatsDTO
from licenses.application.handlers.base import license_event
from licenses.application.queries.license_queries import (
    ExpiringLicensesQuery,
    GetLicenseQuery,
    LicenseFileQuery,
    LicenseStatsQuery,
)
from licenses.application.services.license_file import render_license_file
from licenses.domain.events import LicenseExpiringSoon
from licenses.domain.license import License
from licenses.domain.license_key import LicenseSigner, normalize_license_key
from licenses.ports.license_repository import LicenseRepository
from products.ports.product_repository import ProductRepository
from subscriptions.application.dto.subscription_dto import SubscriptionDTO
from subscriptions.ports.subscription_repository import SubscriptionRepository

logger = logging.getLogger(__name__)


async def _get_license(license_repository: LicenseRepository, raw_key: str) -> License:
    license = await license_repository.find_by_key(normalize_license_key(raw_key))
    if license is None:
        raise LicenseNotFoundError()
    return license


class GetLicenseHandler:
    """Handler for GetLicenseQuery."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        activation_repository: ActivationRepository,
        subscription_repository: SubscriptionRepository,
        clock: Clock,
    ):
        self.license_repository = license_repository
        self.activation_repository = activation_repository
        self.subscription_repository = subscription_repository
        self.clock = clock

    async def handle(self, query: GetLicenseQuery) -> LicenseDetailDTO:
        """
        Handle get license query.

        Raises:
            LicenseNotFoundError: If no license has this key
        """
        license = await _get_license(self.license_repository, query.license_key)
        activations = await self.activation_repository.find_all_by_license(license.id)
        subscription = await self.subscription_repository.find_by_license_id(license.id)
        return LicenseDetailDTO(
            license=LicenseDTO.from_entity(license, self.clock.now()),
            activations=[ActivationDTO.from_entity(activation) for activation in activations],
            subscription=SubscriptionDTO.from_entity(subscription) if subscription else None,
        )


class LicenseStatsHandler:
    """Handler for LicenseStatsQuery."""

    def __init__(self, license_repository: LicenseRepository, clock: Clock):
        self.license_repository = license_repository
        self.clock = clock

    async def handle(self, query: LicenseStatsQuery) -> LicenseStatsDTO:
        counts = await self.license_repository.stats(self.clock.now(), query.product_id)
        return LicenseStatsDTO(**counts)


class ExpiringLicensesHandler:
    """Handler for ExpiringLicensesQuery."""

    def __init__(self, license_repository: LicenseRepository, clock: Clock):
        self.license_repository = license_repository
        self.clock = clock

    async def find(self, days_ahead: int) -> List[License]:
        if days_ahead < 0:
            raise InvalidArgumentError("days_ahead cannot be negative")
        now = self.clock.now()
        return await self.license_repository.find_expiring(now, now + timedelta(days=days_ahead))

    async def handle(self, query: ExpiringLicensesQuery) -> List[LicenseDTO]:
        """
        Handle expiring licenses query.

        Args:
            query: ExpiringLicensesQuery

        Returns:
            Active licenses expiring within the window, soonest first
        """
        licenses = await self.find(query.days_ahead)
        now = self.clock.now()
        return [LicenseDTO.from_entity(license, now) for license in licenses]


class PublishExpiringNoticesHandler:
    """
    Publishes LicenseExpiringSoon for every license in the window.

    Downstream subscribers deliver the reminders; nothing is written here.
    """

    def __init__(
        self,
        license_repository: LicenseRepository,
        clock: Clock,
        event_bus: Optional[EventBus] = None,
    ):
        self.expiring = ExpiringLicensesHandler(license_repository, clock)
        self.clock = clock
        self.event_bus = event_bus or default_event_bus

    async def handle(self, query: ExpiringLicensesQuery) -> int:
        licenses = await self.expiring.find(query.days_ahead)
        now = self.clock.now()
        for license in licenses:
            await self.event_bus.publish(
                license_event(
                    LicenseExpiringSoon,
                    license,
                    now,
                    expires_at=license.effective_expires_at,
                    customer_email=str(license.customer_email),
                )
            )
        logger.info("Published %d expiring license notice(s)", len(licenses))
        return len(licenses)


class PurgeRevokedLicensesHandler:
    """Deletes revoked licenses that have not changed for a while."""

    def __init__(self, license_repository: LicenseRepository, clock: Clock):
        self.license_repository = license_repository
        self.clock = clock

    async def handle(self, older_than_days: int, dry_run: bool = False) -> int:
        """
        Purge revoked licenses.

        Args:
            older_than_days: Minimum age of the last change
            dry_run: Only count

        Returns:
            Number of licenses purged (or that would be)
        """
        if older_than_days < 0:
            raise InvalidArgumentError("older_than_days cannot be negative")
        cutoff = self.clock.now() - timedelta(days=older_than_days)
        count = await self.license_repository.purge_revoked(cutoff, dry_run=dry_run)
        logger.info(
            "%s %d revoked license(s) older than %d day(s)",
            "Would purge" if dry_run else "Purged",
            count,
            older_than_days,
        )
        return count


class LicenseFileHandler:
    """Handler for LicenseFileQuery."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        product_repository: ProductRepository,
        signer: LicenseSigner,
        config: EngineConfig,
    ):
        self.license_repository = license_repository
        self.product_repository = product_repository
        self.signer = signer
        self.config = config

    async def handle(self, query: LicenseFileQuery) -> str:
        """
        Handle license file query.

        Raises:
            LicenseNotFoundError: If no license has this key
            ProductNotFoundError: If the product is gone
        """
        license = await _get_license(self.license_repository, query.license_key)
        product = await self.product_repository.find_by_id(license.product_id)
        if product is None:
            raise ProductNotFoundError()
        return render_license_file(
            license,
            product,
            self.signer,
            support_email=self.config.support_email,
            public_base_url=self.config.public_base_url,
        )
