"""
Shared plumbing for handlers that mutate one license.

Every mutation runs through `LicenseRepository.run_locked`, retried on
transient store failures; events are published only after the locked
unit of work has committed.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple, Type, TypeVar

from core.domain.clock import Clock
from core.domain.config import EngineConfig
from core.domain.events import DomainEvent, EventBus
from core.domain.exceptions import (
    DomainException,
    LicenseNotFoundError,
    ProductNotFoundError,
)
from core.infrastructure.database import retry_transient
from core.infrastructure.events import event_bus as default_event_bus
from core.metrics import license_lifecycle_actions_total, locked_operation_duration_seconds
from licenses.application.dto.license_dto import LicenseDTO, OperationResultDTO
from licenses.domain.events import LicenseEvent
from licenses.domain.license import License
from licenses.domain.license_key import mask_license_key, normalize_license_key
from licenses.ports.license_repository import LicenseRepository, LockedLicense
from products.domain.product import Product
from products.ports.product_repository import ProductRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")
E = TypeVar("E", bound=LicenseEvent)


def license_event(event_class: Type[E], license: License, now: datetime, **payload: Any) -> E:
    """
    Build a license event stamped with the injected clock.

    Args:
        event_class: LicenseEvent subclass
        license: License the event is about
        now: Event time
        **payload: Event-specific fields

    Returns:
        Event instance
    """
    return event_class(
        aggregate_id=str(license.id),
        occurred_at=now,
        license_id=license.id,
        license_key_partial=mask_license_key(license.license_key),
        **payload,
    )


class LockedLicenseOperations:
    """Mixin running units of work under the license row lock."""

    license_repository: LicenseRepository
    config: EngineConfig

    async def run_locked(
        self, license_key: str, work: Callable[[LockedLicense], T], operation_name: str
    ) -> T:
        """
        Run `work` under the license lock, retrying transient failures.

        Raises:
            LicenseNotFoundError: If no license has this key
            TransientStoreError: If every attempt failed transiently
        """
        with locked_operation_duration_seconds.labels(operation=operation_name).time():
            return await retry_transient(
                lambda: self.license_repository.run_locked(license_key, work),
                attempts=self.config.activation_retry_attempts,
                backoff_seconds=self.config.activation_retry_backoff_seconds,
                operation_name=operation_name,
            )


class LicenseCommandHandler(LockedLicenseOperations):
    """
    Base handler for administrative license commands.

    Subclasses set `action` and implement `execute`, which returns the
    updated license, the events to publish and extra result data.
    """

    action = ""

    def __init__(
        self,
        license_repository: LicenseRepository,
        config: EngineConfig,
        clock: Clock,
        product_repository: Optional[ProductRepository] = None,
        event_bus: Optional[EventBus] = None,
    ):
        """Initialize handler with repositories, configuration and clock."""
        self.license_repository = license_repository
        self.product_repository = product_repository
        self.config = config
        self.clock = clock
        self.event_bus = event_bus or default_event_bus

    async def execute(
        self, license_key: str, command: Any, now: datetime
    ) -> Tuple[License, List[DomainEvent], Dict[str, Any]]:
        raise NotImplementedError

    async def handle(self, command: Any) -> OperationResultDTO:
        """
        Handle a license command.

        Args:
            command: Command carrying at least `license_key`

        Returns:
            OperationResultDTO; expected failures come back with ok=False
        """
        now = self.clock.now()
        license_key = normalize_license_key(command.license_key)
        try:
            license, events, data = await self.execute(license_key, command, now)
        except DomainException as exc:
            logger.info(
                "License %s rejected for %s: %s",
                self.action,
                mask_license_key(license_key),
                exc.code,
            )
            return OperationResultDTO.failure(exc)

        license_lifecycle_actions_total.labels(action=self.action).inc()
        logger.info("License %s applied to %s", self.action, mask_license_key(license_key))
        for event in events:
            await self.event_bus.publish(event)
        return OperationResultDTO.success(LicenseDTO.from_entity(license, now), **data)

    async def load_product(self, license_key: str) -> Product:
        """
        Read the product of a license outside the lock.

        Raises:
            LicenseNotFoundError: If no license has this key
            ProductNotFoundError: If the product is gone
        """
        license = await self.license_repository.find_by_key(license_key)
        if license is None:
            raise LicenseNotFoundError()
        product = await self.product_repository.find_by_id(license.product_id)
        if product is None:
            raise ProductNotFoundError()
        return product
