"""
Issue handlers.

Handles single issues, order-completed events and batch issues. Every
license gets a freshly generated key checked against the store before
it is inserted. Orders and batches are stored all or nothing.
"""

import logging
import uuid
from datetime import datetime
from typing import List, Optional, Set, Tuple

from core.domain.clock import Clock
from core.domain.config import EngineConfig
from core.domain.events import EventBus
from core.domain.exceptions import (
    DomainException,
    InvalidArgumentError,
    ProductNotFoundError,
    TransientStoreError,
)
from core.domain.value_objects import KeyFormat
from core.infrastructure.events import event_bus as default_event_bus
from core.metrics import licenses_issued_total
from licenses.application.commands.issue_batch import IssueBatchCommand
from licenses.application.commands.issue_license import IssueLicenseCommand
from licenses.application.commands.order_completed import OrderCompletedCommand
from licenses.application.dto.license_dto import IssueResultDTO, LicenseDTO
from licenses.application.handlers.base import license_event
from licenses.domain.events import LicenseIssued
from licenses.domain.license import License
from licenses.domain.license_key import LicenseKeyGenerator, mask_license_key
from licenses.domain.services import LicenseLifecycleManager
from licenses.ports.license_repository import LicenseRepository
from products.domain.product import Product
from products.ports.product_repository import ProductRepository
from subscriptions.domain.subscription import Subscription

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 100


class LicenseIssuer:
    """
    Issues licenses for products.

    Shared by the issue, order and batch handlers.
    """

    def __init__(
        self,
        product_repository: ProductRepository,
        license_repository: LicenseRepository,
        config: EngineConfig,
        clock: Clock,
        event_bus: Optional[EventBus] = None,
        key_generator: Optional[LicenseKeyGenerator] = None,
    ):
        """Initialize issuer with repositories, configuration and clock."""
        self.product_repository = product_repository
        self.license_repository = license_repository
        self.config = config
        self.clock = clock
        self.event_bus = event_bus or default_event_bus
        self.key_generator = key_generator or LicenseKeyGenerator(config.default_key_format)

    async def get_product(self, product_id: uuid.UUID) -> Product:
        product = await self.product_repository.find_by_id(product_id)
        if product is None:
            raise ProductNotFoundError(f"Product {product_id} not found")
        return product

    async def unique_key(
        self, key_format: Optional[KeyFormat] = None, reserved: Optional[Set[str]] = None
    ) -> str:
        """
        Generate a key that is not stored yet.

        Args:
            key_format: Key format, defaults to the configured one
            reserved: Keys already handed out but not stored yet

        Raises:
            TransientStoreError: If every attempt collided
        """
        for _ in range(self.config.key_generation_attempts):
            candidate = self.key_generator.generate(key_format)
            if reserved is not None and candidate in reserved:
                logger.warning("Generated license key repeated within the order, regenerating")
                continue
            if not await self.license_repository.key_exists(candidate):
                return candidate
            logger.warning("Generated license key collided, regenerating")
        raise TransientStoreError("Could not generate a unique license key")

    async def prepare(
        self,
        product: Product,
        order_ref: str,
        customer_email: str,
        now: datetime,
        customer_name: str = "",
        user_ref: Optional[str] = None,
        custom_max_activations: Optional[int] = None,
        custom_expires_at: Optional[datetime] = None,
        key_format: Optional[KeyFormat] = None,
        reserved: Optional[Set[str]] = None,
    ) -> Tuple[License, Optional[Subscription]]:
        """
        Build one license, and its first period, without storing it.

        Raises:
            InvalidArgumentError: If the customer data is rejected
            TransientStoreError: If no unique key could be generated
        """
        license_key = await self.unique_key(key_format, reserved)
        try:
            return LicenseLifecycleManager.issue(
                product,
                license_key=license_key,
                order_ref=order_ref,
                customer_email=customer_email,
                now=now,
                customer_name=customer_name,
                user_ref=user_ref,
                custom_max_activations=custom_max_activations,
                custom_expires_at=custom_expires_at,
            )
        except ValueError as exc:
            raise InvalidArgumentError(str(exc)) from exc

    async def record_issued(self, license: License, now: datetime) -> None:
        """Count, log and publish a stored license."""
        licenses_issued_total.labels(license_type=license.license_type.value).inc()
        logger.info(
            "Issued license %s for product %s (order %s)",
            mask_license_key(license.license_key),
            license.product_id,
            license.order_ref,
        )
        await self.event_bus.publish(
            license_event(
                LicenseIssued,
                license,
                now,
                product_id=license.product_id,
                order_ref=license.order_ref,
                license_type=license.license_type.value,
            )
        )

    async def issue(
        self,
        product: Product,
        order_ref: str,
        customer_email: str,
        customer_name: str = "",
        user_ref: Optional[str] = None,
        custom_max_activations: Optional[int] = None,
        custom_expires_at: Optional[datetime] = None,
        key_format: Optional[KeyFormat] = None,
    ) -> License:
        """
        Issue one license and, for subscription products, its first period.

        Returns:
            The stored License

        Raises:
            InvalidArgumentError: If the customer data is rejected
        """
        now = self.clock.now()
        license, subscription = await self.prepare(
            product,
            order_ref,
            customer_email,
            now,
            customer_name=customer_name,
            user_ref=user_ref,
            custom_max_activations=custom_max_activations,
            custom_expires_at=custom_expires_at,
            key_format=key_format,
        )
        saved = await self.license_repository.add(license, subscription)
        await self.record_issued(saved, now)
        return saved

    async def issue_order(
        self,
        units: List[Product],
        order_ref: str,
        customer_email: str,
        customer_name: str = "",
        user_ref: Optional[str] = None,
    ) -> List[License]:
        """
        Issue one license per unit, all or nothing, once per order.

        Every license is built before any is stored; the repository then
        inserts them in one transaction. A delivery that loses the race
        for the order gets the licenses of the delivery that won.

        Args:
            units: Product of every purchased unit
            order_ref: Order reference
            customer_email: Buyer email

        Returns:
            Every license of the order

        Raises:
            InvalidArgumentError: If the customer data is rejected
            TransientStoreError: If nothing could be stored this time
        """
        now = self.clock.now()
        reserved: Set[str] = set()
        entries = []
        for product in units:
            license, subscription = await self.prepare(
                product,
                order_ref,
                customer_email,
                now,
                customer_name=customer_name,
                user_ref=user_ref,
                reserved=reserved,
            )
            reserved.add(license.license_key)
            entries.append((license, subscription))

        stored, created = await self.license_repository.add_order(order_ref, entries)
        if not created:
            logger.info(
                "Order %s was issued concurrently, returning its %d license(s)",
                order_ref,
                len(stored),
            )
            return stored
        for license in stored:
            await self.record_issued(license, now)
        return stored

    def to_dtos(self, licenses: List[License]) -> List[LicenseDTO]:
        now = self.clock.now()
        return [LicenseDTO.from_entity(license, now) for license in licenses]


class IssueLicenseHandler:
    """Handler for IssueLicenseCommand."""

    def __init__(self, issuer: LicenseIssuer):
        self.issuer = issuer

    async def handle(self, command: IssueLicenseCommand) -> IssueResultDTO:
        """
        Handle issue license command.

        Args:
            command: IssueLicenseCommand

        Returns:
            IssueResultDTO with the issued license
        """
        try:
            product = await self.issuer.get_product(command.product_id)
            if not product.is_active:
                raise InvalidArgumentError("Product is not active")
            license = await self.issuer.issue(
                product,
                order_ref=command.order_ref,
                customer_email=command.customer_email,
                customer_name=command.customer_name,
                user_ref=command.user_ref,
                custom_max_activations=command.custom_max_activations,
                custom_expires_at=command.custom_expires_at,
                key_format=command.key_format,
            )
        except DomainException as exc:
            logger.info("License issue rejected: %s", exc.code)
            return IssueResultDTO.failure(exc)
        return IssueResultDTO(ok=True, licenses=self.issuer.to_dtos([license]))


class OrderCompletedHandler:
    """
    Handler for OrderCompletedCommand.

    Issues one license per purchased unit in one transaction. A replayed
    or concurrently delivered order returns the licenses issued the
    first time instead of issuing new ones.
    """

    def __init__(self, issuer: LicenseIssuer):
        self.issuer = issuer

    async def handle(self, command: OrderCompletedCommand) -> IssueResultDTO:
        """
        Handle order completed command.

        Args:
            command: OrderCompletedCommand

        Returns:
            IssueResultDTO with every license of the order
        """
        existing = await self.issuer.license_repository.find_by_order(command.order_ref)
        if existing:
            logger.info(
                "Order %s already has %d license(s), not issuing again",
                command.order_ref,
                len(existing),
            )
            return IssueResultDTO(ok=True, licenses=self.issuer.to_dtos(existing))

        try:
            if not command.items:
                raise InvalidArgumentError("Order has no items")
            units = []
            for item in command.items:
                if item.quantity < 1:
                    raise InvalidArgumentError("Item quantity must be at least 1")
                product = await self.issuer.get_product(item.product_id)
                units.extend([product] * item.quantity)

            issued = await self.issuer.issue_order(
                units,
                order_ref=command.order_ref,
                customer_email=command.customer_email,
                customer_name=command.customer_name,
                user_ref=command.user_ref,
            )
        except DomainException as exc:
            logger.info("Order %s rejected: %s", command.order_ref, exc.code)
            return IssueResultDTO.failure(exc)
        return IssueResultDTO(ok=True, licenses=self.issuer.to_dtos(issued))


class IssueBatchHandler:
    """Handler for IssueBatchCommand."""

    def __init__(self, issuer: LicenseIssuer):
        self.issuer = issuer

    async def handle(self, command: IssueBatchCommand) -> IssueResultDTO:
        """
        Handle batch issue command.

        The licenses share a generated `batch-...` order reference and
        are stored all or nothing.

        Args:
            command: IssueBatchCommand

        Returns:
            IssueResultDTO with the issued licenses
        """
        try:
            if not 1 <= command.count <= MAX_BATCH_SIZE:
                raise InvalidArgumentError(
                    f"Batch size must be between 1 and {MAX_BATCH_SIZE}"
                )
            product = await self.issuer.get_product(command.product_id)
            if not product.is_active:
                raise InvalidArgumentError("Product is not active")
            order_ref = f"batch-{uuid.uuid4().hex[:12]}"
            issued = await self.issuer.issue_order(
                [product] * command.count,
                order_ref=order_ref,
                customer_email=command.customer_email,
                customer_name=command.customer_name,
            )
        except DomainException as exc:
            logger.info("Batch issue rejected: %s", exc.code)
            return IssueResultDTO.failure(exc)
        return IssueResultDTO(ok=True, licenses=self.issuer.to_dtos(issued))
