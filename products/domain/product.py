"""
Product domain entity.

A product carries the entitlement terms every license issued for it
inherits: activation cap, license type, duration and billing cycle.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from core.domain.value_objects import BillingCycle, ProductLicenseType


@dataclass(frozen=True)
class Product:
    """
    Product domain entity.

    Represents a product that can be licensed.
    This is an immutable value object with business logic.
    """

    id: uuid.UUID
    name: str
    version: str
    max_activations: int
    license_type: ProductLicenseType
    license_duration_days: Optional[int]
    billing_cycle: Optional[BillingCycle]
    billing_interval: int
    trial_period_days: int
    grace_period_days: Optional[int]
    is_active: bool
    created_at: datetime
    updated_at: datetime
    requires_machine_id: bool = False

    def __post_init__(self):
        """Validate product entity."""
        if not self.name or len(self.name.strip()) == 0:
            raise ValueError("Product name cannot be empty")
        if len(self.name) > 255:
            raise ValueError("Product name too long")
        if self.max_activations < 1:
            raise ValueError("Max activations must be at least 1")
        if self.license_duration_days is not None and self.license_duration_days < 1:
            raise ValueError("License duration must be at least 1 day")
        if self.billing_interval < 1:
            raise ValueError("Billing interval must be at least 1")
        if self.trial_period_days < 0:
            raise ValueError("Trial period cannot be negative")
        if self.grace_period_days is not None and self.grace_period_days < 0:
            raise ValueError("Grace period cannot be negative")

    @classmethod
    def create(
        cls,
        name: str,
        max_activations: int = 1,
        license_type: ProductLicenseType = ProductLicenseType.PERPETUAL,
        license_duration_days: Optional[int] = None,
        billing_cycle: Optional[BillingCycle] = None,
        billing_interval: int = 1,
        trial_period_days: int = 0,
        grace_period_days: Optional[int] = None,
        version: str = "1.0",
        requires_machine_id: bool = False,
        product_id: Optional[uuid.UUID] = None,
    ) -> "Product":
        """
        Create a new Product entity.

        Args:
            name: Product display name
            max_activations: Default activation cap for issued licenses
            license_type: Perpetual or subscription
            license_duration_days: Term of issued subscription licenses
            billing_cycle: Billing cycle for subscription products
            billing_interval: Number of cycles per billing period
            trial_period_days: Default trial length
            grace_period_days: Grace window after a failed payment
            version: Product version label
            requires_machine_id: Whether activations must report a machine id
            product_id: Optional UUID (generated if not provided)

        Returns:
            Product entity instance
        """
        now = datetime.now(timezone.utc)
        return cls(
            id=product_id or uuid.uuid4(),
            name=name.strip(),
            version=version,
            max_activations=max_activations,
            license_type=license_type,
            license_duration_days=license_duration_days,
            billing_cycle=billing_cycle,
            billing_interval=billing_interval,
            trial_period_days=trial_period_days,
            grace_period_days=grace_period_days,
            is_active=True,
            created_at=now,
            updated_at=now,
            requires_machine_id=requires_machine_id,
        )

    @property
    def is_subscription(self) -> bool:
        return self.license_type == ProductLicenseType.SUBSCRIPTION

    def license_expiration(self, from_time: datetime) -> Optional[datetime]:
        """Expiration of a subscription term started at from_time, or None without a duration."""
        if self.license_duration_days is None:
            return None
        return from_time + timedelta(days=self.license_duration_days)

    def period_end(self, period_start: datetime) -> datetime:
        """
        End of a subscription period starting at period_start.

        Uses the billing cycle when one is configured, otherwise the
        license duration, otherwise a single monthly cycle.
        """
        if self.billing_cycle is not None:
            return self.billing_cycle.next_billing_date(period_start, self.billing_interval)
        if self.license_duration_days is not None:
            return period_start + timedelta(days=self.license_duration_days)
        return BillingCycle.MONTHLY.next_billing_date(period_start)
