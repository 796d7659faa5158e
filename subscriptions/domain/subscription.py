"""
Subscription domain entity.

A subscription tracks the recurring billing period of one
subscription-type license.
"""
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from core.domain.exceptions import InvalidArgumentError, InvalidSubscriptionStateError
from core.domain.value_objects import BillingCycle, SubscriptionStatus


@dataclass(frozen=True)
class Subscription:
    """
    Subscription domain entity.

    Invariant: current_period_end is strictly after current_period_start.
    """

    id: uuid.UUID
    license_id: uuid.UUID
    status: SubscriptionStatus
    current_period_start: datetime
    current_period_end: datetime
    billing_cycle: Optional[BillingCycle]
    billing_interval: int
    next_billing_date: Optional[datetime]
    auto_renew: bool
    canceled_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        """Validate subscription entity."""
        if not self.license_id:
            raise ValueError("License ID is required")
        if self.current_period_end <= self.current_period_start:
            raise ValueError("Period end must be after period start")
        if self.billing_interval < 1:
            raise ValueError("Billing interval must be at least 1")

    @classmethod
    def create(
        cls,
        license_id: uuid.UUID,
        period_start: datetime,
        period_end: datetime,
        now: datetime,
        billing_cycle: Optional[BillingCycle] = None,
        billing_interval: int = 1,
        subscription_id: Optional[uuid.UUID] = None,
    ) -> "Subscription":
        """
        Create a new active, auto-renewing Subscription.

        Args:
            license_id: License UUID
            period_start: Start of the first period
            period_end: End of the first period
            now: Creation time
            billing_cycle: Optional billing cycle
            billing_interval: Cycles per period
            subscription_id: Optional UUID (generated if not provided)

        Returns:
            Subscription entity instance
        """
        return cls(
            id=subscription_id or uuid.uuid4(),
            license_id=license_id,
            status=SubscriptionStatus.ACTIVE,
            current_period_start=period_start,
            current_period_end=period_end,
            billing_cycle=billing_cycle,
            billing_interval=billing_interval,
            next_billing_date=period_end,
            auto_renew=True,
            canceled_at=None,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_canceled(self) -> bool:
        return self.status == SubscriptionStatus.CANCELED

    def renew(self, next_start: datetime, next_end: datetime, now: datetime) -> "Subscription":
        """
        Advance to the next billing period.

        Raises:
            InvalidArgumentError: If next_end is not after next_start
            InvalidSubscriptionStateError: If the subscription is canceled
        """
        if next_end <= next_start:
            raise InvalidArgumentError("Period end must be after period start")
        if self.is_canceled:
            raise InvalidSubscriptionStateError("Canceled subscriptions cannot be renewed")
        return replace(
            self,
            status=SubscriptionStatus.ACTIVE,
            current_period_start=next_start,
            current_period_end=next_end,
            next_billing_date=next_end,
            updated_at=now,
        )

    def cancel(self, now: datetime) -> "Subscription":
        """Cancel; the license keeps running until its own expiration."""
        if self.is_canceled:
            return self
        return replace(
            self,
            status=SubscriptionStatus.CANCELED,
            auto_renew=False,
            canceled_at=now,
            next_billing_date=None,
            updated_at=now,
        )

    def mark_past_due(self, now: datetime) -> "Subscription":
        if self.is_canceled:
            raise InvalidSubscriptionStateError("Canceled subscriptions cannot become past due")
        return replace(self, status=SubscriptionStatus.PAST_DUE, updated_at=now)
