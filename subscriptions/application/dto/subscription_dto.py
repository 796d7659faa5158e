"""
Subscription DTOs for API responses.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.domain.exceptions import DomainException
from licenses.application.dto.license_dto import LicenseDTO
from subscriptions.domain.subscription import Subscription


@dataclass
class SubscriptionDTO:
    """DTO for subscription information."""

    id: uuid.UUID
    license_id: uuid.UUID
    status: str
    current_period_start: datetime
    current_period_end: datetime
    billing_cycle: Optional[str]
    billing_interval: int
    next_billing_date: Optional[datetime]
    auto_renew: bool
    canceled_at: Optional[datetime]

    @classmethod
    def from_entity(cls, subscription: Subscription) -> "SubscriptionDTO":
        return cls(
            id=subscription.id,
            license_id=subscription.license_id,
            status=subscription.status.value,
            current_period_start=subscription.current_period_start,
            current_period_end=subscription.current_period_end,
            billing_cycle=(
                subscription.billing_cycle.value if subscription.billing_cycle else None
            ),
            billing_interval=subscription.billing_interval,
            next_billing_date=subscription.next_billing_date,
            auto_renew=subscription.auto_renew,
            canceled_at=subscription.canceled_at,
        )


@dataclass
class SubscriptionResultDTO:
    """Outcome of a renew or cancel call."""

    ok: bool
    error_code: Optional[str] = None
    message: str = ""
    subscription: Optional[SubscriptionDTO] = None
    license: Optional[LicenseDTO] = None

    @classmethod
    def failure(cls, exc: DomainException) -> "SubscriptionResultDTO":
        return cls(ok=False, error_code=exc.code, message=exc.message)
