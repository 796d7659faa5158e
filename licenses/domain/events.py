"""
License domain events.

Domain events represent something that happened in the license domain.
License keys are carried masked; events may end up in logs.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.domain.events import DomainEvent


@dataclass(frozen=True, kw_only=True)
class LicenseEvent(DomainEvent):
    """Base class for events about a single license."""

    license_id: uuid.UUID
    license_key_partial: str


@dataclass(frozen=True, kw_only=True)
class LicenseIssued(LicenseEvent):
    """Event raised when a license is issued."""

    product_id: uuid.UUID
    order_ref: str
    license_type: str


@dataclass(frozen=True, kw_only=True)
class LicenseRevoked(LicenseEvent):
    """Event raised when a license is revoked."""

    closed_activations: int


@dataclass(frozen=True, kw_only=True)
class LicenseSuspended(LicenseEvent):
    """Event raised when a license is suspended."""


@dataclass(frozen=True, kw_only=True)
class LicenseReactivated(LicenseEvent):
    """Event raised when a suspended license is reactivated."""


@dataclass(frozen=True, kw_only=True)
class LicenseExtended(LicenseEvent):
    """Event raised when a license's expiration is pushed out."""

    days: int
    new_expiration: Optional[datetime]


@dataclass(frozen=True, kw_only=True)
class LicenseTransferred(LicenseEvent):
    """Event raised when a license changes owner."""

    previous_email: str
    new_email: str


@dataclass(frozen=True, kw_only=True)
class LicenseOverridesChanged(LicenseEvent):
    """Event raised when per-license overrides are replaced."""

    custom_max_activations: Optional[int]
    custom_expires_at: Optional[datetime]


@dataclass(frozen=True, kw_only=True)
class TrialStarted(LicenseEvent):
    """Event raised when a license becomes a trial."""

    trial_ends_at: datetime


@dataclass(frozen=True, kw_only=True)
class TrialConverted(LicenseEvent):
    """Event raised when a trial becomes a subscription license."""

    subscription_id: Optional[uuid.UUID]


@dataclass(frozen=True, kw_only=True)
class GracePeriodEntered(LicenseEvent):
    """Event raised after a failed payment opens a grace window."""

    grace_period_ends_at: datetime


@dataclass(frozen=True, kw_only=True)
class LicenseExpiringSoon(LicenseEvent):
    """Event raised for renewal reminders ahead of expiration."""

    expires_at: datetime
    customer_email: str
