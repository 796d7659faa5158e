"""
Subscription domain events.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from licenses.domain.events import LicenseEvent


@dataclass(frozen=True, kw_only=True)
class SubscriptionRenewed(LicenseEvent):
    """Event raised when a subscription advances to a new period."""

    subscription_id: uuid.UUID
    period_start: datetime
    period_end: datetime
    license_expires_at: Optional[datetime]


@dataclass(frozen=True, kw_only=True)
class SubscriptionCanceled(LicenseEvent):
    """Event raised when a subscription is canceled."""

    subscription_id: uuid.UUID
