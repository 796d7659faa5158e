"""
Subscription commands.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime


@dataclass
class RenewSubscriptionCommand:
    """Command to advance a subscription to the period [next_start, next_end)."""

    subscription_id: uuid.UUID
    next_start: datetime
    next_end: datetime


@dataclass
class CancelSubscriptionCommand:
    """Command to cancel a subscription at the end of its period."""

    subscription_id: uuid.UUID
