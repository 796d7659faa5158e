"""
Subscription repository port (interface).

Read side only; subscriptions are written under the owning license's
lock through LockedLicense.
"""
import uuid
from abc import ABC, abstractmethod
from typing import Optional

from subscriptions.domain.subscription import Subscription


class SubscriptionRepository(ABC):
    """Abstract read-only repository for Subscription entities."""

    @abstractmethod
    async def find_by_id(self, subscription_id: uuid.UUID) -> Optional[Subscription]:
        """
        Find a subscription by ID.

        Args:
            subscription_id: Subscription UUID

        Returns:
            Subscription entity or None if not found
        """
        pass

    @abstractmethod
    async def find_by_license_id(self, license_id: uuid.UUID) -> Optional[Subscription]:
        """
        Find the subscription linked to a license.

        Args:
            license_id: License UUID

        Returns:
            Subscription entity or None if the license has none
        """
        pass
