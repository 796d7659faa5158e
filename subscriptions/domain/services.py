"""
Subscription domain services.
"""
from datetime import datetime
from typing import Tuple

from core.domain.exceptions import InvalidArgumentError, SubscriptionNotFoundError
from licenses.domain.license import License
from licenses.ports.license_repository import LockedLicense
from products.domain.product import Product
from subscriptions.domain.subscription import Subscription


class SubscriptionPeriodTracker:
    """
    Computes renewal windows and keeps the license in step with them.

    A renewal writes the subscription and the license in the same
    locked unit of work, so the two cannot drift apart.
    """

    @staticmethod
    def open_period(license: License, product: Product, now: datetime) -> Subscription:
        """
        Create the first period for a subscription-type license.

        Args:
            license: Newly issued or converted license
            product: Product the license belongs to
            now: Period start

        Returns:
            New Subscription entity
        """
        return Subscription.create(
            license_id=license.id,
            period_start=now,
            period_end=product.period_end(now),
            now=now,
            billing_cycle=product.billing_cycle,
            billing_interval=product.billing_interval,
        )

    @staticmethod
    def renew(
        locked: LockedLicense,
        product: Product,
        next_start: datetime,
        next_end: datetime,
        now: datetime,
    ) -> Tuple[Subscription, License]:
        """
        Advance the subscription and extend the license.

        The license is extended by the product's license duration; when
        the product has none, by the length of the new period. A license
        with a per-license expiration override has the override moved
        instead of its base expiration, as `License.extend` does.

        Returns:
            Tuple of (renewed subscription, extended license)

        Raises:
            SubscriptionNotFoundError: If the license has no subscription
            InvalidArgumentError: If next_end is not after next_start
            InvalidSubscriptionStateError: If the subscription is canceled
        """
        subscription = locked.subscription()
        if subscription is None:
            raise SubscriptionNotFoundError()
        if next_end <= next_start:
            raise InvalidArgumentError("Period end must be after period start")

        renewed = subscription.renew(next_start, next_end, now)
        days = product.license_duration_days or max((next_end - next_start).days, 1)
        extended = locked.license.renew_for(days, now)

        renewed = locked.save_subscription(renewed)
        extended = locked.save_license(extended)
        return renewed, extended

    @staticmethod
    def cancel(locked: LockedLicense, now: datetime) -> Subscription:
        """
        Cancel the subscription; the license is not touched.

        Raises:
            SubscriptionNotFoundError: If the license has no subscription
        """
        subscription = locked.subscription()
        if subscription is None:
            raise SubscriptionNotFoundError()
        return locked.save_subscription(subscription.cancel(now))
