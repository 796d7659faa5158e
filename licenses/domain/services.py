"""
License domain services.

Domain services contain business logic that doesn't naturally
fit within a single entity. Every mutating operation here takes a
LockedLicense, so admin actions and activations share one locking
discipline on the license row.
"""
from datetime import datetime
from typing import List, Optional, Tuple

from activations.domain.activation import Activation
from activations.domain.services import ActivationManager
from core.domain.value_objects import LicenseType
from licenses.domain.license import License
from licenses.ports.license_repository import LockedLicense
from products.domain.product import Product
from subscriptions.domain.services import SubscriptionPeriodTracker
from subscriptions.domain.subscription import Subscription


class LicenseLifecycleManager:
    """Domain service for managing license lifecycle."""

    @staticmethod
    def issue(
        product: Product,
        license_key: str,
        order_ref: str,
        customer_email: str,
        now: datetime,
        customer_name: str = "",
        user_ref: Optional[str] = None,
        custom_max_activations: Optional[int] = None,
        custom_expires_at: Optional[datetime] = None,
    ) -> Tuple[License, Optional[Subscription]]:
        """
        Build a new active license for one purchased unit of a product.

        Cap, type and the machine id requirement are copied from the
        product. Subscription products
        also get an expiration from the license duration and a first
        subscription period.

        Returns:
            Tuple of (license, subscription or None)
        """
        license_type = (
            LicenseType.SUBSCRIPTION if product.is_subscription else LicenseType.PERPETUAL
        )
        expires_at = product.license_expiration(now) if product.is_subscription else None
        license = License.create(
            license_key=license_key,
            product_id=product.id,
            order_ref=order_ref,
            customer_email=customer_email,
            customer_name=customer_name,
            user_ref=user_ref,
            now=now,
            license_type=license_type,
            max_activations=product.max_activations,
            expires_at=expires_at,
            custom_max_activations=custom_max_activations,
            custom_expires_at=custom_expires_at,
            requires_machine_id=product.requires_machine_id,
        )
        subscription = None
        if product.is_subscription:
            subscription = SubscriptionPeriodTracker.open_period(license, product, now)
        return license, subscription

    @staticmethod
    def revoke(locked: LockedLicense, now: datetime) -> Tuple[License, List[Activation]]:
        """
        Revoke the license and close all of its activations.

        Revoking an already revoked license still sweeps activations,
        so an activation that slipped in is closed.

        Returns:
            Tuple of (revoked license, closed activations)
        """
        revoked = locked.save_license(locked.license.revoke(now))
        closed = ActivationManager.close_all(locked, now)
        return revoked, closed

    @staticmethod
    def suspend(locked: LockedLicense, now: datetime) -> License:
        """Suspend without touching activations."""
        return locked.save_license(locked.license.suspend(now))

    @staticmethod
    def reactivate(locked: LockedLicense, now: datetime) -> License:
        return locked.save_license(locked.license.reactivate(now))

    @staticmethod
    def extend(locked: LockedLicense, days: int, now: datetime) -> License:
        return locked.save_license(locked.license.extend(days, now))

    @staticmethod
    def transfer(
        locked: LockedLicense,
        customer_email: str,
        now: datetime,
        customer_name: Optional[str] = None,
        user_ref: Optional[str] = None,
    ) -> License:
        return locked.save_license(
            locked.license.transfer(
                customer_email, now, customer_name=customer_name, user_ref=user_ref
            )
        )

    @staticmethod
    def set_overrides(
        locked: LockedLicense,
        custom_max_activations: Optional[int],
        custom_expires_at: Optional[datetime],
        now: datetime,
    ) -> License:
        return locked.save_license(
            locked.license.with_overrides(custom_max_activations, custom_expires_at, now)
        )

    @staticmethod
    def start_trial(
        locked: LockedLicense, product: Product, days: Optional[int], now: datetime
    ) -> Optional[License]:
        """
        Convert the license to a trial.

        Args:
            days: Trial length; defaults to the product's trial period

        Returns:
            The trial license, or None if the resolved length is not positive
        """
        trial_days = days if days is not None else product.trial_period_days
        if not trial_days or trial_days <= 0:
            return None
        return locked.save_license(locked.license.start_trial(trial_days, now))

    @staticmethod
    def convert_trial_to_subscription(
        locked: LockedLicense, product: Product, now: datetime
    ) -> Tuple[License, Optional[Subscription]]:
        """
        Turn a trial into a subscription license.

        A subscription is opened when the product is sold by
        subscription and the license does not have one yet.

        Returns:
            Tuple of (converted license, newly opened subscription or None)
        """
        converted = locked.save_license(
            locked.license.convert_trial_to_subscription(product.license_expiration(now), now)
        )
        opened = None
        if product.is_subscription and locked.subscription() is None:
            opened = locked.save_subscription(
                SubscriptionPeriodTracker.open_period(converted, product, now)
            )
        return converted, opened

    @staticmethod
    def enter_grace_period(
        locked: LockedLicense, product: Product, default_days: int, now: datetime
    ) -> License:
        """
        Open a grace window after a failed payment.

        Status stays as it is; an active subscription is marked past due.
        """
        days = product.grace_period_days if product.grace_period_days is not None else default_days
        license = locked.save_license(locked.license.enter_grace_period(days, now))
        subscription = locked.subscription()
        if subscription is not None and not subscription.is_canceled:
            locked.save_subscription(subscription.mark_past_due(now))
        return license

