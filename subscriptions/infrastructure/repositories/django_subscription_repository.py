"""
Django implementation of SubscriptionRepository port.
"""

import uuid
from typing import Any, Dict, Optional

from asgiref.sync import sync_to_async

from core.domain.value_objects import BillingCycle, SubscriptionStatus
from subscriptions.domain.subscription import Subscription
from subscriptions.infrastructure.models import Subscription as SubscriptionModel
from subscriptions.ports.subscription_repository import SubscriptionRepository


def subscription_to_domain(model: SubscriptionModel) -> Subscription:
    """
    Convert Django model to domain entity.

    Args:
        model: Django Subscription model

    Returns:
        Subscription domain entity
    """
    return Subscription(
        id=model.id,
        license_id=model.license_id,
        status=SubscriptionStatus(model.status),
        current_period_start=model.current_period_start,
        current_period_end=model.current_period_end,
        billing_cycle=BillingCycle(model.billing_cycle) if model.billing_cycle else None,
        billing_interval=model.billing_interval,
        next_billing_date=model.next_billing_date,
        auto_renew=model.auto_renew,
        canceled_at=model.canceled_at,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def subscription_fields(subscription: Subscription) -> Dict[str, Any]:
    """Column values for a subscription row."""
    return {
        "license_id": subscription.license_id,
        "status": subscription.status.value,
        "current_period_start": subscription.current_period_start,
        "current_period_end": subscription.current_period_end,
        "billing_cycle": (
            subscription.billing_cycle.value if subscription.billing_cycle else None
        ),
        "billing_interval": subscription.billing_interval,
        "next_billing_date": subscription.next_billing_date,
        "auto_renew": subscription.auto_renew,
        "canceled_at": subscription.canceled_at,
        "created_at": subscription.created_at,
        "updated_at": subscription.updated_at,
    }


class DjangoSubscriptionRepository(SubscriptionRepository):
    """Django ORM implementation of SubscriptionRepository."""

    @sync_to_async
    def find_by_id(self, subscription_id: uuid.UUID) -> Optional[Subscription]:
        try:
            # pylint: disable=no-member
            model = SubscriptionModel.objects.get(id=subscription_id)
        except SubscriptionModel.DoesNotExist:  # pylint: disable=no-member
            return None
        return subscription_to_domain(model)

    @sync_to_async
    def find_by_license_id(self, license_id: uuid.UUID) -> Optional[Subscription]:
        # pylint: disable=no-member
        model = SubscriptionModel.objects.filter(license_id=license_id).first()
        return subscription_to_domain(model) if model else None
