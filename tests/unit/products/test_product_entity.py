"""
Unit tests for Product and Subscription domain entities.
"""
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from core.domain.exceptions import InvalidSubscriptionStateError
from core.domain.value_objects import BillingCycle, ProductLicenseType, SubscriptionStatus
from products.domain.product import Product
from subscriptions.domain.subscription import Subscription

START = datetime(2026, 1, 1, tzinfo=timezone.utc)


class TestProductEntity:
    """Tests for Product domain entity."""

    def test_create_product(self):
        """Test creating a product entity."""
        product = Product.create(name="  Desktop Suite ", max_activations=3)

        assert product.name == "Desktop Suite"
        assert product.is_active is True
        assert product.is_subscription is False
        assert product.license_expiration(START) is None

    @pytest.mark.parametrize(
        "kwargs,message",
        [
            ({"name": ""}, "cannot be empty"),
            ({"name": "X", "max_activations": 0}, "at least 1"),
            ({"name": "X", "license_duration_days": 0}, "at least 1 day"),
            ({"name": "X", "trial_period_days": -1}, "cannot be negative"),
        ],
    )
    def test_invalid_product(self, kwargs, message):
        with pytest.raises(ValueError, match=message):
            Product.create(**kwargs)

    def test_license_expiration(self):
        product = Product.create(name="X", license_duration_days=365)

        assert product.license_expiration(START) == START + timedelta(days=365)

    def test_period_end_from_billing_cycle(self):
        """Test the billing cycle decides the period length first."""
        product = Product.create(
            name="X",
            license_type=ProductLicenseType.SUBSCRIPTION,
            license_duration_days=10,
            billing_cycle=BillingCycle.QUARTERLY,
        )

        assert product.period_end(START) == START + timedelta(days=90)

    def test_period_end_fallbacks(self):
        """Test duration, then a monthly cycle, when no billing cycle is set."""
        with_duration = Product.create(name="X", license_duration_days=10)
        bare = Product.create(name="Y")

        assert with_duration.period_end(START) == START + timedelta(days=10)
        assert bare.period_end(START) == START + timedelta(days=30)


class TestSubscriptionEntity:
    """Tests for Subscription domain entity."""

    def subscription(self):
        return Subscription.create(
            license_id=uuid.uuid4(),
            period_start=START,
            period_end=START + timedelta(days=30),
            now=START,
            billing_cycle=BillingCycle.MONTHLY,
        )

    def test_create(self):
        subscription = self.subscription()

        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.auto_renew is True
        assert subscription.next_billing_date == START + timedelta(days=30)

    def test_period_must_not_be_empty(self):
        with pytest.raises(ValueError, match="after period start"):
            Subscription.create(
                license_id=uuid.uuid4(), period_start=START, period_end=START, now=START
            )

    def test_cancel_is_idempotent(self):
        """Test canceling twice keeps the first cancellation time."""
        canceled = self.subscription().cancel(START)

        assert canceled.is_canceled is True
        assert canceled.next_billing_date is None
        assert canceled.cancel(START + timedelta(days=1)) is canceled

    def test_canceled_cannot_renew(self):
        canceled = self.subscription().cancel(START)

        with pytest.raises(InvalidSubscriptionStateError):
            canceled.renew(START + timedelta(days=30), START + timedelta(days=60), START)

    def test_past_due_renews_to_active(self):
        """Test renewal restores a past due subscription."""
        past_due = self.subscription().mark_past_due(START)

        renewed = past_due.renew(START + timedelta(days=30), START + timedelta(days=60), START)

        assert renewed.status == SubscriptionStatus.ACTIVE
        assert renewed.current_period_end == START + timedelta(days=60)
