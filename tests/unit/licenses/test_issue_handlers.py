"""
Unit tests for the issue, order and batch handlers.
"""
import asyncio
import uuid
from dataclasses import replace
from datetime import timedelta

import pytest

from core.domain.exceptions import ErrorCode
from core.domain.value_objects import KeyFormat, SubscriptionStatus
from licenses.application.commands.issue_batch import IssueBatchCommand
from licenses.application.commands.issue_license import IssueLicenseCommand
from licenses.application.commands.order_completed import OrderCompletedCommand, OrderItem
from licenses.application.handlers.issue_license_handler import (
    MAX_BATCH_SIZE,
    IssueBatchHandler,
    IssueLicenseHandler,
    LicenseIssuer,
    OrderCompletedHandler,
)
from licenses.domain.events import LicenseIssued
from licenses.domain.license_key import LicenseKeyGenerator, detect_key_format
from products.domain.product import Product


class ScriptedKeyGenerator(LicenseKeyGenerator):
    """Key generator returning a fixed sequence of keys."""

    def __init__(self, keys):
        super().__init__()
        self.keys = list(keys)

    def generate(self, key_format=None):
        return self.keys.pop(0)


@pytest.mark.asyncio
class TestIssueLicenseHandler:
    """Tests for IssueLicenseHandler."""

    async def test_issue_perpetual_license(self, issuer, perpetual_product, store, event_bus):
        """Test issuing a license copies the product terms."""
        handler = IssueLicenseHandler(issuer)

        result = await handler.handle(
            IssueLicenseCommand(
                product_id=perpetual_product.id,
                order_ref="order-42",
                customer_email="buyer@example.com",
                customer_name="Buyer",
            )
        )

        assert result.ok is True
        assert len(result.licenses) == 1
        issued = result.licenses[0]
        assert issued.status == "active"
        assert issued.license_type == "perpetual"
        assert issued.max_activations == 2
        assert issued.expires_at is None
        assert detect_key_format(issued.license_key) == KeyFormat.STANDARD
        assert len(store.licenses) == 1
        assert not store.subscriptions

        events = event_bus.of_type(LicenseIssued)
        assert len(events) == 1
        assert events[0].order_ref == "order-42"
        assert events[0].license_key_partial == issued.license_key[:8] + "..."

    async def test_issue_subscription_license(
        self, issuer, subscription_product, store, clock
    ):
        """Test subscription products get an expiration and a first period."""
        handler = IssueLicenseHandler(issuer)

        result = await handler.handle(
            IssueLicenseCommand(
                product_id=subscription_product.id,
                order_ref="order-7",
                customer_email="buyer@example.com",
            )
        )

        issued = result.licenses[0]
        assert issued.license_type == "subscription"
        assert issued.expires_at == clock.now() + timedelta(days=30)
        subscription = store.subscriptions[issued.id]
        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.current_period_start == clock.now()
        assert subscription.current_period_end == clock.now() + timedelta(days=30)

    async def test_perpetual_product_with_duration_never_expires(self, issuer, store):
        """Test a duration on a perpetual product does not give its licenses an expiry."""
        product = Product.create(name="Desktop Suite", license_duration_days=365)
        store.products[product.id] = product

        result = await IssueLicenseHandler(issuer).handle(
            IssueLicenseCommand(
                product_id=product.id, order_ref="order-8", customer_email="buyer@example.com"
            )
        )

        assert result.ok is True
        assert result.licenses[0].license_type == "perpetual"
        assert result.licenses[0].expires_at is None
        assert not store.subscriptions

    async def test_issue_with_overrides_and_format(self, issuer, perpetual_product):
        """Test per-license overrides and key format are honoured."""
        handler = IssueLicenseHandler(issuer)

        result = await handler.handle(
            IssueLicenseCommand(
                product_id=perpetual_product.id,
                order_ref="order-1",
                customer_email="buyer@example.com",
                custom_max_activations=10,
                key_format=KeyFormat.LONG,
            )
        )

        issued = result.licenses[0]
        assert issued.max_activations == 10
        assert issued.custom_max_activations == 10
        assert detect_key_format(issued.license_key) == KeyFormat.LONG

    async def test_issue_product_not_found(self, issuer):
        """Test issuing for a missing product."""
        result = await IssueLicenseHandler(issuer).handle(
            IssueLicenseCommand(
                product_id=uuid.uuid4(), order_ref="o", customer_email="buyer@example.com"
            )
        )

        assert result.ok is False
        assert result.error_code == ErrorCode.PRODUCT_NOT_FOUND

    async def test_issue_inactive_product(self, issuer, perpetual_product, store):
        """Test inactive products cannot be issued directly."""
        store.products[perpetual_product.id] = replace(perpetual_product, is_active=False)

        result = await IssueLicenseHandler(issuer).handle(
            IssueLicenseCommand(
                product_id=perpetual_product.id, order_ref="o", customer_email="buyer@example.com"
            )
        )

        assert result.ok is False
        assert result.error_code == ErrorCode.INVALID_ARGUMENT

    async def test_issue_invalid_email(self, issuer, perpetual_product, store):
        """Test invalid customer data is reported, nothing is stored."""
        result = await IssueLicenseHandler(issuer).handle(
            IssueLicenseCommand(
                product_id=perpetual_product.id, order_ref="o", customer_email="nope"
            )
        )

        assert result.ok is False
        assert result.error_code == ErrorCode.INVALID_ARGUMENT
        assert not store.licenses


@pytest.mark.asyncio
class TestLicenseIssuerKeys:
    """Tests for unique key generation."""

    async def test_collision_is_regenerated(
        self, product_repository, license_repository, config, clock, event_bus, perpetual_product
    ):
        """Test a colliding key is replaced with a fresh one."""
        license_repository.taken_keys.add("AAAA-BBBB-CCCC-DDDD")
        issuer = LicenseIssuer(
            product_repository,
            license_repository,
            config,
            clock,
            event_bus=event_bus,
            key_generator=ScriptedKeyGenerator(["AAAA-BBBB-CCCC-DDDD", "EEEE-FFFF-GGGG-HHHH"]),
        )

        license = await issuer.issue(perpetual_product, "order-1", "buyer@example.com")

        assert license.license_key == "EEEE-FFFF-GGGG-HHHH"

    async def test_exhausted_attempts(
        self, product_repository, license_repository, config, clock, event_bus, perpetual_product
    ):
        """Test running out of attempts is a transient error."""
        license_repository.taken_keys.add("AAAA-BBBB-CCCC-DDDD")
        issuer = LicenseIssuer(
            product_repository,
            license_repository,
            config,
            clock,
            event_bus=event_bus,
            key_generator=ScriptedKeyGenerator(
                ["AAAA-BBBB-CCCC-DDDD"] * config.key_generation_attempts
            ),
        )

        result = await IssueLicenseHandler(issuer).handle(
            IssueLicenseCommand(
                product_id=perpetual_product.id, order_ref="o", customer_email="buyer@example.com"
            )
        )

        assert result.ok is False
        assert result.error_code == ErrorCode.TRANSIENT_ERROR


@pytest.mark.asyncio
class TestOrderCompletedHandler:
    """Tests for OrderCompletedHandler."""

    async def test_one_license_per_unit(
        self, issuer, perpetual_product, subscription_product, store, event_bus
    ):
        """Test every purchased unit becomes a license."""
        handler = OrderCompletedHandler(issuer)

        result = await handler.handle(
            OrderCompletedCommand(
                order_ref="order-100",
                customer_email="buyer@example.com",
                items=[
                    OrderItem(product_id=perpetual_product.id, quantity=2),
                    OrderItem(product_id=subscription_product.id),
                ],
            )
        )

        assert result.ok is True
        assert len(result.licenses) == 3
        assert len({item.license_key for item in result.licenses}) == 3
        assert len(store.licenses) == 3
        assert len(store.subscriptions) == 1
        assert len(event_bus.of_type(LicenseIssued)) == 3

    async def test_replayed_order_is_idempotent(self, issuer, perpetual_product, store):
        """Test replaying an order returns the original licenses."""
        handler = OrderCompletedHandler(issuer)
        command = OrderCompletedCommand(
            order_ref="order-100",
            customer_email="buyer@example.com",
            items=[OrderItem(product_id=perpetual_product.id, quantity=2)],
        )

        first = await handler.handle(command)
        second = await handler.handle(command)

        assert second.ok is True
        assert sorted(item.license_key for item in second.licenses) == sorted(
            item.license_key for item in first.licenses
        )
        assert len(store.licenses) == 2

    async def test_unknown_product_issues_nothing(self, issuer, perpetual_product, store):
        """Test products are checked before anything is issued."""
        result = await OrderCompletedHandler(issuer).handle(
            OrderCompletedCommand(
                order_ref="order-5",
                customer_email="buyer@example.com",
                items=[
                    OrderItem(product_id=perpetual_product.id),
                    OrderItem(product_id=uuid.uuid4()),
                ],
            )
        )

        assert result.ok is False
        assert result.error_code == ErrorCode.PRODUCT_NOT_FOUND
        assert not store.licenses

    async def test_empty_order(self, issuer):
        result = await OrderCompletedHandler(issuer).handle(
            OrderCompletedCommand(order_ref="order-6", customer_email="buyer@example.com")
        )

        assert result.error_code == ErrorCode.INVALID_ARGUMENT

    async def test_zero_quantity(self, issuer, perpetual_product):
        result = await OrderCompletedHandler(issuer).handle(
            OrderCompletedCommand(
                order_ref="order-8",
                customer_email="buyer@example.com",
                items=[OrderItem(product_id=perpetual_product.id, quantity=0)],
            )
        )

        assert result.error_code == ErrorCode.INVALID_ARGUMENT

    async def test_failed_unit_stores_nothing_and_replay_completes(
        self, product_repository, license_repository, config, clock, event_bus, perpetual_product
    ):
        """Test an order whose second unit cannot get a key is issued in full on replay."""
        license_repository.taken_keys.add("BBBB-BBBB-BBBB-BBBB")
        keys = ["AAAA-AAAA-AAAA-AAAA"] + ["BBBB-BBBB-BBBB-BBBB"] * config.key_generation_attempts
        command = OrderCompletedCommand(
            order_ref="order-300",
            customer_email="buyer@example.com",
            items=[OrderItem(product_id=perpetual_product.id, quantity=3)],
        )
        failing = LicenseIssuer(
            product_repository,
            license_repository,
            config,
            clock,
            event_bus=event_bus,
            key_generator=ScriptedKeyGenerator(keys),
        )

        first = await OrderCompletedHandler(failing).handle(command)

        assert first.ok is False
        assert first.error_code == ErrorCode.TRANSIENT_ERROR
        assert not license_repository.store.licenses
        assert not event_bus.of_type(LicenseIssued)

        issuer = LicenseIssuer(
            product_repository, license_repository, config, clock, event_bus=event_bus
        )
        replay = await OrderCompletedHandler(issuer).handle(command)

        assert replay.ok is True
        assert len(replay.licenses) == 3
        assert len(license_repository.store.licenses) == 3
        assert len(event_bus.of_type(LicenseIssued)) == 3

    async def test_failed_insert_rolls_back_whole_order(
        self, issuer, license_repository, perpetual_product, store, event_bus
    ):
        """Test a store failure on the third unit keeps none of the order."""
        handler = OrderCompletedHandler(issuer)
        command = OrderCompletedCommand(
            order_ref="order-301",
            customer_email="buyer@example.com",
            items=[OrderItem(product_id=perpetual_product.id, quantity=3)],
        )
        license_repository.fail_order_at_unit = 3

        first = await handler.handle(command)

        assert first.error_code == ErrorCode.TRANSIENT_ERROR
        assert not store.licenses
        assert "order-301" not in store.orders

        license_repository.fail_order_at_unit = None
        replay = await handler.handle(command)

        assert replay.ok is True
        assert len(replay.licenses) == 3
        assert len(event_bus.of_type(LicenseIssued)) == 3

    async def test_concurrent_deliveries_issue_once(
        self, issuer, perpetual_product, store, event_bus
    ):
        """Test two simultaneous deliveries of one order issue a single set."""
        handler = OrderCompletedHandler(issuer)
        command = OrderCompletedCommand(
            order_ref="order-302",
            customer_email="buyer@example.com",
            items=[OrderItem(product_id=perpetual_product.id, quantity=2)],
        )

        first, second = await asyncio.gather(handler.handle(command), handler.handle(command))

        assert first.ok is True
        assert second.ok is True
        assert sorted(item.license_key for item in first.licenses) == sorted(
            item.license_key for item in second.licenses
        )
        assert len(store.licenses) == 2
        assert len(event_bus.of_type(LicenseIssued)) == 2

    async def test_keys_unique_within_order(
        self, product_repository, license_repository, config, clock, event_bus, perpetual_product
    ):
        """Test a key repeated by the generator inside one order is replaced."""
        issuer = LicenseIssuer(
            product_repository,
            license_repository,
            config,
            clock,
            event_bus=event_bus,
            key_generator=ScriptedKeyGenerator(
                ["AAAA-AAAA-AAAA-AAAA", "AAAA-AAAA-AAAA-AAAA", "CCCC-CCCC-CCCC-CCCC"]
            ),
        )

        result = await OrderCompletedHandler(issuer).handle(
            OrderCompletedCommand(
                order_ref="order-303",
                customer_email="buyer@example.com",
                items=[OrderItem(product_id=perpetual_product.id, quantity=2)],
            )
        )

        assert result.ok is True
        assert sorted(item.license_key for item in result.licenses) == [
            "AAAA-AAAA-AAAA-AAAA",
            "CCCC-CCCC-CCCC-CCCC",
        ]


@pytest.mark.asyncio
class TestIssueBatchHandler:
    """Tests for IssueBatchHandler."""

    async def test_batch_shares_order_reference(self, issuer, perpetual_product):
        """Test a batch shares one generated order reference."""
        result = await IssueBatchHandler(issuer).handle(
            IssueBatchCommand(
                product_id=perpetual_product.id, count=5, customer_email="reseller@example.com"
            )
        )

        assert result.ok is True
        assert len(result.licenses) == 5
        order_refs = {item.order_ref for item in result.licenses}
        assert len(order_refs) == 1
        assert order_refs.pop().startswith("batch-")

    @pytest.mark.parametrize("count", [0, MAX_BATCH_SIZE + 1])
    async def test_batch_size_limits(self, issuer, perpetual_product, store, count):
        """Test batch size must be within limits."""
        result = await IssueBatchHandler(issuer).handle(
            IssueBatchCommand(
                product_id=perpetual_product.id, count=count, customer_email="r@example.com"
            )
        )

        assert result.ok is False
        assert result.error_code == ErrorCode.INVALID_ARGUMENT
        assert not store.licenses

    async def test_batch_inactive_product(self, issuer, perpetual_product, store):
        store.products[perpetual_product.id] = replace(perpetual_product, is_active=False)

        result = await IssueBatchHandler(issuer).handle(
            IssueBatchCommand(
                product_id=perpetual_product.id, count=2, customer_email="r@example.com"
            )
        )

        assert result.error_code == ErrorCode.INVALID_ARGUMENT
