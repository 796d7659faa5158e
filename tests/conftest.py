"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timezone

import pytest
from asgiref.sync import async_to_sync

from activations.application.handlers.activate_license_handler import ActivateLicenseHandler
from activations.application.handlers.deactivate_license_handler import (
    DeactivateLicenseHandler,
)
from activations.infrastructure.repositories.django_activation_repository import (
    DjangoActivationRepository,
)
from core.domain.clock import FixedClock
from core.domain.config import EngineConfig
from core.domain.value_objects import BillingCycle, ProductLicenseType
from licenses.application.handlers.issue_license_handler import LicenseIssuer
from licenses.domain.license_key import generate_license_key
from licenses.domain.services import LicenseLifecycleManager
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository
from products.domain.product import Product
from products.infrastructure.repositories.django_product_repository import DjangoProductRepository
from subscriptions.infrastructure.repositories.django_subscription_repository import (
    DjangoSubscriptionRepository,
)
from tests.fakes import (
    InMemoryActivationRepository,
    InMemoryLicenseRepository,
    InMemoryProductRepository,
    InMemoryStore,
    InMemorySubscriptionRepository,
    RecordingEventBus,
)

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    """Fixture for a clock frozen at NOW."""
    return FixedClock(NOW)


@pytest.fixture
def config():
    """Fixture for engine configuration without retry backoff."""
    return EngineConfig(signing_secret="test-secret", activation_retry_backoff_seconds=0)


@pytest.fixture
def strict_config():
    """Fixture for engine configuration that fails on bookkeeping anomalies."""
    return EngineConfig(
        signing_secret="test-secret",
        activation_retry_backoff_seconds=0,
        strict_invariants=True,
    )


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def product_repository(store):
    return InMemoryProductRepository(store)


@pytest.fixture
def license_repository(store):
    return InMemoryLicenseRepository(store)


@pytest.fixture
def activation_repository(store):
    return InMemoryActivationRepository(store)


@pytest.fixture
def subscription_repository(store):
    return InMemorySubscriptionRepository(store)


@pytest.fixture
def event_bus():
    return RecordingEventBus()


@pytest.fixture
def perpetual_product(store):
    """Fixture for a perpetual product allowing two activations."""
    product = Product.create(name="Desktop Suite", max_activations=2, trial_period_days=14)
    store.products[product.id] = product
    return product


@pytest.fixture
def subscription_product(store):
    """Fixture for a monthly subscription product."""
    product = Product.create(
        name="Cloud Sync",
        max_activations=3,
        license_type=ProductLicenseType.SUBSCRIPTION,
        license_duration_days=30,
        billing_cycle=BillingCycle.MONTHLY,
        grace_period_days=5,
    )
    store.products[product.id] = product
    return product


@pytest.fixture
def make_license(store, clock):
    """Factory storing a freshly issued license for a product."""

    def _make(product, license_key=None, **overrides):
        license, subscription = LicenseLifecycleManager.issue(
            product,
            license_key or generate_license_key(),
            order_ref=overrides.pop("order_ref", "order-1"),
            customer_email=overrides.pop("customer_email", "customer@example.com"),
            now=clock.now(),
            **overrides,
        )
        store.licenses[license.id] = license
        if subscription is not None:
            store.subscriptions[license.id] = subscription
        return license

    return _make


@pytest.fixture
def issuer(product_repository, license_repository, config, clock, event_bus):
    return LicenseIssuer(
        product_repository=product_repository,
        license_repository=license_repository,
        config=config,
        clock=clock,
        event_bus=event_bus,
    )


@pytest.fixture
def activate_handler(license_repository, config, clock, event_bus):
    return ActivateLicenseHandler(license_repository, config, clock, event_bus=event_bus)


@pytest.fixture
def deactivate_handler(license_repository, config, clock, event_bus):
    return DeactivateLicenseHandler(license_repository, config, clock, event_bus=event_bus)


@pytest.fixture
def lifecycle(license_repository, product_repository, config, clock, event_bus):
    """Factory building any license command handler against the fakes."""

    def _build(handler_class):
        return handler_class(
            license_repository,
            config,
            clock,
            product_repository=product_repository,
            event_bus=event_bus,
        )

    return _build


# Django-backed fixtures


@pytest.fixture
def django_license_repository():
    return DjangoLicenseRepository()


@pytest.fixture
def django_product_repository():
    return DjangoProductRepository()


@pytest.fixture
def django_activation_repository():
    return DjangoActivationRepository()


@pytest.fixture
def django_subscription_repository():
    return DjangoSubscriptionRepository()


@pytest.fixture
def db_product(db, django_product_repository):
    """Fixture for a perpetual Product saved in database."""
    product = Product.create(name="Desktop Suite", max_activations=2, trial_period_days=14)
    return async_to_sync(django_product_repository.save)(product)


@pytest.fixture
def db_subscription_product(db, django_product_repository):
    """Fixture for a monthly subscription Product saved in database."""
    product = Product.create(
        name="Cloud Sync",
        max_activations=3,
        license_type=ProductLicenseType.SUBSCRIPTION,
        license_duration_days=30,
        billing_cycle=BillingCycle.MONTHLY,
    )
    return async_to_sync(django_product_repository.save)(product)


@pytest.fixture
def api_client():
    """Fixture for DRF API client."""
    from rest_framework.test import APIClient

    return APIClient()


@pytest.fixture
def api_key_client(db, api_client):
    """API client carrying a valid X-API-Key header."""
    from core.infrastructure.models import ApiKey

    api_key = ApiKey(name="tests")
    api_key.save()
    api_client.credentials(HTTP_X_API_KEY=api_key.raw_key)
    return api_client
