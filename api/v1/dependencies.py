"""
Handler wiring for the API views.

Handlers are built per request from the Django repositories, the
engine configuration in settings and the system clock. Tests swap the
clock by patching `get_clock`.
"""

from django.conf import settings

from activations.application.handlers.activate_license_handler import ActivateLicenseHandler
from activations.application.handlers.deactivate_license_handler import (
    DeactivateLicenseHandler,
)
from activations.application.handlers.list_activations_handler import ListActivationsHandler
from activations.infrastructure.repositories.django_activation_repository import (
    DjangoActivationRepository,
)
from core.domain.clock import Clock, SystemClock
from core.domain.config import EngineConfig
from licenses.application.handlers.issue_license_handler import LicenseIssuer
from licenses.application.handlers.license_query_handlers import (
    ExpiringLicensesHandler,
    GetLicenseHandler,
    LicenseFileHandler,
    LicenseStatsHandler,
)
from licenses.application.handlers.validate_license_handler import ValidateLicenseHandler
from licenses.domain.license_key import LicenseSigner
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository
from products.infrastructure.repositories.django_product_repository import DjangoProductRepository
from subscriptions.infrastructure.repositories.django_subscription_repository import (
    DjangoSubscriptionRepository,
)

# Repositories are stateless adapters (in production, use DI container)
license_repository = DjangoLicenseRepository()
product_repository = DjangoProductRepository()
activation_repository = DjangoActivationRepository()
subscription_repository = DjangoSubscriptionRepository()

_clock = SystemClock()


def get_config() -> EngineConfig:
    return EngineConfig.from_dict(settings.LICENSE_ENGINE)


def get_clock() -> Clock:
    return _clock


def get_signer() -> LicenseSigner:
    return LicenseSigner(get_config().signing_secret)


def license_command_handler(handler_class):
    """
    Build any LicenseCommandHandler subclass.

    Args:
        handler_class: Lifecycle handler class

    Returns:
        Handler instance
    """
    return handler_class(
        license_repository=license_repository,
        config=get_config(),
        clock=get_clock(),
        product_repository=product_repository,
    )


def license_issuer() -> LicenseIssuer:
    return LicenseIssuer(
        product_repository=product_repository,
        license_repository=license_repository,
        config=get_config(),
        clock=get_clock(),
    )


def subscription_handler(handler_class):
    return handler_class(
        subscription_repository=subscription_repository,
        license_repository=license_repository,
        product_repository=product_repository,
        config=get_config(),
        clock=get_clock(),
    )


def validate_handler() -> ValidateLicenseHandler:
    return ValidateLicenseHandler(
        license_repository=license_repository,
        product_repository=product_repository,
        activation_repository=activation_repository,
        signer=get_signer(),
        clock=get_clock(),
    )


def activate_handler() -> ActivateLicenseHandler:
    return ActivateLicenseHandler(
        license_repository=license_repository, config=get_config(), clock=get_clock()
    )


def deactivate_handler() -> DeactivateLicenseHandler:
    return DeactivateLicenseHandler(
        license_repository=license_repository, config=get_config(), clock=get_clock()
    )


def list_activations_handler() -> ListActivationsHandler:
    return ListActivationsHandler(
        license_repository=license_repository, activation_repository=activation_repository
    )


def get_license_handler() -> GetLicenseHandler:
    return GetLicenseHandler(
        license_repository=license_repository,
        activation_repository=activation_repository,
        subscription_repository=subscription_repository,
        clock=get_clock(),
    )


def stats_handler() -> LicenseStatsHandler:
    return LicenseStatsHandler(license_repository=license_repository, clock=get_clock())


def expiring_handler() -> ExpiringLicensesHandler:
    return ExpiringLicensesHandler(license_repository=license_repository, clock=get_clock())


def license_file_handler() -> LicenseFileHandler:
    return LicenseFileHandler(
        license_repository=license_repository,
        product_repository=product_repository,
        signer=get_signer(),
        config=get_config(),
    )
