"""
Django implementation of LicenseRepository port.

This adapter converts between domain entities and Django ORM models.
Every mutation of an existing license runs inside `run_locked`, which
takes a row lock on the license with SELECT ... FOR UPDATE and commits
the license, its activations and its subscription in one transaction.
"""
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from asgiref.sync import sync_to_async
from django.db import IntegrityError, transaction
from django.db.models import Q, Sum
from django.db.models.functions import Coalesce

from activations.domain.activation import Activation
from activations.infrastructure.models import LicenseActivation as ActivationModel
from activations.infrastructure.repositories.django_activation_repository import (
    activation_fields,
    activation_to_domain,
)
from core.domain.exceptions import LicenseNotFoundError, TransientStoreError
from core.domain.value_objects import Email, LicenseStatus, LicenseType
from core.infrastructure.database import translate_transient_errors
from licenses.domain.license import License
from licenses.infrastructure.models import IssuedOrder
from licenses.infrastructure.models import License as LicenseModel
from licenses.ports.license_repository import LicenseRepository, LockedLicense
from subscriptions.domain.subscription import Subscription
from subscriptions.infrastructure.models import Subscription as SubscriptionModel
from subscriptions.infrastructure.repositories.django_subscription_repository import (
    subscription_fields,
    subscription_to_domain,
)

T = TypeVar("T")


def _to_domain(model: LicenseModel) -> License:
    """
    Convert Django model to domain entity.

    Args:
        model: Django License model

    Returns:
        License domain entity
    """
    return License(
        id=model.id,
        license_key=model.license_key,
        product_id=model.product_id,
        order_ref=model.order_ref,
        user_ref=model.user_ref,
        customer_email=Email(model.customer_email),
        customer_name=model.customer_name or "",
        status=LicenseStatus(model.status),
        license_type=LicenseType(model.license_type),
        max_activations=model.max_activations,
        activation_count=model.activation_count,
        expires_at=model.expires_at,
        trial_ends_at=model.trial_ends_at,
        grace_period_ends_at=model.grace_period_ends_at,
        custom_max_activations=model.custom_max_activations,
        custom_expires_at=model.custom_expires_at,
        product_max_activations=model.product.max_activations,
        last_activated_at=model.last_activated_at,
        created_at=model.created_at,
        updated_at=model.updated_at,
        requires_machine_id=model.requires_machine_id,
    )


def _license_fields(license: License) -> Dict[str, Any]:
    """Column values for a license row."""
    return {
        "license_key": license.license_key,
        "product_id": license.product_id,
        "order_ref": license.order_ref,
        "user_ref": license.user_ref,
        "customer_email": str(license.customer_email),
        "customer_name": license.customer_name,
        "status": license.status.value,
        "license_type": license.license_type.value,
        "max_activations": license.max_activations,
        "activation_count": license.activation_count,
        "expires_at": license.expires_at,
        "trial_ends_at": license.trial_ends_at,
        "grace_period_ends_at": license.grace_period_ends_at,
        "custom_max_activations": license.custom_max_activations,
        "custom_expires_at": license.custom_expires_at,
        "requires_machine_id": license.requires_machine_id,
        "last_activated_at": license.last_activated_at,
        "created_at": license.created_at,
        "updated_at": license.updated_at,
    }


def _effective_expiration():
    return Coalesce("custom_expires_at", "expires_at")


def _claim_order(order_ref: str, license_count: int) -> bool:
    """Insert the IssuedOrder row; False if the order was already issued."""
    try:
        with transaction.atomic():
            # pylint: disable=no-member
            IssuedOrder.objects.create(order_ref=order_ref, license_count=license_count)
    except IntegrityError:
        return False
    return True


def _order_licenses(order_ref: str) -> List[License]:
    # pylint: disable=no-member
    models = (
        LicenseModel.objects.select_related("product")
        .filter(order_ref=order_ref)
        .order_by("created_at", "license_key")
    )
    return [_to_domain(model) for model in models]


class DjangoLockedLicense(LockedLicense):
    """
    License row locked by SELECT ... FOR UPDATE.

    Only valid inside the transaction opened by `run_locked`.
    """

    def __init__(self, model: LicenseModel):
        self._model = model
        self.license = _to_domain(model)

    def save_license(self, license: License) -> License:
        if license.id != self._model.id:
            raise ValueError("Locked scope only accepts its own license")
        for name, value in _license_fields(license).items():
            setattr(self._model, name, value)
        self._model.save()
        self.license = license
        return license

    def active_activation(self, machine_fingerprint: str) -> Optional[Activation]:
        # pylint: disable=no-member
        model = ActivationModel.objects.filter(
            license_id=self._model.id,
            machine_fingerprint=machine_fingerprint,
            is_active=True,
        ).first()
        return activation_to_domain(model) if model else None

    def active_activations(self) -> List[Activation]:
        # pylint: disable=no-member
        models = ActivationModel.objects.filter(license_id=self._model.id, is_active=True)
        return [activation_to_domain(model) for model in models]

    def add_activation(self, activation: Activation) -> Activation:
        # pylint: disable=no-member
        ActivationModel.objects.create(id=activation.id, **activation_fields(activation))
        return activation

    def save_activation(self, activation: Activation) -> Activation:
        # pylint: disable=no-member
        ActivationModel.objects.filter(id=activation.id).update(**activation_fields(activation))
        return activation

    def subscription(self) -> Optional[Subscription]:
        # pylint: disable=no-member
        model = SubscriptionModel.objects.filter(license_id=self._model.id).first()
        return subscription_to_domain(model) if model else None

    def save_subscription(self, subscription: Subscription) -> Subscription:
        # pylint: disable=no-member
        SubscriptionModel.objects.update_or_create(
            id=subscription.id, defaults=subscription_fields(subscription)
        )
        return subscription


class DjangoLicenseRepository(LicenseRepository):
    """
    Django ORM implementation of LicenseRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Converts domain entities to Django models
    3. Owns the transactional boundary of every license mutation
    """

    @sync_to_async
    def add(
        self, license: License, subscription: Optional[Subscription] = None
    ) -> License:
        """
        Insert a newly issued license, and its subscription, atomically.

        Args:
            license: License entity to insert
            subscription: Optional subscription linked to the license

        Returns:
            Saved license entity
        """
        with translate_transient_errors():
            with transaction.atomic():
                # pylint: disable=no-member
                model = LicenseModel.objects.create(id=license.id, **_license_fields(license))
                if subscription is not None:
                    SubscriptionModel.objects.create(
                        id=subscription.id, **subscription_fields(subscription)
                    )
        return _to_domain(model)

    @sync_to_async
    def add_order(
        self, order_ref: str, entries: List[Tuple[License, Optional[Subscription]]]
    ) -> Tuple[List[License], bool]:
        """
        Insert every license of an order in one transaction, once per order.

        The IssuedOrder row is inserted first; a concurrent delivery of
        the same order blocks on its unique index until this transaction
        ends, then finds the order claimed.

        Args:
            order_ref: Order reference shared by the entries
            entries: License and optional subscription per purchased unit

        Returns:
            Tuple of (licenses of the order, created)

        Raises:
            TransientStoreError: If the store aborted the transaction or
                a generated key was taken in the meantime
        """
        with translate_transient_errors():
            try:
                with transaction.atomic():
                    if not _claim_order(order_ref, len(entries)):
                        return _order_licenses(order_ref), False
                    keys = [license.license_key for license, _ in entries]
                    # pylint: disable=no-member
                    if LicenseModel.objects.filter(license_key__in=keys).exists():
                        raise TransientStoreError("License key collided while storing the order")
                    for license, subscription in entries:
                        LicenseModel.objects.create(id=license.id, **_license_fields(license))
                        if subscription is not None:
                            SubscriptionModel.objects.create(
                                id=subscription.id, **subscription_fields(subscription)
                            )
            except IntegrityError as exc:
                raise TransientStoreError("License key collided while storing the order") from exc
        return _order_licenses(order_ref), True

    @sync_to_async
    def find_by_key(self, license_key: str) -> Optional[License]:
        """
        Find a license by key, without locking.

        Args:
            license_key: Normalized license key

        Returns:
            License entity or None if not found
        """
        # pylint: disable=no-member
        model = (
            LicenseModel.objects.select_related("product")
            .filter(license_key=license_key)
            .first()
        )
        return _to_domain(model) if model else None

    @sync_to_async
    def find_by_id(self, license_id: uuid.UUID) -> Optional[License]:
        try:
            # pylint: disable=no-member
            model = LicenseModel.objects.select_related("product").get(id=license_id)
        except LicenseModel.DoesNotExist:  # pylint: disable=no-member
            return None
        return _to_domain(model)

    @sync_to_async
    def key_exists(self, license_key: str) -> bool:
        # pylint: disable=no-member
        return LicenseModel.objects.filter(license_key=license_key).exists()

    @sync_to_async
    def find_by_order(self, order_ref: str) -> List[License]:
        return _order_licenses(order_ref)

    @sync_to_async
    def run_locked(self, license_key: str, work: Callable[[LockedLicense], T]) -> T:
        """
        Run `work` against the license row under an exclusive lock.

        Args:
            license_key: Normalized license key
            work: Synchronous unit of work

        Returns:
            Whatever `work` returns

        Raises:
            LicenseNotFoundError: If no license has this key
            TransientStoreError: If the store aborted the transaction
        """
        with translate_transient_errors():
            with transaction.atomic():
                try:
                    # pylint: disable=no-member
                    model = LicenseModel.objects.select_for_update().get(
                        license_key=license_key
                    )
                except LicenseModel.DoesNotExist:  # pylint: disable=no-member
                    raise LicenseNotFoundError() from None
                return work(DjangoLockedLicense(model))

    @sync_to_async
    def find_expiring(self, now: datetime, until: datetime) -> List[License]:
        """
        Find active licenses whose effective expiration is in [now, until].

        Args:
            now: Window start
            until: Window end

        Returns:
            List of License entities ordered by expiration
        """
        # pylint: disable=no-member
        models = (
            LicenseModel.objects.select_related("product")
            .annotate(effective_expires_at=_effective_expiration())
            .filter(
                status=LicenseStatus.ACTIVE.value,
                effective_expires_at__gte=now,
                effective_expires_at__lte=until,
            )
            .order_by("effective_expires_at")
        )
        return [_to_domain(model) for model in models]

    @sync_to_async
    def stats(
        self, now: datetime, product_id: Optional[uuid.UUID] = None
    ) -> Dict[str, int]:
        """
        Count licenses by effective status.

        Args:
            now: Time used to decide which active licenses are expired
            product_id: Optional product filter

        Returns:
            Mapping of counters
        """
        # pylint: disable=no-member
        licenses = LicenseModel.objects.all()
        if product_id is not None:
            licenses = licenses.filter(product_id=product_id)
        licenses = licenses.annotate(effective_expires_at=_effective_expiration())
        active = licenses.filter(status=LicenseStatus.ACTIVE.value)
        expired_filter = Q(effective_expires_at__isnull=False, effective_expires_at__lt=now)
        expired = active.filter(expired_filter).count()
        consumed = licenses.aggregate(total=Sum("activation_count"))["total"] or 0
        active_activations = ActivationModel.objects.filter(
            is_active=True, license__in=licenses.values("id")
        ).count()
        return {
            "total": licenses.count(),
            "active": active.count() - expired,
            "suspended": licenses.filter(status=LicenseStatus.SUSPENDED.value).count(),
            "revoked": licenses.filter(status=LicenseStatus.REVOKED.value).count(),
            "expired": expired,
            "consumed_activations": consumed,
            "active_activations": active_activations,
        }

    @sync_to_async
    def purge_revoked(self, before: datetime, dry_run: bool = False) -> int:
        """
        Physically delete revoked licenses last updated before a cutoff.

        Activations and subscriptions go with them; audit rows stay.

        Args:
            before: Cutoff datetime
            dry_run: Only count matching licenses

        Returns:
            Number of licenses deleted (or that would be deleted)
        """
        # pylint: disable=no-member
        stale = LicenseModel.objects.filter(
            status=LicenseStatus.REVOKED.value, updated_at__lt=before
        )
        count = stale.count()
        if not dry_run and count:
            with transaction.atomic():
                stale.delete()
        return count
