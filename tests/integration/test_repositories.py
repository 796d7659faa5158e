"""
Integration tests for the Django repository implementations.
"""
from datetime import timedelta

import pytest
from asgiref.sync import async_to_sync

from activations.application.commands.activate_license import ActivateLicenseCommand
from activations.application.commands.deactivate_license import DeactivateLicenseCommand
from activations.application.handlers.activate_license_handler import ActivateLicenseHandler
from activations.application.handlers.deactivate_license_handler import (
    DeactivateLicenseHandler,
)
from activations.domain.activation import Activation
from activations.infrastructure.models import LicenseActivation as ActivationModel
from core.domain.exceptions import (
    ErrorCode,
    InvalidArgumentError,
    LicenseNotFoundError,
    TransientStoreError,
)
from core.domain.value_objects import LicenseStatus, SubscriptionStatus
from licenses.application.commands.license_actions import RevokeLicenseCommand
from licenses.application.handlers.issue_license_handler import LicenseIssuer
from licenses.application.handlers.license_lifecycle_handlers import RevokeLicenseHandler
from licenses.domain.license_key import generate_license_key
from licenses.domain.services import LicenseLifecycleManager
from licenses.infrastructure.models import License as LicenseModel
from licenses.infrastructure.models import IssuedOrder, LicenseAuditLog
from subscriptions.infrastructure.models import Subscription as SubscriptionModel
from tests.fakes import RecordingEventBus


@pytest.fixture
def db_issuer(django_product_repository, django_license_repository, strict_config, clock):
    return LicenseIssuer(
        product_repository=django_product_repository,
        license_repository=django_license_repository,
        config=strict_config,
        clock=clock,
        event_bus=RecordingEventBus(),
    )


@pytest.fixture
def db_license(db_issuer, db_product):
    """Fixture for a perpetual license saved in database."""
    return async_to_sync(db_issuer.issue)(db_product, "order-1", "customer@example.com")


@pytest.mark.django_db
@pytest.mark.integration
class TestDjangoLicenseRepository:
    """Integration tests for DjangoLicenseRepository."""

    def test_add_and_find(self, django_license_repository, db_license, db_product):
        """Test a stored license round-trips through the ORM."""
        found = async_to_sync(django_license_repository.find_by_key)(db_license.license_key)

        assert found == db_license
        assert found.product_max_activations == db_product.max_activations
        assert async_to_sync(django_license_repository.key_exists)(db_license.license_key)
        assert async_to_sync(django_license_repository.find_by_id)(db_license.id) == db_license
        assert async_to_sync(django_license_repository.find_by_order)("order-1") == [db_license]

    def test_find_missing(self, django_license_repository):
        assert async_to_sync(django_license_repository.find_by_key)("ZZZZ-ZZZZ-ZZZZ-ZZZZ") is None
        assert not async_to_sync(django_license_repository.key_exists)("ZZZZ-ZZZZ-ZZZZ-ZZZZ")

    def test_add_subscription_license(
        self, db_issuer, db_subscription_product, django_subscription_repository
    ):
        """Test a subscription license is stored with its first period."""
        license = async_to_sync(db_issuer.issue)(
            db_subscription_product, "order-2", "customer@example.com"
        )

        subscription = async_to_sync(django_subscription_repository.find_by_license_id)(
            license.id
        )

        assert subscription.status == SubscriptionStatus.ACTIVE
        assert subscription.current_period_end == license.expires_at
        found = async_to_sync(django_subscription_repository.find_by_id)(subscription.id)
        assert found == subscription

    def test_run_locked_commits(self, django_license_repository, db_license, clock):
        """Test work done under the lock is committed."""
        now = clock.now()

        def work(locked):
            locked.save_license(locked.license.record_activation(now))
            return locked.add_activation(Activation.create(db_license.id, "machine-a", now))

        activation = async_to_sync(django_license_repository.run_locked)(
            db_license.license_key, work
        )

        stored = LicenseModel.objects.get(id=db_license.id)
        assert stored.activation_count == 1
        assert ActivationModel.objects.get(id=activation.id).is_active is True

    def test_run_locked_rolls_back_on_error(self, django_license_repository, db_license, clock):
        """Test a failing unit of work leaves nothing behind."""
        now = clock.now()

        def work(locked):
            locked.save_license(locked.license.record_activation(now))
            locked.add_activation(Activation.create(db_license.id, "machine-a", now))
            raise InvalidArgumentError("abort")

        with pytest.raises(InvalidArgumentError):
            async_to_sync(django_license_repository.run_locked)(db_license.license_key, work)

        assert LicenseModel.objects.get(id=db_license.id).activation_count == 0
        assert not ActivationModel.objects.filter(license_id=db_license.id).exists()

    def test_run_locked_unknown_key(self, django_license_repository):
        with pytest.raises(LicenseNotFoundError):
            async_to_sync(django_license_repository.run_locked)(
                "ZZZZ-ZZZZ-ZZZZ-ZZZZ", lambda locked: None
            )

    def test_add_order_stores_every_unit_once(
        self, django_license_repository, db_product, db_subscription_product, clock
    ):
        """Test an order is inserted whole and a second delivery inserts nothing."""
        entries = [
            LicenseLifecycleManager.issue(
                product, generate_license_key(), "order-50", "customer@example.com", clock.now()
            )
            for product in (db_product, db_product, db_subscription_product)
        ]
        again = [
            LicenseLifecycleManager.issue(
                db_product, generate_license_key(), "order-50", "customer@example.com", clock.now()
            )
        ]

        stored, created = async_to_sync(django_license_repository.add_order)("order-50", entries)
        replayed, created_again = async_to_sync(django_license_repository.add_order)(
            "order-50", again
        )

        assert created is True
        assert created_again is False
        assert {item.id for item in stored} == {license.id for license, _ in entries}
        assert {item.id for item in replayed} == {item.id for item in stored}
        assert LicenseModel.objects.filter(order_ref="order-50").count() == 3
        assert SubscriptionModel.objects.filter(license__order_ref="order-50").count() == 1
        assert IssuedOrder.objects.get(order_ref="order-50").license_count == 3

    def test_add_order_rolls_back_on_taken_key(
        self, django_license_repository, db_license, db_product, clock
    ):
        """Test a unit whose key is already stored aborts the whole order."""
        fresh, _ = LicenseLifecycleManager.issue(
            db_product, generate_license_key(), "order-51", "customer@example.com", clock.now()
        )
        taken, _ = LicenseLifecycleManager.issue(
            db_product, db_license.license_key, "order-51", "customer@example.com", clock.now()
        )

        with pytest.raises(TransientStoreError):
            async_to_sync(django_license_repository.add_order)(
                "order-51", [(fresh, None), (taken, None)]
            )

        assert not LicenseModel.objects.filter(order_ref="order-51").exists()
        assert not IssuedOrder.objects.filter(order_ref="order-51").exists()

    def test_locked_scope_rejects_other_license(
        self, django_license_repository, db_license, db_issuer, db_product
    ):
        other = async_to_sync(db_issuer.issue)(db_product, "order-9", "other@example.com")

        with pytest.raises(ValueError, match="own license"):
            async_to_sync(django_license_repository.run_locked)(
                db_license.license_key, lambda locked: locked.save_license(other)
            )

    def test_find_expiring_uses_override(
        self, django_license_repository, db_issuer, db_product, clock
    ):
        """Test the expiring window reads the effective expiration."""
        now = clock.now()
        soon = async_to_sync(db_issuer.issue)(
            db_product, "order-3", "a@example.com", custom_expires_at=now + timedelta(days=2)
        )
        async_to_sync(db_issuer.issue)(
            db_product, "order-4", "b@example.com", custom_expires_at=now + timedelta(days=40)
        )

        found = async_to_sync(django_license_repository.find_expiring)(
            now, now + timedelta(days=7)
        )

        assert [item.id for item in found] == [soon.id]

    def test_stats(self, django_license_repository, db_issuer, db_product, clock):
        """Test counters split expired licenses out of the active ones."""
        now = clock.now()
        async_to_sync(db_issuer.issue)(db_product, "order-5", "a@example.com")
        async_to_sync(db_issuer.issue)(
            db_product, "order-6", "b@example.com", custom_expires_at=now - timedelta(days=1)
        )
        revoked = async_to_sync(db_issuer.issue)(db_product, "order-7", "c@example.com")
        LicenseModel.objects.filter(id=revoked.id).update(status=LicenseStatus.REVOKED.value)

        stats = async_to_sync(django_license_repository.stats)(now, db_product.id)

        assert stats == {
            "total": 3,
            "active": 1,
            "suspended": 0,
            "revoked": 1,
            "expired": 1,
            "consumed_activations": 0,
            "active_activations": 0,
        }

    def test_purge_revoked(self, django_license_repository, db_license, clock):
        """Test revoked licenses older than the cutoff are deleted with their activations."""
        now = clock.now()
        ActivationModel.objects.create(
            license_id=db_license.id, machine_fingerprint="machine-a", is_active=False
        )
        LicenseModel.objects.filter(id=db_license.id).update(
            status=LicenseStatus.REVOKED.value, updated_at=now - timedelta(days=120)
        )

        purge = async_to_sync(django_license_repository.purge_revoked)
        assert purge(now - timedelta(days=90), dry_run=True) == 1
        assert LicenseModel.objects.filter(id=db_license.id).exists()

        assert purge(now - timedelta(days=90)) == 1
        assert not LicenseModel.objects.filter(id=db_license.id).exists()
        assert not ActivationModel.objects.filter(license_id=db_license.id).exists()


@pytest.mark.django_db
@pytest.mark.integration
class TestDjangoActivationRepository:
    """Integration tests for DjangoActivationRepository."""

    def test_active_and_history(self, django_activation_repository, db_license, clock):
        now = clock.now()
        ActivationModel.objects.create(
            license_id=db_license.id,
            machine_fingerprint="old",
            is_active=False,
            activated_at=now - timedelta(days=2),
            deactivated_at=now - timedelta(days=1),
        )
        ActivationModel.objects.create(
            license_id=db_license.id, machine_fingerprint="current", activated_at=now
        )

        active = async_to_sync(django_activation_repository.find_active_by_license)(db_license.id)
        history = async_to_sync(django_activation_repository.find_all_by_license)(db_license.id)
        found = async_to_sync(django_activation_repository.find_active)(db_license.id, "current")
        missing = async_to_sync(django_activation_repository.find_active)(db_license.id, "old")

        assert [str(item.machine_fingerprint) for item in active] == ["current"]
        assert [str(item.machine_fingerprint) for item in history] == ["current", "old"]
        assert found.is_active is True
        assert missing is None


@pytest.mark.django_db
@pytest.mark.integration
class TestActivationFlowOnDatabase:
    """End-to-end activation bookkeeping against the database."""

    def test_activate_deactivate_and_revoke(
        self, django_license_repository, django_product_repository, strict_config, clock,
        db_product,
    ):
        """Test the cap, history and revoke sweep on real rows."""
        license, _ = LicenseLifecycleManager.issue(
            db_product, generate_license_key(), "order-1", "customer@example.com", clock.now()
        )
        async_to_sync(django_license_repository.add)(license)
        bus = RecordingEventBus()
        activate = ActivateLicenseHandler(
            django_license_repository, strict_config, clock, event_bus=bus
        )
        deactivate = DeactivateLicenseHandler(
            django_license_repository, strict_config, clock, event_bus=bus
        )
        key = license.license_key

        for fingerprint in ("A", "B"):
            result = async_to_sync(activate.handle)(ActivateLicenseCommand(key, fingerprint))
            assert result.ok is True
        rejected = async_to_sync(activate.handle)(ActivateLicenseCommand(key, "C"))
        assert rejected.error_code == ErrorCode.CAP_EXCEEDED

        async_to_sync(deactivate.handle)(DeactivateLicenseCommand(key, "A"))
        assert async_to_sync(activate.handle)(ActivateLicenseCommand(key, "C")).ok is True
        assert LicenseModel.objects.get(id=license.id).activation_count == 2
        assert ActivationModel.objects.filter(license_id=license.id).count() == 3

        revoke = RevokeLicenseHandler(
            django_license_repository,
            strict_config,
            clock,
            product_repository=django_product_repository,
            event_bus=bus,
        )
        result = async_to_sync(revoke.handle)(RevokeLicenseCommand(key))

        assert result.data == {"closed_activations": 2}
        assert not ActivationModel.objects.filter(license_id=license.id, is_active=True).exists()
        assert LicenseModel.objects.get(id=license.id).activation_count == 2

    def test_audit_log_written_after_commit(
        self, django_license_repository, strict_config, clock, db_license
    ):
        """Test the process-wide bus writes audit rows for license events."""
        handler = ActivateLicenseHandler(django_license_repository, strict_config, clock)

        result = async_to_sync(handler.handle)(
            ActivateLicenseCommand(db_license.license_key, "machine-a")
        )

        assert result.ok is True
        entry = LicenseAuditLog.objects.get(license_id=db_license.id, action="license_activated")
        assert entry.license_key_partial == db_license.license_key[:8] + "..."
        assert entry.details["machine_fingerprint"] == "machine-a"
        assert db_license.license_key not in str(entry.details)
