"""
Unit tests for License domain entity.
"""

import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from core.domain.exceptions import (
    ActivationCapExceededError,
    InvalidArgumentError,
    InvalidLicenseStatusError,
)
from core.domain.value_objects import LicenseStatus, LicenseType
from licenses.domain.license import License

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def build_license(**kwargs):
    values = {
        "license_key": "ABCD-EFGH-JKLM-NPQR",
        "product_id": uuid.uuid4(),
        "order_ref": "order-1",
        "customer_email": "customer@example.com",
        "now": NOW,
        "max_activations": 2,
    }
    values.update(kwargs)
    return License.create(**values)


class TestLicenseEntity:
    """Tests for License domain entity."""

    def test_create_license(self):
        """Test creating a license entity."""
        expires_at = NOW + timedelta(days=365)

        license = build_license(expires_at=expires_at)

        assert license.status == LicenseStatus.ACTIVE
        assert license.license_type == LicenseType.PERPETUAL
        assert license.activation_count == 0
        assert license.effective_max_activations == 2
        assert license.product_max_activations == 2
        assert license.effective_expires_at == expires_at
        assert license.created_at == NOW

    def test_create_license_invalid_email(self):
        """Test creating a license with an invalid owner email."""
        with pytest.raises(ValueError, match="Invalid email"):
            build_license(customer_email="nobody")

    def test_negative_activation_count_rejected(self):
        with pytest.raises(ValueError, match="negative"):
            replace(build_license(), activation_count=-1)

    def test_expired_status_cannot_be_stored(self):
        """Test EXPIRED is never a stored status."""
        with pytest.raises(ValueError, match="cannot be stored"):
            replace(build_license(), status=LicenseStatus.EXPIRED)

    def test_effective_status_follows_clock(self):
        """Test moving the clock past expiration flips validity without a write."""
        license = build_license(expires_at=NOW + timedelta(days=1))

        assert license.is_valid(NOW) is True
        assert license.effective_status(NOW) == LicenseStatus.ACTIVE

        later = NOW + timedelta(days=2)
        assert license.is_valid(later) is False
        assert license.effective_status(later) == LicenseStatus.EXPIRED
        assert license.status == LicenseStatus.ACTIVE

    def test_suspended_license_is_not_reported_expired(self):
        """Test suspension wins over derived expiration."""
        license = build_license(expires_at=NOW - timedelta(days=1)).suspend(NOW)

        assert license.effective_status(NOW) == LicenseStatus.SUSPENDED

    def test_custom_overrides_take_precedence(self):
        """Test per-license overrides beat the product terms."""
        custom_expiry = NOW + timedelta(days=10)
        license = build_license(
            expires_at=NOW + timedelta(days=1),
            custom_max_activations=5,
            custom_expires_at=custom_expiry,
        )

        assert license.effective_max_activations == 5
        assert license.effective_expires_at == custom_expiry

    def test_cap_defaults_to_one(self):
        """Test a license without any cap allows one activation."""
        assert build_license(max_activations=None).effective_max_activations == 1


class TestLicenseTransitions:
    """Tests for License status transitions."""

    def test_suspend_and_reactivate(self):
        """Test suspend then reactivate."""
        license = build_license()

        suspended = license.suspend(NOW)
        assert suspended.status == LicenseStatus.SUSPENDED
        assert license.status == LicenseStatus.ACTIVE

        reactivated = suspended.reactivate(NOW)
        assert reactivated.status == LicenseStatus.ACTIVE

    def test_repeated_transitions_are_no_ops(self):
        """Test suspending twice or reactivating an active license changes nothing."""
        license = build_license()
        suspended = license.suspend(NOW)

        assert suspended.suspend(NOW) is suspended
        assert license.reactivate(NOW) is license

    def test_revoke_from_any_stored_status(self):
        """Test active and suspended licenses can both be revoked."""
        license = build_license()

        assert license.revoke(NOW).status == LicenseStatus.REVOKED
        assert license.suspend(NOW).revoke(NOW).status == LicenseStatus.REVOKED

    @pytest.mark.parametrize("action", ["suspend", "reactivate"])
    def test_revoked_is_terminal(self, action):
        """Test a revoked license cannot be suspended or reactivated."""
        revoked = build_license().revoke(NOW)

        with pytest.raises(InvalidLicenseStatusError):
            getattr(revoked, action)(NOW)

    @pytest.mark.parametrize(
        "operation",
        [
            lambda license: license.extend(5, NOW),
            lambda license: license.start_trial(5, NOW),
            lambda license: license.transfer("new@example.com", NOW),
            lambda license: license.enter_grace_period(3, NOW),
        ],
    )
    def test_revoked_rejects_changes(self, operation):
        """Test revoked licenses refuse administrative changes."""
        with pytest.raises(InvalidLicenseStatusError):
            operation(build_license().revoke(NOW))


class TestLicenseActivationAccounting:
    """Tests for activation count bookkeeping."""

    def test_record_until_cap(self):
        """Test the count cannot pass the cap."""
        license = build_license().record_activation(NOW).record_activation(NOW)

        assert license.activation_count == 2
        assert license.remaining_activations == 0
        assert license.last_activated_at == NOW
        with pytest.raises(ActivationCapExceededError):
            license.record_activation(NOW)

    def test_release(self):
        license = build_license().record_activation(NOW)

        released, clamped = license.release_activation(NOW)

        assert released.activation_count == 0
        assert clamped is False

    def test_release_at_zero_clamps(self):
        """Test releasing at zero keeps the count at zero and reports it."""
        released, clamped = build_license().release_activation(NOW)

        assert released.activation_count == 0
        assert clamped is True


class TestLicenseAdministration:
    """Tests for extend, trial, transfer and override operations."""

    def test_extend_from_expiration(self):
        """Test extension counts from the current expiration."""
        expires_at = NOW + timedelta(days=5)
        license = build_license(expires_at=expires_at)

        assert license.extend(10, NOW).expires_at == expires_at + timedelta(days=10)

    def test_extend_perpetual_counts_from_now(self):
        """Test extending a license without expiration counts from now."""
        assert build_license().extend(30, NOW).expires_at == NOW + timedelta(days=30)

    def test_extend_moves_custom_override(self):
        """Test extension targets the override when one is in effect."""
        custom = NOW + timedelta(days=3)
        license = build_license(expires_at=NOW + timedelta(days=1), custom_expires_at=custom)

        extended = license.extend(7, NOW)

        assert extended.custom_expires_at == custom + timedelta(days=7)
        assert extended.expires_at == license.expires_at

    def test_extend_requires_positive_days(self):
        with pytest.raises(InvalidArgumentError):
            build_license().extend(0, NOW)

    def test_start_trial_sets_expiration(self):
        """Test the trial end doubles as the expiration."""
        trial = build_license().start_trial(14, NOW)

        assert trial.license_type == LicenseType.TRIAL
        assert trial.trial_ends_at == NOW + timedelta(days=14)
        assert trial.expires_at == trial.trial_ends_at
        assert trial.trial_active(NOW) is True
        assert trial.is_valid(NOW + timedelta(days=15)) is False

    def test_subscription_cannot_start_trial(self):
        license = build_license(license_type=LicenseType.SUBSCRIPTION)

        with pytest.raises(InvalidLicenseStatusError):
            license.start_trial(14, NOW)

    def test_convert_trial(self):
        """Test converting a trial clears the trial window."""
        trial = build_license().start_trial(14, NOW)
        expires_at = NOW + timedelta(days=30)

        converted = trial.convert_trial_to_subscription(expires_at, NOW)

        assert converted.license_type == LicenseType.SUBSCRIPTION
        assert converted.trial_ends_at is None
        assert converted.expires_at == expires_at

    def test_convert_requires_trial(self):
        with pytest.raises(InvalidLicenseStatusError):
            build_license().convert_trial_to_subscription(None, NOW)

    def test_grace_period(self):
        """Test grace window does not change the status."""
        license = build_license().enter_grace_period(5, NOW)

        assert license.status == LicenseStatus.ACTIVE
        assert license.in_grace_period(NOW) is True
        assert license.in_grace_period(NOW + timedelta(days=6)) is False

    def test_renew_clears_grace(self):
        license = build_license(expires_at=NOW).enter_grace_period(5, NOW)

        renewed = license.renew_for(30, NOW)

        assert renewed.grace_period_ends_at is None
        assert renewed.expires_at == NOW + timedelta(days=30)

    def test_transfer(self):
        """Test transfer replaces the owner and keeps the name when omitted."""
        license = build_license(customer_name="Ada", user_ref="user-1")

        transferred = license.transfer("new@example.com", NOW)

        assert str(transferred.customer_email) == "new@example.com"
        assert transferred.customer_name == "Ada"
        assert transferred.user_ref is None

    def test_transfer_invalid_email(self):
        with pytest.raises(InvalidArgumentError, match="email"):
            build_license().transfer("not-an-email", NOW)

    def test_override_below_count_rejected(self):
        """Test the cap override cannot drop below consumed activations."""
        license = build_license().record_activation(NOW).record_activation(NOW)

        with pytest.raises(InvalidArgumentError, match="below"):
            license.with_overrides(1, None, NOW)

    def test_clearing_overrides(self):
        license = build_license(custom_max_activations=5)

        cleared = license.with_overrides(None, None, NOW)

        assert cleared.custom_max_activations is None
        assert cleared.effective_max_activations == 2
