"""
License domain entity.

This is the core domain entity representing a license.
It contains business logic and is independent of infrastructure.

Expiration is never stored as a status: `effective_status` and
`is_valid` compare the effective expiration with the time they are
given, so moving the clock is enough to flip validity.
"""
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

from core.domain.exceptions import (
    ActivationCapExceededError,
    InvalidArgumentError,
    InvalidLicenseStatusError,
)
from core.domain.value_objects import Email, LicenseStatus, LicenseType

# Allowed status transitions per action. A status missing from an
# action's map cannot take that action.
_TRANSITIONS: Dict[str, Dict[LicenseStatus, LicenseStatus]] = {
    "suspend": {
        LicenseStatus.ACTIVE: LicenseStatus.SUSPENDED,
        LicenseStatus.SUSPENDED: LicenseStatus.SUSPENDED,
    },
    "reactivate": {
        LicenseStatus.SUSPENDED: LicenseStatus.ACTIVE,
        LicenseStatus.ACTIVE: LicenseStatus.ACTIVE,
    },
    "revoke": {
        LicenseStatus.ACTIVE: LicenseStatus.REVOKED,
        LicenseStatus.SUSPENDED: LicenseStatus.REVOKED,
        LicenseStatus.REVOKED: LicenseStatus.REVOKED,
    },
}


@dataclass(frozen=True)
class License:
    """
    License domain entity.

    Represents one entitlement for one purchased unit of a product.
    This is an immutable value object; every transition returns a new
    instance.
    """

    id: uuid.UUID
    license_key: str
    product_id: uuid.UUID
    order_ref: str
    user_ref: Optional[str]
    customer_email: Email
    customer_name: str
    status: LicenseStatus
    license_type: LicenseType
    max_activations: Optional[int]
    activation_count: int
    expires_at: Optional[datetime]
    trial_ends_at: Optional[datetime]
    grace_period_ends_at: Optional[datetime]
    custom_max_activations: Optional[int]
    custom_expires_at: Optional[datetime]
    product_max_activations: Optional[int]
    last_activated_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
    requires_machine_id: bool = False

    def __post_init__(self):
        """Validate license entity."""
        if not self.license_key or len(self.license_key.strip()) == 0:
            raise ValueError("License key cannot be empty")
        if len(self.license_key) > 64:
            raise ValueError("License key too long")
        if not self.product_id:
            raise ValueError("Product ID is required")
        if self.status not in LicenseStatus.persisted():
            raise ValueError(f"Status {self.status} cannot be stored on a license")
        if self.activation_count < 0:
            raise ValueError("Activation count cannot be negative")
        if self.max_activations is not None and self.max_activations < 1:
            raise ValueError("Max activations must be at least 1")
        if self.custom_max_activations is not None and self.custom_max_activations < 1:
            raise ValueError("Custom max activations must be at least 1")

    @classmethod
    def create(
        cls,
        license_key: str,
        product_id: uuid.UUID,
        order_ref: str,
        customer_email: str,
        now: datetime,
        customer_name: str = "",
        user_ref: Optional[str] = None,
        license_type: LicenseType = LicenseType.PERPETUAL,
        max_activations: Optional[int] = None,
        expires_at: Optional[datetime] = None,
        custom_max_activations: Optional[int] = None,
        custom_expires_at: Optional[datetime] = None,
        requires_machine_id: bool = False,
        license_id: Optional[uuid.UUID] = None,
    ) -> "License":
        """
        Create a new active License entity.

        Args:
            license_key: Generated key
            product_id: Product UUID
            order_ref: Reference of the order that paid for the license
            customer_email: Owner's email address
            now: Issue time
            customer_name: Owner's display name
            user_ref: Optional owning user-account reference
            license_type: Perpetual, subscription or trial
            max_activations: Cap copied from the product
            expires_at: Optional expiration datetime
            custom_max_activations: Per-license cap override
            custom_expires_at: Per-license expiration override
            requires_machine_id: Whether activations must report a machine id
            license_id: Optional UUID (generated if not provided)

        Returns:
            License entity instance
        """
        return cls(
            id=license_id or uuid.uuid4(),
            license_key=license_key,
            product_id=product_id,
            order_ref=order_ref,
            user_ref=user_ref,
            customer_email=Email(customer_email),
            customer_name=customer_name,
            status=LicenseStatus.ACTIVE,
            license_type=license_type,
            max_activations=max_activations,
            activation_count=0,
            expires_at=expires_at,
            trial_ends_at=None,
            grace_period_ends_at=None,
            custom_max_activations=custom_max_activations,
            custom_expires_at=custom_expires_at,
            product_max_activations=max_activations,
            last_activated_at=None,
            created_at=now,
            updated_at=now,
            requires_machine_id=requires_machine_id,
        )

    @property
    def effective_max_activations(self) -> int:
        """Cap after overrides: custom, then license, then product, then 1."""
        return (
            self.custom_max_activations
            or self.max_activations
            or self.product_max_activations
            or 1
        )

    @property
    def effective_expires_at(self) -> Optional[datetime]:
        return self.custom_expires_at or self.expires_at

    @property
    def remaining_activations(self) -> int:
        return max(self.effective_max_activations - self.activation_count, 0)

    def is_expired(self, current_time: datetime) -> bool:
        expires_at = self.effective_expires_at
        return expires_at is not None and expires_at < current_time

    def is_valid(self, current_time: datetime) -> bool:
        """
        Check if license is currently valid.

        Args:
            current_time: Time to evaluate expiration against

        Returns:
            True if license is active and not expired
        """
        return self.status == LicenseStatus.ACTIVE and not self.is_expired(current_time)

    def effective_status(self, current_time: datetime) -> LicenseStatus:
        """Stored status, with EXPIRED substituted for active-but-expired licenses."""
        if self.status == LicenseStatus.ACTIVE and self.is_expired(current_time):
            return LicenseStatus.EXPIRED
        return self.status

    def in_grace_period(self, current_time: datetime) -> bool:
        return self.grace_period_ends_at is not None and current_time < self.grace_period_ends_at

    def trial_active(self, current_time: datetime) -> bool:
        return (
            self.license_type == LicenseType.TRIAL
            and self.trial_ends_at is not None
            and current_time < self.trial_ends_at
        )

    def _transition(self, action: str, now: datetime) -> "License":
        target = _TRANSITIONS[action].get(self.status)
        if target is None:
            raise InvalidLicenseStatusError(f"Cannot {action} a {self.status} license")
        if target == self.status:
            return self
        return replace(self, status=target, updated_at=now)

    def suspend(self, now: datetime) -> "License":
        return self._transition("suspend", now)

    def reactivate(self, now: datetime) -> "License":
        return self._transition("reactivate", now)

    def revoke(self, now: datetime) -> "License":
        return self._transition("revoke", now)

    def record_activation(self, now: datetime) -> "License":
        """
        Consume one unit of the entitlement cap.

        Raises:
            ActivationCapExceededError: If the cap is already reached
        """
        if self.activation_count >= self.effective_max_activations:
            raise ActivationCapExceededError()
        return replace(
            self,
            activation_count=self.activation_count + 1,
            last_activated_at=now,
            updated_at=now,
        )

    def release_activation(self, now: datetime) -> Tuple["License", bool]:
        """
        Return one unit of the entitlement cap.

        Returns:
            Tuple of (updated license, clamped) where clamped is True if
            the count was already zero and left there
        """
        if self.activation_count <= 0:
            return replace(self, activation_count=0, updated_at=now), True
        return replace(self, activation_count=self.activation_count - 1, updated_at=now), False

    def extend(self, days: int, now: datetime) -> "License":
        """
        Push the effective expiration out by a number of days.

        The per-license override is extended when it is in effect,
        otherwise expires_at; an unset expiration counts from now.
        """
        if days < 1:
            raise InvalidArgumentError("Extension must be at least 1 day")
        if self.status == LicenseStatus.REVOKED:
            raise InvalidLicenseStatusError("Cannot extend a revoked license")
        delta = timedelta(days=days)
        if self.custom_expires_at is not None:
            return replace(self, custom_expires_at=self.custom_expires_at + delta, updated_at=now)
        base = self.expires_at or now
        return replace(self, expires_at=base + delta, updated_at=now)

    def start_trial(self, days: int, now: datetime) -> "License":
        """
        Convert to a time-boxed trial ending `days` from now.

        The trial end also becomes the expiration, so the single
        validity check ends the trial.
        """
        if days < 1:
            raise InvalidArgumentError("Trial length must be at least 1 day")
        if self.status == LicenseStatus.REVOKED:
            raise InvalidLicenseStatusError("Cannot start a trial on a revoked license")
        if self.license_type == LicenseType.SUBSCRIPTION:
            raise InvalidLicenseStatusError("Subscription licenses cannot start a trial")
        trial_ends_at = now + timedelta(days=days)
        return replace(
            self,
            license_type=LicenseType.TRIAL,
            trial_ends_at=trial_ends_at,
            expires_at=trial_ends_at,
            updated_at=now,
        )

    def convert_trial_to_subscription(
        self, expires_at: Optional[datetime], now: datetime
    ) -> "License":
        if self.license_type != LicenseType.TRIAL:
            raise InvalidLicenseStatusError("Only trial licenses can be converted")
        if self.status == LicenseStatus.REVOKED:
            raise InvalidLicenseStatusError("Cannot convert a revoked license")
        return replace(
            self,
            license_type=LicenseType.SUBSCRIPTION,
            trial_ends_at=None,
            expires_at=expires_at,
            updated_at=now,
        )

    def enter_grace_period(self, days: int, now: datetime) -> "License":
        """Flag a grace window after a failed payment; status is left alone."""
        if days < 0:
            raise InvalidArgumentError("Grace period cannot be negative")
        if self.status == LicenseStatus.REVOKED:
            raise InvalidLicenseStatusError("Cannot grant a grace period to a revoked license")
        return replace(self, grace_period_ends_at=now + timedelta(days=days), updated_at=now)

    def renew_for(self, days: int, now: datetime) -> "License":
        """Extend after a subscription renewal and clear any grace window."""
        return replace(self.extend(days, now), grace_period_ends_at=None)

    def transfer(
        self,
        customer_email: str,
        now: datetime,
        customer_name: Optional[str] = None,
        user_ref: Optional[str] = None,
    ) -> "License":
        if self.status == LicenseStatus.REVOKED:
            raise InvalidLicenseStatusError("Cannot transfer a revoked license")
        try:
            email = Email(customer_email)
        except ValueError as exc:
            raise InvalidArgumentError("Invalid email address") from exc
        return replace(
            self,
            customer_email=email,
            customer_name=self.customer_name if customer_name is None else customer_name,
            user_ref=user_ref,
            updated_at=now,
        )

    def with_overrides(
        self,
        custom_max_activations: Optional[int],
        custom_expires_at: Optional[datetime],
        now: datetime,
    ) -> "License":
        """
        Replace the per-license overrides.

        Raises:
            InvalidArgumentError: If the new cap is below the consumed count
        """
        if custom_max_activations is not None:
            if custom_max_activations < 1:
                raise InvalidArgumentError("Custom max activations must be at least 1")
            if custom_max_activations < self.activation_count:
                raise InvalidArgumentError(
                    "Custom max activations cannot be below the current activation count"
                )
        updated = replace(
            self,
            custom_max_activations=custom_max_activations,
            custom_expires_at=custom_expires_at,
            updated_at=now,
        )
        if updated.activation_count > updated.effective_max_activations:
            raise InvalidArgumentError("Override would leave the license over its cap")
        return updated
