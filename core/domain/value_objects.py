"""
Value objects for the domain.

Value objects are immutable objects that are defined by their attributes
rather than their identity. They have no identity and are compared by value.
"""
from abc import ABC
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects.

    Value objects are immutable and compared by value.
    """

    def __eq__(self, other):
        """Compare value objects by their attributes."""
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self):
        """Make value objects hashable."""
        return hash(tuple(sorted(self.__dict__.items())))


@dataclass(frozen=True)
class Email(ValueObject):
    """Email value object with validation."""

    value: str

    def __post_init__(self):
        """Validate email format."""
        if not self.value or "@" not in self.value:
            raise ValueError(f"Invalid email address: {self.value}")

    def __str__(self) -> str:
        """Return email as string."""
        return self.value


@dataclass(frozen=True)
class MachineFingerprint(ValueObject):
    """Opaque client-supplied machine identifier."""

    value: str

    def __post_init__(self):
        """Validate fingerprint."""
        if not self.value or len(self.value.strip()) == 0:
            raise ValueError("Machine fingerprint cannot be empty")
        if len(self.value) > 500:
            raise ValueError("Machine fingerprint too long")

    def __str__(self) -> str:
        """Return fingerprint as string."""
        return self.value


class LicenseStatus(Enum):
    """
    License status value object.

    EXPIRED is never stored; it is derived from the clock when a
    license is read (see License.effective_status).
    """

    ACTIVE = "active"
    SUSPENDED = "suspended"
    REVOKED = "revoked"
    EXPIRED = "expired"

    def __str__(self) -> str:
        """Return status as string."""
        return self.value

    @classmethod
    def persisted(cls):
        """Statuses that may be written to the store."""
        return [cls.ACTIVE, cls.SUSPENDED, cls.REVOKED]


class LicenseType(Enum):
    """License type value object."""

    PERPETUAL = "perpetual"
    SUBSCRIPTION = "subscription"
    TRIAL = "trial"

    def __str__(self) -> str:
        """Return type as string."""
        return self.value


class ProductLicenseType(Enum):
    """License type a product is sold under."""

    PERPETUAL = "perpetual"
    SUBSCRIPTION = "subscription"

    def __str__(self) -> str:
        return self.value


class SubscriptionStatus(Enum):
    """Subscription status value object."""

    ACTIVE = "active"
    CANCELED = "canceled"
    PAST_DUE = "past_due"
    UNPAID = "unpaid"

    def __str__(self) -> str:
        return self.value


class BillingCycle(Enum):
    """Billing cycle with its length in days."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"

    def __str__(self) -> str:
        return self.value

    @property
    def days(self) -> int:
        """Length of one cycle in days."""
        return _BILLING_CYCLE_DAYS[self]

    def next_billing_date(self, from_date: datetime, interval: int = 1) -> datetime:
        """
        Compute the end of the billing period starting at from_date.

        Args:
            from_date: Period start
            interval: Number of cycles per period

        Returns:
            Datetime of the next billing date
        """
        if interval < 1:
            raise ValueError("Billing interval must be at least 1")
        return from_date + timedelta(days=self.days * interval)


_BILLING_CYCLE_DAYS = {
    BillingCycle.WEEKLY: 7,
    BillingCycle.MONTHLY: 30,
    BillingCycle.QUARTERLY: 90,
    BillingCycle.YEARLY: 365,
}


class KeyFormat(Enum):
    """Supported license key formats."""

    STANDARD = "standard"
    LONG = "long"
    UUID = "uuid"

    def __str__(self) -> str:
        return self.value
