"""
Administrative license commands.

Every command addresses the license by key; the handlers normalize it.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class RevokeLicenseCommand:
    """Command to revoke a license and close its activations."""

    license_key: str


@dataclass
class SuspendLicenseCommand:
    """Command to suspend a license."""

    license_key: str


@dataclass
class ReactivateLicenseCommand:
    """Command to reactivate a suspended license."""

    license_key: str


@dataclass
class ExtendLicenseCommand:
    """Command to push a license's expiration out by `days`."""

    license_key: str
    days: int


@dataclass
class TransferLicenseCommand:
    """Command to move a license to a new owner."""

    license_key: str
    customer_email: str
    customer_name: Optional[str] = None
    user_ref: Optional[str] = None


@dataclass
class SetLicenseOverridesCommand:
    """Command to replace the per-license cap and expiration overrides."""

    license_key: str
    custom_max_activations: Optional[int] = None
    custom_expires_at: Optional[datetime] = None


@dataclass
class StartTrialCommand:
    """Command to turn a license into a trial."""

    license_key: str
    days: Optional[int] = None


@dataclass
class ConvertTrialCommand:
    """Command to convert a trial into a subscription license."""

    license_key: str


@dataclass
class EnterGracePeriodCommand:
    """Command to open a grace window after a failed payment."""

    license_key: str
