"""
License read-side queries.
"""

import uuid
from dataclasses import dataclass
from typing import Optional


@dataclass
class ValidateLicenseQuery:
    """
    Query to check a license key.

    When a fingerprint is given the result also says whether that
    machine holds an active activation.
    """

    license_key: str
    machine_fingerprint: Optional[str] = None
    signature: Optional[str] = None


@dataclass
class GetLicenseQuery:
    """Query for a license with its activations and subscription."""

    license_key: str


@dataclass
class LicenseStatsQuery:
    """Query for license counters, optionally for one product."""

    product_id: Optional[uuid.UUID] = None


@dataclass
class ExpiringLicensesQuery:
    """Query for active licenses expiring within `days_ahead` days."""

    days_ahead: int = 7


@dataclass
class LicenseFileQuery:
    """Query for the signed plain-text license certificate."""

    license_key: str
