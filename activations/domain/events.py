"""
Activation domain events.
"""

import uuid
from dataclasses import dataclass

from licenses.domain.events import LicenseEvent


@dataclass(frozen=True, kw_only=True)
class LicenseActivated(LicenseEvent):
    """Event raised when a machine is bound to a license."""

    activation_id: uuid.UUID
    machine_fingerprint: str
    remaining_activations: int


@dataclass(frozen=True, kw_only=True)
class LicenseDeactivated(LicenseEvent):
    """Event raised when a machine is unbound from a license."""

    activation_id: uuid.UUID
    machine_fingerprint: str
    remaining_activations: int


@dataclass(frozen=True, kw_only=True)
class ActivationCountClamped(LicenseEvent):
    """Event raised when a deactivation found the count already at zero."""

    activation_id: uuid.UUID
