"""
Activation domain entity.

This is the core domain entity representing the binding of a license
to one machine. Rows are never deleted; deactivation soft-closes them.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Optional

from core.domain.value_objects import MachineFingerprint


@dataclass(frozen=True)
class ActivationContext:
    """Client details captured alongside an activation."""

    machine_id: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: str = ""
    system_info: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Activation:
    """
    Activation domain entity.

    Consumes one unit of the license's entitlement cap while active.
    """

    id: uuid.UUID
    license_id: uuid.UUID
    machine_fingerprint: MachineFingerprint
    machine_id: Optional[str]
    ip_address: Optional[str]
    user_agent: str
    system_info: Dict[str, Any]
    is_active: bool
    activated_at: datetime
    deactivated_at: Optional[datetime]

    def __post_init__(self):
        """Validate activation entity."""
        if not self.license_id:
            raise ValueError("License ID is required")
        if not self.machine_fingerprint:
            raise ValueError("Machine fingerprint is required")

    @classmethod
    def create(
        cls,
        license_id: uuid.UUID,
        machine_fingerprint: str,
        now: datetime,
        context: Optional[ActivationContext] = None,
        activation_id: Optional[uuid.UUID] = None,
    ) -> "Activation":
        """
        Create a new active Activation entity.

        Args:
            license_id: License UUID
            machine_fingerprint: Opaque client-supplied identifier
            now: Activation time
            context: Optional client details
            activation_id: Optional UUID (generated if not provided)

        Returns:
            Activation entity instance
        """
        context = context or ActivationContext()
        return cls(
            id=activation_id or uuid.uuid4(),
            license_id=license_id,
            machine_fingerprint=MachineFingerprint(machine_fingerprint),
            machine_id=context.machine_id,
            ip_address=context.ip_address,
            user_agent=context.user_agent or "",
            system_info=dict(context.system_info or {}),
            is_active=True,
            activated_at=now,
            deactivated_at=None,
        )

    def deactivate(self, now: datetime) -> "Activation":
        """
        Create a new Activation instance with deactivated status.

        Returns:
            New Activation instance, or self if already inactive
        """
        if not self.is_active:
            return self
        return replace(self, is_active=False, deactivated_at=now)
