"""
Activation domain services.

These run inside LockedLicense, so the validity check, the duplicate
check and the cap check all see the same locked license row as the
write that follows them.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from activations.domain.activation import Activation, ActivationContext
from core.domain.exceptions import (
    AlreadyActivatedError,
    InvalidArgumentError,
    InvalidLicenseError,
    InvariantViolationError,
    NotActivatedError,
)
from licenses.ports.license_repository import LockedLicense


class ActivationManager:
    """Domain service binding and unbinding machines from a license."""

    @staticmethod
    def activate(
        locked: LockedLicense,
        machine_fingerprint: str,
        now: datetime,
        context: Optional[ActivationContext] = None,
    ) -> Activation:
        """
        Bind a machine to the locked license.

        Args:
            locked: License held under lock
            machine_fingerprint: Opaque machine identifier
            now: Current time
            context: Client details

        Returns:
            The new Activation

        Raises:
            InvalidLicenseError: If the license is not valid at `now`
            InvalidArgumentError: If the license requires a machine id and
                none was given
            AlreadyActivatedError: If the machine is already bound
            ActivationCapExceededError: If the cap is reached
        """
        license = locked.license
        if not license.is_valid(now):
            raise InvalidLicenseError(status=str(license.effective_status(now)))

        if license.requires_machine_id:
            machine_id = context.machine_id if context is not None else None
            if not machine_id or not machine_id.strip():
                raise InvalidArgumentError("This license requires a machine id to activate")

        if locked.active_activation(machine_fingerprint) is not None:
            raise AlreadyActivatedError()

        updated = license.record_activation(now)
        activation = locked.add_activation(
            Activation.create(
                license_id=license.id,
                machine_fingerprint=machine_fingerprint,
                now=now,
                context=context,
            )
        )
        locked.save_license(updated)
        return activation

    @staticmethod
    def deactivate(
        locked: LockedLicense,
        machine_fingerprint: str,
        now: datetime,
        strict: bool = False,
    ) -> Tuple[Activation, bool]:
        """
        Unbind a machine from the locked license.

        Args:
            locked: License held under lock
            machine_fingerprint: Opaque machine identifier
            now: Current time
            strict: Fail instead of clamping when the count is already zero

        Returns:
            Tuple of (closed activation, clamped)

        Raises:
            NotActivatedError: If the machine holds no active activation
            InvariantViolationError: If strict and the count was already zero
        """
        activation = locked.active_activation(machine_fingerprint)
        if activation is None:
            raise NotActivatedError()

        updated, clamped = locked.license.release_activation(now)
        if clamped and strict:
            raise InvariantViolationError(
                "Activation count is already zero while an active activation exists"
            )

        closed = locked.save_activation(activation.deactivate(now))
        locked.save_license(updated)
        return closed, clamped

    @staticmethod
    def close_all(locked: LockedLicense, now: datetime) -> List[Activation]:
        """
        Close every active activation without refunding the count.

        Returns:
            The activations that were closed
        """
        return [
            locked.save_activation(activation.deactivate(now))
            for activation in locked.active_activations()
        ]
