"""
Django implementation of ActivationRepository port.

This adapter converts between domain entities and Django ORM models.
The mapping helpers are shared with the license repository, which
writes activations under the license lock.
"""

import uuid
from typing import Any, Dict, List, Optional

from asgiref.sync import sync_to_async

from activations.domain.activation import Activation
from activations.infrastructure.models import LicenseActivation as ActivationModel
from activations.ports.activation_repository import ActivationRepository
from core.domain.value_objects import MachineFingerprint


def activation_to_domain(model: ActivationModel) -> Activation:
    """
    Convert Django model to domain entity.

    Args:
        model: Django LicenseActivation model

    Returns:
        Activation domain entity
    """
    return Activation(
        id=model.id,
        license_id=model.license_id,
        machine_fingerprint=MachineFingerprint(model.machine_fingerprint),
        machine_id=model.machine_id,
        ip_address=model.ip_address,
        user_agent=model.user_agent or "",
        system_info=model.system_info or {},
        is_active=model.is_active,
        activated_at=model.activated_at,
        deactivated_at=model.deactivated_at,
    )


def activation_fields(activation: Activation) -> Dict[str, Any]:
    """Column values for an activation row."""
    return {
        "license_id": activation.license_id,
        "machine_fingerprint": str(activation.machine_fingerprint),
        "machine_id": activation.machine_id,
        "ip_address": activation.ip_address,
        "user_agent": activation.user_agent,
        "system_info": activation.system_info,
        "is_active": activation.is_active,
        "activated_at": activation.activated_at,
        "deactivated_at": activation.deactivated_at,
    }


class DjangoActivationRepository(ActivationRepository):
    """Django ORM implementation of ActivationRepository."""

    @sync_to_async
    def find_active(
        self, license_id: uuid.UUID, machine_fingerprint: str
    ) -> Optional[Activation]:
        """
        Find the active activation of a license on one machine.

        Args:
            license_id: License UUID
            machine_fingerprint: Machine fingerprint

        Returns:
            Activation entity or None if not found
        """
        # pylint: disable=no-member
        model = ActivationModel.objects.filter(
            license_id=license_id,
            machine_fingerprint=machine_fingerprint,
            is_active=True,
        ).first()
        return activation_to_domain(model) if model else None

    @sync_to_async
    def find_active_by_license(self, license_id: uuid.UUID) -> List[Activation]:
        # pylint: disable=no-member
        models = ActivationModel.objects.filter(license_id=license_id, is_active=True)
        return [activation_to_domain(model) for model in models]

    @sync_to_async
    def find_all_by_license(self, license_id: uuid.UUID) -> List[Activation]:
        # pylint: disable=no-member
        models = ActivationModel.objects.filter(license_id=license_id).order_by("-activated_at")
        return [activation_to_domain(model) for model in models]
