"""
ActivateLicenseHandler.

Binds a machine to a license. The validity check, the duplicate check
and the cap check run inside the license's locked unit of work, so
concurrent activations of one license are serialized and the cap is
never exceeded.
"""

import logging
from typing import Optional

from activations.application.commands.activate_license import ActivateLicenseCommand
from activations.application.dto.activation_dto import ActivationResultDTO
from activations.domain.activation import ActivationContext
from activations.domain.events import LicenseActivated
from activations.domain.services import ActivationManager
from core.domain.clock import Clock
from core.domain.config import EngineConfig
from core.domain.events import EventBus
from core.domain.exceptions import DomainException, InvalidArgumentError
from core.domain.value_objects import MachineFingerprint
from core.infrastructure.events import event_bus as default_event_bus
from core.metrics import activation_rejections_total, activations_total
from licenses.application.handlers.base import LockedLicenseOperations, license_event
from licenses.domain.license_key import mask_license_key, normalize_license_key
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)


class ActivateLicenseHandler(LockedLicenseOperations):
    """Handler for ActivateLicenseCommand."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        config: EngineConfig,
        clock: Clock,
        event_bus: Optional[EventBus] = None,
    ):
        """Initialize handler with repository, configuration and clock."""
        self.license_repository = license_repository
        self.config = config
        self.clock = clock
        self.event_bus = event_bus or default_event_bus

    async def handle(self, command: ActivateLicenseCommand) -> ActivationResultDTO:
        """
        Handle activate license command.

        Args:
            command: ActivateLicenseCommand

        Returns:
            ActivationResultDTO with the remaining activations, or the
            error code of the rejection
        """
        now = self.clock.now()
        license_key = normalize_license_key(command.license_key)
        try:
            fingerprint = str(MachineFingerprint(command.machine_fingerprint or ""))
        except ValueError as exc:
            return self._rejected(license_key, InvalidArgumentError(str(exc)))

        context = ActivationContext(
            machine_id=command.machine_id,
            ip_address=command.ip_address,
            user_agent=command.user_agent or "",
            system_info=command.system_info or {},
        )

        def work(locked):
            activation = ActivationManager.activate(locked, fingerprint, now, context)
            return activation, locked.license

        try:
            activation, license = await self.run_locked(license_key, work, "activate")
        except DomainException as exc:
            return self._rejected(license_key, exc)

        activations_total.inc()
        logger.info(
            "Activated license %s (%d remaining)",
            mask_license_key(license_key),
            license.remaining_activations,
        )
        await self.event_bus.publish(
            license_event(
                LicenseActivated,
                license,
                now,
                activation_id=activation.id,
                machine_fingerprint=fingerprint,
                remaining_activations=license.remaining_activations,
            )
        )
        return ActivationResultDTO(
            ok=True,
            message="License activated",
            activation_id=activation.id,
            remaining_activations=license.remaining_activations,
            expires_at=license.effective_expires_at,
        )

    def _rejected(self, license_key: str, exc: DomainException) -> ActivationResultDTO:
        activation_rejections_total.labels(reason=exc.code).inc()
        logger.info("Activation of %s rejected: %s", mask_license_key(license_key), exc.code)
        return ActivationResultDTO.failure(exc)
