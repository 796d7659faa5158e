"""
DeactivateLicenseHandler.

Releases a machine's activation. A decrement that finds the count
already at zero is clamped and reported as an invariant violation:
logged and counted, and fatal only when strict invariants are on.
"""

import logging
from typing import Optional

from activations.application.commands.deactivate_license import DeactivateLicenseCommand
from activations.application.dto.activation_dto import ActivationResultDTO
from activations.domain.events import ActivationCountClamped, LicenseDeactivated
from activations.domain.services import ActivationManager
from core.domain.clock import Clock
from core.domain.config import EngineConfig
from core.domain.events import EventBus
from core.domain.exceptions import (
    DomainException,
    ErrorCode,
    InvalidArgumentError,
)
from core.domain.value_objects import MachineFingerprint
from core.infrastructure.events import event_bus as default_event_bus
from core.metrics import deactivations_total, invariant_violations_total
from licenses.application.handlers.base import LockedLicenseOperations, license_event
from licenses.domain.license_key import mask_license_key, normalize_license_key
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)


class DeactivateLicenseHandler(LockedLicenseOperations):
    """Handler for DeactivateLicenseCommand."""

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

    async def handle(self, command: DeactivateLicenseCommand) -> ActivationResultDTO:
        """
        Handle deactivate license command.

        Args:
            command: DeactivateLicenseCommand

        Returns:
            ActivationResultDTO with the remaining activations
        """
        now = self.clock.now()
        license_key = normalize_license_key(command.license_key)
        masked = mask_license_key(license_key)
        try:
            fingerprint = str(MachineFingerprint(command.machine_fingerprint or ""))
        except ValueError as exc:
            return ActivationResultDTO.failure(InvalidArgumentError(str(exc)))

        def work(locked):
            closed, clamped = ActivationManager.deactivate(
                locked, fingerprint, now, strict=self.config.strict_invariants
            )
            return closed, clamped, locked.license

        try:
            closed, clamped, license = await self.run_locked(license_key, work, "deactivate")
        except DomainException as exc:
            if exc.code == ErrorCode.INVARIANT_VIOLATION:
                self._report_clamp(masked)
            logger.info("Deactivation of %s rejected: %s", masked, exc.code)
            return ActivationResultDTO.failure(exc)

        if clamped:
            self._report_clamp(masked)
            await self.event_bus.publish(
                license_event(ActivationCountClamped, license, now, activation_id=closed.id)
            )

        deactivations_total.inc()
        logger.info(
            "Deactivated license %s (%d remaining)", masked, license.remaining_activations
        )
        await self.event_bus.publish(
            license_event(
                LicenseDeactivated,
                license,
                now,
                activation_id=closed.id,
                machine_fingerprint=fingerprint,
                remaining_activations=license.remaining_activations,
            )
        )
        return ActivationResultDTO(
            ok=True,
            message="License deactivated",
            activation_id=closed.id,
            remaining_activations=license.remaining_activations,
            expires_at=license.effective_expires_at,
        )

    @staticmethod
    def _report_clamp(masked_key: str) -> None:
        invariant_violations_total.labels(kind="activation_count_floor").inc()
        logger.error(
            "Activation count of %s was already zero with an active activation",
            masked_key,
        )
