"""
ValidateLicenseHandler.

Read-only validity check used by license holders' software. A missing
or malformed key is a normal `not_found` result.
"""

import logging
from typing import Optional

from activations.ports.activation_repository import ActivationRepository
from core.domain.clock import Clock
from core.domain.value_objects import LicenseStatus
from core.metrics import license_validations_total
from licenses.application.dto.license_dto import ValidationResultDTO
from licenses.application.queries.license_queries import ValidateLicenseQuery
from licenses.domain.license_key import (
    LicenseSigner,
    is_valid_key_format,
    mask_license_key,
    normalize_license_key,
)
from licenses.ports.license_repository import LicenseRepository
from products.ports.product_repository import ProductRepository

logger = logging.getLogger(__name__)

NOT_FOUND = "not_found"

_MESSAGES = {
    LicenseStatus.ACTIVE: "License is valid",
    LicenseStatus.SUSPENDED: "License is suspended",
    LicenseStatus.REVOKED: "License has been revoked",
    LicenseStatus.EXPIRED: "License has expired",
}


class ValidateLicenseHandler:
    """Handler for ValidateLicenseQuery."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        product_repository: ProductRepository,
        activation_repository: ActivationRepository,
        signer: LicenseSigner,
        clock: Clock,
    ):
        """Initialize handler with repositories, signer and clock."""
        self.license_repository = license_repository
        self.product_repository = product_repository
        self.activation_repository = activation_repository
        self.signer = signer
        self.clock = clock

    async def handle(self, query: ValidateLicenseQuery) -> ValidationResultDTO:
        """
        Handle validate license query.

        Args:
            query: ValidateLicenseQuery

        Returns:
            ValidationResultDTO, never raising for unknown keys
        """
        now = self.clock.now()
        license_key = normalize_license_key(query.license_key)

        license = None
        if is_valid_key_format(license_key):
            license = await self.license_repository.find_by_key(license_key)
        if license is None:
            license_validations_total.labels(outcome=NOT_FOUND).inc()
            logger.info("Validation for unknown key %s", mask_license_key(license_key))
            return ValidationResultDTO(valid=False, status=NOT_FOUND, message="License not found")

        product = await self.product_repository.find_by_id(license.product_id)

        activated_on_machine: Optional[bool] = None
        if query.machine_fingerprint:
            activation = await self.activation_repository.find_active(
                license.id, query.machine_fingerprint
            )
            activated_on_machine = activation is not None

        signature_valid: Optional[bool] = None
        if query.signature:
            signature_valid = self.signer.verify(license, query.signature)

        status = license.effective_status(now)
        license_validations_total.labels(outcome=status.value).inc()
        return ValidationResultDTO(
            valid=license.is_valid(now),
            status=status.value,
            message=_MESSAGES[status],
            product_id=license.product_id,
            product_name=product.name if product else None,
            license_type=license.license_type.value,
            expires_at=license.effective_expires_at,
            activations_used=license.activation_count,
            max_activations=license.effective_max_activations,
            activated_on_machine=activated_on_machine,
            in_grace_period=license.in_grace_period(now),
            trial_ends_at=license.trial_ends_at,
            signature_valid=signature_valid,
        )
