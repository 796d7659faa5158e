"""
License DTOs for API responses.

Handlers return these typed results instead of raising for expected
failures; `ok` and `error_code` tell the API layer what happened.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.domain.exceptions import DomainException
from licenses.domain.license import License
from licenses.domain.license_key import mask_license_key


@dataclass
class LicenseDTO:
    """DTO for license information, with derived fields evaluated at `now`."""

    id: uuid.UUID
    license_key: str
    product_id: uuid.UUID
    order_ref: str
    user_ref: Optional[str]
    customer_email: str
    customer_name: str
    status: str
    license_type: str
    activation_count: int
    max_activations: int
    remaining_activations: int
    expires_at: Optional[datetime]
    trial_ends_at: Optional[datetime]
    grace_period_ends_at: Optional[datetime]
    in_grace_period: bool
    custom_max_activations: Optional[int]
    custom_expires_at: Optional[datetime]
    requires_machine_id: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, license: License, now: datetime) -> "LicenseDTO":
        """
        Build the DTO from a License entity.

        Args:
            license: License entity
            now: Time used for the effective status

        Returns:
            LicenseDTO
        """
        return cls(
            id=license.id,
            license_key=license.license_key,
            product_id=license.product_id,
            order_ref=license.order_ref,
            user_ref=license.user_ref,
            customer_email=str(license.customer_email),
            customer_name=license.customer_name,
            status=license.effective_status(now).value,
            license_type=license.license_type.value,
            activation_count=license.activation_count,
            max_activations=license.effective_max_activations,
            remaining_activations=license.remaining_activations,
            expires_at=license.effective_expires_at,
            trial_ends_at=license.trial_ends_at,
            grace_period_ends_at=license.grace_period_ends_at,
            in_grace_period=license.in_grace_period(now),
            custom_max_activations=license.custom_max_activations,
            custom_expires_at=license.custom_expires_at,
            requires_machine_id=license.requires_machine_id,
            created_at=license.created_at,
            updated_at=license.updated_at,
        )

    @property
    def masked_key(self) -> str:
        return mask_license_key(self.license_key)


@dataclass
class OperationResultDTO:
    """Outcome of an administrative license operation."""

    ok: bool
    error_code: Optional[str] = None
    message: str = ""
    license: Optional[LicenseDTO] = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(
        cls, license: Optional[LicenseDTO] = None, message: str = "", **data: Any
    ) -> "OperationResultDTO":
        return cls(ok=True, message=message, license=license, data=data)

    @classmethod
    def failure(cls, exc: DomainException) -> "OperationResultDTO":
        return cls(ok=False, error_code=exc.code, message=exc.message)


@dataclass
class IssueResultDTO:
    """Licenses created by one issue, batch or order."""

    ok: bool
    licenses: List[LicenseDTO] = field(default_factory=list)
    error_code: Optional[str] = None
    message: str = ""

    @classmethod
    def failure(cls, exc: DomainException) -> "IssueResultDTO":
        return cls(ok=False, error_code=exc.code, message=exc.message)


@dataclass
class ValidationResultDTO:
    """
    Result of validating a license key.

    `not_found` is a normal result; `activated_on_machine` and
    `signature_valid` are None when the caller did not ask.
    """

    valid: bool
    status: str
    message: str
    product_id: Optional[uuid.UUID] = None
    product_name: Optional[str] = None
    license_type: Optional[str] = None
    expires_at: Optional[datetime] = None
    activations_used: int = 0
    max_activations: int = 0
    activated_on_machine: Optional[bool] = None
    in_grace_period: bool = False
    trial_ends_at: Optional[datetime] = None
    signature_valid: Optional[bool] = None


@dataclass
class LicenseStatsDTO:
    """License counters by effective status."""

    total: int
    active: int
    suspended: int
    revoked: int
    expired: int
    consumed_activations: int
    active_activations: int
