"""
Activation DTOs for API responses.
"""
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from activations.domain.activation import Activation
from core.domain.exceptions import DomainException


@dataclass
class ActivationDTO:
    """DTO for one activation row."""

    id: uuid.UUID
    machine_fingerprint: str
    machine_id: Optional[str]
    ip_address: Optional[str]
    user_agent: str
    system_info: Dict[str, Any]
    is_active: bool
    activated_at: datetime
    deactivated_at: Optional[datetime]

    @classmethod
    def from_entity(cls, activation: Activation) -> "ActivationDTO":
        return cls(
            id=activation.id,
            machine_fingerprint=str(activation.machine_fingerprint),
            machine_id=activation.machine_id,
            ip_address=activation.ip_address,
            user_agent=activation.user_agent,
            system_info=activation.system_info,
            is_active=activation.is_active,
            activated_at=activation.activated_at,
            deactivated_at=activation.deactivated_at,
        )


@dataclass
class ActivationResultDTO:
    """Outcome of an activate or deactivate call."""

    ok: bool
    error_code: Optional[str] = None
    message: str = ""
    activation_id: Optional[uuid.UUID] = None
    remaining_activations: Optional[int] = None
    expires_at: Optional[datetime] = None

    @classmethod
    def failure(cls, exc: DomainException) -> "ActivationResultDTO":
        return cls(ok=False, error_code=exc.code, message=exc.message)
