"""
License detail DTO for the administrative API.
"""
from dataclasses import dataclass, field
from typing import List, Optional

from activations.application.dto.activation_dto import ActivationDTO
from licenses.application.dto.license_dto import LicenseDTO
from subscriptions.application.dto.subscription_dto import SubscriptionDTO


@dataclass
class LicenseDetailDTO:
    """A license with its activation history and subscription."""

    license: LicenseDTO
    activations: List[ActivationDTO] = field(default_factory=list)
    subscription: Optional[SubscriptionDTO] = None
