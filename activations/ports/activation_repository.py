"""
Activation repository port (interface).

Read side of the activation ledger. Writes only happen through
LockedLicense, inside the license's transactional boundary.
"""
import uuid
from abc import ABC, abstractmethod
from typing import List, Optional

from activations.domain.activation import Activation


class ActivationRepository(ABC):
    """
    Abstract read-only repository for Activation entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    """

    @abstractmethod
    async def find_active(
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
        pass

    @abstractmethod
    async def find_active_by_license(self, license_id: uuid.UUID) -> List[Activation]:
        """
        Find all active activations for a license.

        Args:
            license_id: License UUID

        Returns:
            List of active Activation entities
        """
        pass

    @abstractmethod
    async def find_all_by_license(self, license_id: uuid.UUID) -> List[Activation]:
        """
        Find all activations for a license (active and inactive).

        Args:
            license_id: License UUID

        Returns:
            List of Activation entities, newest first
        """
        pass
