"""
ListActivationsHandler.
"""

from typing import List

from activations.application.dto.activation_dto import ActivationDTO
from activations.application.queries.list_activations import ListActivationsQuery
from activations.ports.activation_repository import ActivationRepository
from core.domain.exceptions import LicenseNotFoundError
from licenses.domain.license_key import normalize_license_key
from licenses.ports.license_repository import LicenseRepository


class ListActivationsHandler:
    """Handler for ListActivationsQuery."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        activation_repository: ActivationRepository,
    ):
        self.license_repository = license_repository
        self.activation_repository = activation_repository

    async def handle(self, query: ListActivationsQuery) -> List[ActivationDTO]:
        """
        Handle list activations query.

        Args:
            query: ListActivationsQuery

        Returns:
            Activations of the license, newest first

        Raises:
            LicenseNotFoundError: If no license has this key
        """
        license = await self.license_repository.find_by_key(
            normalize_license_key(query.license_key)
        )
        if license is None:
            raise LicenseNotFoundError()
        if query.include_inactive:
            activations = await self.activation_repository.find_all_by_license(license.id)
        else:
            activations = await self.activation_repository.find_active_by_license(license.id)
        return [ActivationDTO.from_entity(activation) for activation in activations]
