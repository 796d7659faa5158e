"""
License repository port (interface).

The license repository is the entitlement store: it owns every durable
license record and is the only way to mutate a license together with
its activations and subscription. Mutations go through `run_locked`,
which serializes all work on one license row.
"""
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple, TypeVar

from activations.domain.activation import Activation
from licenses.domain.license import License
from subscriptions.domain.subscription import Subscription

T = TypeVar("T")


class LockedLicense(ABC):
    """
    A license row held under an exclusive lock.

    Everything written through this object commits or rolls back
    together when the unit of work returns or raises.
    """

    license: License

    @abstractmethod
    def save_license(self, license: License) -> License:
        """Persist the license and make it the current `license`."""
        pass

    @abstractmethod
    def active_activation(self, machine_fingerprint: str) -> Optional[Activation]:
        """Return the active activation for a fingerprint, if any."""
        pass

    @abstractmethod
    def active_activations(self) -> List[Activation]:
        """Return every active activation of the license."""
        pass

    @abstractmethod
    def add_activation(self, activation: Activation) -> Activation:
        """Insert a new activation row."""
        pass

    @abstractmethod
    def save_activation(self, activation: Activation) -> Activation:
        """Update an existing activation row."""
        pass

    @abstractmethod
    def subscription(self) -> Optional[Subscription]:
        """Return the license's subscription, if any."""
        pass

    @abstractmethod
    def save_subscription(self, subscription: Subscription) -> Subscription:
        """Insert or update the license's subscription."""
        pass


class LicenseRepository(ABC):
    """
    Abstract repository for License entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    """

    @abstractmethod
    async def add(
        self, license: License, subscription: Optional[Subscription] = None
    ) -> License:
        """
        Insert a newly issued license, and its subscription, atomically.

        Args:
            license: License entity to insert
            subscription: Optional subscription linked to the license

        Returns:
            Saved license entity
        """
        pass

    @abstractmethod
    async def add_order(
        self, order_ref: str, entries: List[Tuple[License, Optional[Subscription]]]
    ) -> Tuple[List[License], bool]:
        """
        Insert every license of an order in one transaction, once per order.

        The order reference is claimed in the same transaction, so two
        concurrent deliveries of one order cannot both insert. Either
        every entry is stored or none is.

        Args:
            order_ref: Order reference shared by the entries
            entries: License and optional subscription per purchased unit

        Returns:
            Tuple of (licenses of the order, created). When the order was
            already claimed nothing is inserted and the stored licenses
            come back with created=False.

        Raises:
            TransientStoreError: If the store aborted the transaction
        """
        pass

    @abstractmethod
    async def find_by_key(self, license_key: str) -> Optional[License]:
        """
        Find a license by key, without locking.

        Args:
            license_key: Normalized license key

        Returns:
            License entity or None if not found
        """
        pass

    @abstractmethod
    async def find_by_id(self, license_id: uuid.UUID) -> Optional[License]:
        """
        Find a license by ID.

        Args:
            license_id: License UUID

        Returns:
            License entity or None if not found
        """
        pass

    @abstractmethod
    async def key_exists(self, license_key: str) -> bool:
        """Check whether a key is already taken."""
        pass

    @abstractmethod
    async def find_by_order(self, order_ref: str) -> List[License]:
        """Find every license issued for an order."""
        pass

    @abstractmethod
    async def run_locked(
        self, license_key: str, work: Callable[[LockedLicense], T]
    ) -> T:
        """
        Run `work` against the license row under an exclusive lock.

        The lock is held for the duration of one transaction; `work`
        must not perform network calls. If `work` raises, nothing it
        wrote is kept.

        Args:
            license_key: Normalized license key
            work: Synchronous unit of work

        Returns:
            Whatever `work` returns

        Raises:
            LicenseNotFoundError: If no license has this key
            TransientStoreError: If the store aborted the transaction
        """
        pass

    @abstractmethod
    async def find_expiring(self, now: datetime, until: datetime) -> List[License]:
        """
        Find active licenses whose effective expiration is in [now, until].

        Args:
            now: Window start
            until: Window end

        Returns:
            List of License entities ordered by expiration
        """
        pass

    @abstractmethod
    async def stats(
        self, now: datetime, product_id: Optional[uuid.UUID] = None
    ) -> Dict[str, int]:
        """
        Count licenses by effective status.

        Returns:
            Mapping with keys total, active, suspended, revoked, expired,
            consumed_activations and active_activations
        """
        pass

    @abstractmethod
    async def purge_revoked(self, before: datetime, dry_run: bool = False) -> int:
        """
        Physically delete revoked licenses last updated before a cutoff.

        Args:
            before: Cutoff datetime
            dry_run: Only count matching licenses

        Returns:
            Number of licenses deleted (or that would be deleted)
        """
        pass
