"""Abstract repository interfaces for data access layer."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple, Union
from uuid import UUID

from ..db.models import TrackingLink


def parse_link_id(link_id: Union[str, UUID]) -> Optional[UUID]:
    """Parse a link identifier, returning None when it is not a UUID."""
    if isinstance(link_id, UUID):
        return link_id
    try:
        return UUID(str(link_id))
    except (ValueError, TypeError, AttributeError):
        return None


class TrackingLinkRepository(ABC):
    """Repository interface for TrackingLink records.

    Implementations raise ``StoreError`` when the underlying store fails.
    """

    @abstractmethod
    def get_by_id(self, link_id: Union[str, UUID]) -> Optional[TrackingLink]:
        """Get a link by identifier; None for unknown or malformed ids."""
        pass

    @abstractmethod
    def list_active_for_driver(self, driver_name: str) -> List[TrackingLink]:
        """Get all links for a driver that are flagged active."""
        pass

    @abstractmethod
    def list_active(self, now: datetime) -> List[TrackingLink]:
        """Get active links that have not yet expired at ``now``."""
        pass

    @abstractmethod
    def replace_active_link(
        self,
        link_id: UUID,
        driver_name: str,
        created_by: str,
        created_at: datetime,
        expires_at: datetime,
    ) -> Tuple[TrackingLink, int]:
        """
        Atomically deactivate the driver's active links and insert a new one.

        Returns:
            The new active link and the number of links it superseded.
        """
        pass

    @abstractmethod
    def deactivate_active_for_driver(self, driver_name: str) -> int:
        """Deactivate every active link for a driver; returns how many."""
        pass

    @abstractmethod
    def list_expired_active(self, now: datetime) -> List[TrackingLink]:
        """Get links still flagged active whose expiry is before ``now``."""
        pass

    @abstractmethod
    def deactivate(self, link_id: UUID) -> bool:
        """Deactivate one link; False if it was already inactive or missing."""
        pass
