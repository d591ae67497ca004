"""In-memory implementation of the tracking link repository for testing."""

import threading
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Union
from uuid import UUID

from .interfaces import TrackingLinkRepository, parse_link_id
from ..db.models import TrackingLink


class MemoryTrackingLinkRepository(TrackingLinkRepository):
    """In-memory implementation of TrackingLinkRepository.

    A lock makes the deactivate-then-insert sequence atomic, matching the
    transactional behaviour of the SQLAlchemy implementation.
    """

    def __init__(self):
        self._links: Dict[UUID, TrackingLink] = {}
        self._lock = threading.Lock()

    def add(self, link: TrackingLink) -> TrackingLink:
        """Store a prepared link as-is (test setup helper)."""
        with self._lock:
            self._links[link.id] = link
        return link

    def all(self) -> List[TrackingLink]:
        """Get every stored link."""
        return list(self._links.values())

    def get_by_id(self, link_id: Union[str, UUID]) -> Optional[TrackingLink]:
        """Get a link by identifier."""
        parsed = parse_link_id(link_id)
        if parsed is None:
            return None
        return self._links.get(parsed)

    def list_active_for_driver(self, driver_name: str) -> List[TrackingLink]:
        """Get all active links for a driver."""
        return [
            link for link in self._links.values()
            if link.driver_name == driver_name and link.active
        ]

    def list_active(self, now: datetime) -> List[TrackingLink]:
        """Get active, unexpired links, newest first."""
        links = [
            link for link in self._links.values()
            if link.active and link.expires_at >= now
        ]
        return sorted(links, key=lambda link: link.created_at, reverse=True)

    def replace_active_link(
        self,
        link_id: UUID,
        driver_name: str,
        created_by: str,
        created_at: datetime,
        expires_at: datetime,
    ) -> Tuple[TrackingLink, int]:
        """Deactivate the driver's active links and insert a new one."""
        with self._lock:
            superseded = 0
            for link in self.list_active_for_driver(driver_name):
                link.active = False
                superseded += 1

            link = TrackingLink(
                id=link_id,
                driver_name=driver_name,
                created_by=created_by,
                created_at=created_at,
                expires_at=expires_at,
                active=True,
            )
            self._links[link.id] = link
            return link, superseded

    def deactivate_active_for_driver(self, driver_name: str) -> int:
        """Deactivate every active link for a driver."""
        with self._lock:
            links = self.list_active_for_driver(driver_name)
            for link in links:
                link.active = False
            return len(links)

    def list_expired_active(self, now: datetime) -> List[TrackingLink]:
        """Get links flagged active whose expiry has passed."""
        links = [
            link for link in self._links.values()
            if link.active and link.expires_at < now
        ]
        return sorted(links, key=lambda link: link.expires_at)

    def deactivate(self, link_id: UUID) -> bool:
        """Deactivate one link if it is still active."""
        with self._lock:
            link = self._links.get(link_id)
            if link is None or not link.active:
                return False
            link.active = False
            return True
