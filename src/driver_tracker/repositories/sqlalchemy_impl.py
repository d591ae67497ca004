"""SQLAlchemy concrete implementation of the tracking link repository."""

from datetime import datetime
from typing import List, Optional, Tuple, Union
from uuid import UUID

from sqlalchemy import and_, desc
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .interfaces import TrackingLinkRepository, parse_link_id
from ..db.models import TrackingLink
from ..domain.errors import StoreError
from ..utils.logging_config import get_logger

logger = get_logger('database')


class SQLAlchemyTrackingLinkRepository(TrackingLinkRepository):
    """SQLAlchemy implementation of TrackingLinkRepository."""

    # Attempts at the deactivate-then-insert transaction when a concurrent
    # create for the same driver trips the active-link unique index
    max_replace_attempts = 3

    def __init__(self, session: Session):
        self._session = session

    def _active_for_driver(self, driver_name: str):
        return self._session.query(TrackingLink).filter(
            and_(
                TrackingLink.driver_name == driver_name,
                TrackingLink.active.is_(True),
            )
        )

    def get_by_id(self, link_id: Union[str, UUID]) -> Optional[TrackingLink]:
        """Get a link by identifier."""
        parsed = parse_link_id(link_id)
        if parsed is None:
            return None
        try:
            return self._session.query(TrackingLink).filter(TrackingLink.id == parsed).first()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load tracking link: {e}") from e

    def list_active_for_driver(self, driver_name: str) -> List[TrackingLink]:
        """Get all active links for a driver."""
        try:
            return self._active_for_driver(driver_name).all()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to query tracking links: {e}") from e

    def list_active(self, now: datetime) -> List[TrackingLink]:
        """Get active, unexpired links, newest first."""
        try:
            return (
                self._session.query(TrackingLink)
                .filter(
                    and_(
                        TrackingLink.active.is_(True),
                        TrackingLink.expires_at >= now,
                    )
                )
                .order_by(desc(TrackingLink.created_at))
                .all()
            )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to query tracking links: {e}") from e

    def replace_active_link(
        self,
        link_id: UUID,
        driver_name: str,
        created_by: str,
        created_at: datetime,
        expires_at: datetime,
    ) -> Tuple[TrackingLink, int]:
        """Deactivate the driver's active links and insert a new one in one transaction."""
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_replace_attempts + 1):
            try:
                superseded = self._active_for_driver(driver_name).update(
                    {TrackingLink.active: False}, synchronize_session=False
                )
                link = TrackingLink(
                    id=link_id,
                    driver_name=driver_name,
                    created_by=created_by,
                    created_at=created_at,
                    expires_at=expires_at,
                    active=True,
                )
                self._session.add(link)
                self._session.commit()
                self._session.refresh(link)
                return link, superseded
            except IntegrityError as e:
                # Another request activated a link for this driver between
                # our UPDATE and INSERT
                self._session.rollback()
                last_error = e
                logger.warning(
                    f"Concurrent link creation for driver '{driver_name}' "
                    f"(attempt {attempt}/{self.max_replace_attempts}), retrying"
                )
            except SQLAlchemyError as e:
                self._session.rollback()
                raise StoreError(f"Failed to create tracking link: {e}") from e

        raise StoreError(
            f"Failed to create tracking link for '{driver_name}' after "
            f"{self.max_replace_attempts} attempts"
        ) from last_error

    def deactivate_active_for_driver(self, driver_name: str) -> int:
        """Deactivate every active link for a driver in a single UPDATE."""
        try:
            count = self._active_for_driver(driver_name).update(
                {TrackingLink.active: False}, synchronize_session=False
            )
            self._session.commit()
            return count
        except SQLAlchemyError as e:
            self._session.rollback()
            raise StoreError(f"Failed to deactivate tracking links: {e}") from e

    def list_expired_active(self, now: datetime) -> List[TrackingLink]:
        """Get links flagged active whose expiry has passed."""
        try:
            return (
                self._session.query(TrackingLink)
                .filter(
                    and_(
                        TrackingLink.active.is_(True),
                        TrackingLink.expires_at < now,
                    )
                )
                .order_by(TrackingLink.expires_at)
                .all()
            )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to query expired tracking links: {e}") from e

    def deactivate(self, link_id: UUID) -> bool:
        """Deactivate one link if it is still active."""
        try:
            count = (
                self._session.query(TrackingLink)
                .filter(
                    and_(
                        TrackingLink.id == link_id,
                        TrackingLink.active.is_(True),
                    )
                )
                .update({TrackingLink.active: False}, synchronize_session=False)
            )
            self._session.commit()
            return count > 0
        except SQLAlchemyError as e:
            self._session.rollback()
            raise StoreError(f"Failed to deactivate tracking link {link_id}: {e}") from e
