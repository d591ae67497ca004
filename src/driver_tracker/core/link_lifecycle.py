"""Tracking link lifecycle: create, cancel, resolve and expire links.

The controller sits between the HTTP routes and the link store. It owns
the single-active-link-per-driver rule and the expiration checks; the
repository is responsible for making the supersede step atomic.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Union
from uuid import UUID, uuid4

from ..db.models import TrackingLink, utc_now
from ..domain.drivers import DriverRecord
from ..domain.errors import (
    DriverMissingError,
    ExpiredLinkError,
    InvalidLinkError,
    NotFoundError,
    ValidationError,
)
from ..repositories.interfaces import TrackingLinkRepository
from ..upstream.driver_api import DriverDataClient
from ..utils.logging_config import get_logger, log_exception

logger = get_logger('links')

Clock = Callable[[], datetime]


@dataclass
class CreatedLink:
    """Result of creating a tracking link."""

    link_id: str
    tracking_url: str
    expires_at: datetime
    driver_name: str
    superseded: int = 0


@dataclass
class ResolvedLink:
    """A live tracking link together with the driver's current record."""

    link: TrackingLink
    driver: DriverRecord

    @property
    def expires_at(self) -> datetime:
        return self.link.expires_at


def build_tracking_url(base_url: str, link_id: Union[str, UUID]) -> str:
    """Build the public tracking URL for a link."""
    return f"{base_url.rstrip('/')}/track/{link_id}"


class LinkLifecycleController:
    """Creates, cancels, resolves and sweeps tracking links.

    ``drivers`` may be omitted when only sweeping, which never reads driver data.
    """

    def __init__(
        self,
        links: TrackingLinkRepository,
        drivers: Optional[DriverDataClient] = None,
        clock: Clock = utc_now,
        max_expiration_hours: Optional[int] = None,
    ):
        self.links = links
        self.drivers = drivers
        self.clock = clock
        self.max_expiration_hours = max_expiration_hours

    def _validate_expiration_hours(self, expiration_hours) -> int:
        if expiration_hours is None or expiration_hours == "":
            raise ValidationError("Missing fields")
        if isinstance(expiration_hours, bool) or not isinstance(expiration_hours, int):
            raise ValidationError("expirationHours must be a whole number of hours")
        if expiration_hours < 1:
            raise ValidationError("expirationHours must be a positive number of hours")
        if self.max_expiration_hours and expiration_hours > self.max_expiration_hours:
            raise ValidationError(
                f"expirationHours cannot exceed {self.max_expiration_hours}"
            )
        return expiration_hours

    def create_link(
        self,
        driver_name: Optional[str],
        expiration_hours: Optional[int],
        requested_by: str,
        base_url: str,
    ) -> CreatedLink:
        """
        Create a new active tracking link for a driver.

        Any link already active for the driver is deactivated in the same
        store transaction as the insert.

        Raises:
            ValidationError: If an input is missing or out of range
            NotFoundError: If the driver API does not list the driver
            UpstreamFetchError: If the driver API fails and fallback is off
            StoreError: If the link could not be persisted
        """
        if not driver_name or not driver_name.strip():
            raise ValidationError("Missing fields")
        hours = self._validate_expiration_hours(expiration_hours)

        if self.drivers.find_driver(driver_name) is None:
            raise NotFoundError("Driver not found")

        now = self.clock()
        link, superseded = self.links.replace_active_link(
            link_id=uuid4(),
            driver_name=driver_name,
            created_by=requested_by,
            created_at=now,
            expires_at=now + timedelta(hours=hours),
        )

        logger.info(
            f"Created tracking link {link.id} for '{driver_name}' by {requested_by}, "
            f"expires {link.expires_at.isoformat()} (superseded {superseded})"
        )

        return CreatedLink(
            link_id=str(link.id),
            tracking_url=build_tracking_url(base_url, link.id),
            expires_at=link.expires_at,
            driver_name=link.driver_name,
            superseded=superseded,
        )

    def cancel_link(self, driver_name: Optional[str]) -> int:
        """
        Deactivate the driver's active tracking link.

        Returns:
            Number of links deactivated (more than one only if a past race
            left several active)

        Raises:
            ValidationError: If driver_name is missing
            NotFoundError: If the driver has no active link
        """
        if not driver_name or not driver_name.strip():
            raise ValidationError("Missing fields")

        count = self.links.deactivate_active_for_driver(driver_name)
        if count == 0:
            raise NotFoundError("No active tracking link")

        logger.info(f"Cancelled {count} tracking link(s) for '{driver_name}'")
        return count

    def resolve_link(self, link_id: Union[str, UUID]) -> ResolvedLink:
        """
        Resolve a public tracking link to the driver's current record.

        Expiration is detected here, not enforced: the record is not modified.

        Raises:
            InvalidLinkError: If no link exists for link_id
            ExpiredLinkError: If the link is inactive or past its expiry
            DriverMissingError: If the driver API no longer lists the driver
            UpstreamFetchError: If the driver API fails and fallback is off
        """
        link = self.links.get_by_id(link_id)
        if link is None:
            raise InvalidLinkError()

        if not link.is_live(self.clock()):
            raise ExpiredLinkError()

        driver = self.drivers.find_driver(link.driver_name)
        if driver is None:
            logger.warning(f"Link {link.id} references missing driver '{link.driver_name}'")
            raise DriverMissingError()

        return ResolvedLink(link=link, driver=driver)

    def list_drivers(self) -> List[DriverRecord]:
        """Get the current driver list from the driver API."""
        return self.drivers.fetch_drivers()

    def list_active_links(self) -> List[TrackingLink]:
        """Get links that are active and unexpired right now."""
        return self.links.list_active(self.clock())

    def sweep_expired_links(self) -> int:
        """
        Deactivate links that are still flagged active but past their expiry.

        Each link is deactivated independently; a failure is logged and the
        sweep moves on to the next link.

        Returns:
            Number of links deactivated by this sweep
        """
        now = self.clock()
        expired_ids = [link.id for link in self.links.list_expired_active(now)]

        deactivated = 0
        failed = 0
        for link_id in expired_ids:
            try:
                if self.links.deactivate(link_id):
                    deactivated += 1
                    logger.info(f"Expired link deactivated: {link_id}")
            except Exception as e:
                failed += 1
                log_exception('links', e, {"link_id": link_id})

        if expired_ids:
            logger.info(
                f"Sweep complete: {deactivated} deactivated, {failed} failed, "
                f"{len(expired_ids)} candidates"
            )
        return deactivated
