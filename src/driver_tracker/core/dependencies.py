"""Dependency injection for the link lifecycle controller."""

from fastapi import Depends

from ..config import get_config
from ..db.models import utc_now
from ..repositories.dependencies import get_tracking_link_repository
from ..repositories.interfaces import TrackingLinkRepository
from ..upstream.driver_api import DriverDataClient, get_driver_client
from .link_lifecycle import Clock, LinkLifecycleController


def get_clock() -> Clock:
    """Get the clock used for expiry decisions."""
    return utc_now


def get_link_controller(
    links: TrackingLinkRepository = Depends(get_tracking_link_repository),
    drivers: DriverDataClient = Depends(get_driver_client),
    clock: Clock = Depends(get_clock),
) -> LinkLifecycleController:
    """Build a controller bound to the request's repository."""
    return LinkLifecycleController(
        links=links,
        drivers=drivers,
        clock=clock,
        max_expiration_hours=get_config().links.max_expiration_hours,
    )
