"""Operator dashboard pages."""

from typing import Dict

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from ..auth.dependencies import (
    OperatorIdentity,
    get_current_operator_optional,
    require_operator_page,
)
from ..config import get_config
from ..core.dependencies import get_link_controller
from ..core.link_lifecycle import LinkLifecycleController, build_tracking_url
from ..domain.errors import UpstreamFetchError
from ..utils.logging_config import get_logger
from .schemas import ActiveLinkSummary
from .templating import resolve_base_url, templates

router = APIRouter(tags=["dashboard"])

logger = get_logger('api')


@router.get("/", include_in_schema=False)
def root(request: Request):
    """Send the browser to the dashboard or the login page."""
    if get_current_operator_optional(request) is not None:
        return RedirectResponse(url="/dashboard", status_code=status.HTTP_303_SEE_OTHER)
    return RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)


@router.get("/dashboard", response_class=HTMLResponse, include_in_schema=False)
def dashboard(
    request: Request,
    operator: OperatorIdentity = Depends(require_operator_page),
    controller: LinkLifecycleController = Depends(get_link_controller),
):
    """
    Show the live driver list with link controls.

    A driver API outage renders the page with an empty list and a warning
    instead of failing.
    """
    warning = None
    try:
        drivers = controller.list_drivers()
    except UpstreamFetchError as e:
        logger.warning(f"Dashboard rendered without driver data: {e}")
        drivers = []
        warning = "Driver data is currently unavailable. Try again in a few minutes."

    if any(driver.placeholder for driver in drivers):
        warning = "Driver API unavailable: showing placeholder data, not live locations."

    base_url = resolve_base_url(request)
    active_links: Dict[str, ActiveLinkSummary] = {}
    # Newest first; after a create race only the newest link is shown
    for link in controller.list_active_links():
        if link.driver_name in active_links:
            continue
        active_links[link.driver_name] = ActiveLinkSummary(
            link_id=str(link.id),
            driver_name=link.driver_name,
            tracking_url=build_tracking_url(base_url, link.id),
            expires_at=link.expires_at,
            created_by=link.created_by,
        )

    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "user": operator,
            "drivers": drivers,
            "active_links": active_links,
            "warning": warning,
            "expiration_choices": get_config().links.expiration_choices,
        },
    )
