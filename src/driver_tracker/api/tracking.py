"""Public tracking page and tracking API."""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, PlainTextResponse

from ..core.dependencies import get_link_controller
from ..core.link_lifecycle import LinkLifecycleController
from ..domain.errors import (
    DriverMissingError,
    ExpiredLinkError,
    InvalidLinkError,
    StoreError,
    UpstreamFetchError,
)
from ..utils.logging_config import get_logger, log_exception
from .schemas import ErrorResponse, TrackingResponse
from .templating import templates

router = APIRouter(tags=["tracking"])

logger = get_logger('api')


def _render_tracking(request: Request, context: dict, status_code: int = 200):
    base = {"driver": None, "error": None, "expires_at": None, "link_id": None}
    base.update(context)
    return templates.TemplateResponse(
        request, "tracking.html", base, status_code=status_code
    )


@router.get("/track/{link_id}", response_class=HTMLResponse, include_in_schema=False)
def tracking_page(
    link_id: str,
    request: Request,
    controller: LinkLifecycleController = Depends(get_link_controller),
):
    """Render the public tracking page for a link."""
    try:
        resolved = controller.resolve_link(link_id)
    except InvalidLinkError:
        return PlainTextResponse(
            "Invalid or expired link", status_code=status.HTTP_403_FORBIDDEN
        )
    except ExpiredLinkError:
        return PlainTextResponse(
            "Link expired or inactive", status_code=status.HTTP_403_FORBIDDEN
        )
    except DriverMissingError:
        return _render_tracking(
            request,
            {"error": "Driver data missing"},
            status_code=status.HTTP_404_NOT_FOUND,
        )
    except UpstreamFetchError as e:
        log_exception('upstream', e, {"link_id": link_id})
        return _render_tracking(
            request,
            {"error": "Unable to fetch driver"},
            status_code=status.HTTP_502_BAD_GATEWAY,
        )
    except StoreError as e:
        log_exception('api', e, {"link_id": link_id})
        return PlainTextResponse(
            "Something broke!", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    return _render_tracking(
        request,
        {
            "driver": resolved.driver,
            "expires_at": resolved.expires_at,
            "link_id": str(resolved.link.id),
        },
    )


@router.get(
    "/api/track/{link_id}",
    response_model=TrackingResponse,
    responses={
        200: {"description": "Current driver record"},
        403: {"model": ErrorResponse, "description": "Link expired or inactive"},
        404: {"model": ErrorResponse, "description": "Invalid link or driver missing"},
        502: {"model": ErrorResponse, "description": "Driver API unavailable"},
    },
)
def tracking_api(
    link_id: str,
    controller: LinkLifecycleController = Depends(get_link_controller),
) -> TrackingResponse:
    """Return the driver's current record for a live tracking link."""
    resolved = controller.resolve_link(link_id)
    return TrackingResponse(
        driver=resolved.driver.to_public_dict(),
        expires_at=resolved.expires_at,
    )
