"""Tracking link management endpoints (operator only)."""

from fastapi import APIRouter, Depends, Request

from ..auth.dependencies import OperatorIdentity, require_operator
from ..core.dependencies import get_link_controller
from ..core.link_lifecycle import LinkLifecycleController
from .schemas import (
    CancelLinkRequest,
    CancelLinkResponse,
    ErrorResponse,
    GenerateLinkRequest,
    GenerateLinkResponse,
)
from .templating import resolve_base_url

router = APIRouter(tags=["links"])


@router.post(
    "/generate-link",
    response_model=GenerateLinkResponse,
    responses={
        200: {"description": "Tracking link created"},
        400: {"model": ErrorResponse, "description": "Missing or invalid fields"},
        401: {"model": ErrorResponse, "description": "Not logged in"},
        404: {"model": ErrorResponse, "description": "Driver not found"},
        502: {"model": ErrorResponse, "description": "Driver API unavailable"},
    },
)
def generate_link(
    payload: GenerateLinkRequest,
    request: Request,
    operator: OperatorIdentity = Depends(require_operator),
    controller: LinkLifecycleController = Depends(get_link_controller),
) -> GenerateLinkResponse:
    """
    Generate a public tracking link for a driver.

    Any link already active for the driver stops working once this one is
    created.
    """
    created = controller.create_link(
        driver_name=payload.driver_name,
        expiration_hours=payload.expiration_hours,
        requested_by=operator.username,
        base_url=resolve_base_url(request),
    )

    return GenerateLinkResponse(
        tracking_url=created.tracking_url,
        expires_at=created.expires_at,
        driver_name=created.driver_name,
    )


@router.post(
    "/cancel-link",
    response_model=CancelLinkResponse,
    responses={
        200: {"description": "Tracking link cancelled"},
        400: {"model": ErrorResponse, "description": "Missing fields"},
        401: {"model": ErrorResponse, "description": "Not logged in"},
        404: {"model": ErrorResponse, "description": "No active tracking link"},
    },
)
def cancel_link(
    payload: CancelLinkRequest,
    operator: OperatorIdentity = Depends(require_operator),
    controller: LinkLifecycleController = Depends(get_link_controller),
) -> CancelLinkResponse:
    """Cancel the driver's active tracking link."""
    deactivated = controller.cancel_link(payload.driver_name)
    return CancelLinkResponse(deactivated=deactivated)
