"""Operator login and logout endpoints."""

from fastapi import APIRouter, Form, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse

from ..auth.dependencies import (
    end_operator_session,
    get_current_operator_optional,
    start_operator_session,
)
from ..auth.rate_limiter import rate_limiter
from ..auth.security import verify_operator_credentials
from ..config import get_config
from ..utils.logging_config import get_logger
from .templating import templates

router = APIRouter(tags=["auth"])

logger = get_logger('auth')


def _render_login(request: Request, error: str = None, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "login.html",
        {
            "error": error,
            "login_enabled": get_config().auth.login_enabled,
        },
        status_code=status_code,
    )


@router.get("/login", response_class=HTMLResponse, include_in_schema=False)
def login_form(request: Request):
    """Show the login form, or go straight to the dashboard if logged in."""
    if get_current_operator_optional(request) is not None:
        return RedirectResponse(url="/dashboard", status_code=status.HTTP_303_SEE_OTHER)
    return _render_login(request)


@router.post("/login", response_class=HTMLResponse, include_in_schema=False)
def login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
):
    """
    Authenticate the operator against the configured credential pair.

    Rate limited per client IP; repeated failures block the IP for a
    penalty period.
    """
    rate_limiter.check_rate_limit(request)

    config = get_config()
    if not verify_operator_credentials(username, password, config.auth):
        rate_limiter.record_auth_failure(request)
        logger.warning(f"Failed login attempt for username '{username}'")
        return _render_login(
            request,
            error="Invalid username or password",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    rate_limiter.record_auth_success(request)
    start_operator_session(request, username)
    logger.info(f"Operator '{username}' logged in")
    return RedirectResponse(url="/dashboard", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/logout", include_in_schema=False)
def logout(request: Request):
    """Clear the session and return to the login page."""
    operator = get_current_operator_optional(request)
    end_operator_session(request)
    if operator is not None:
        logger.info(f"Operator '{operator.username}' logged out")
    return RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)
