"""Custom middleware and exception handlers for request/response processing."""

from typing import Callable

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..auth.dependencies import LoginRequired
from ..domain.errors import TrackingError
from ..utils.logging_config import get_logger, log_exception

logger = get_logger('api')

# Paths whose callers expect JSON error bodies
JSON_PATHS = ("/api/", "/generate-link", "/cancel-link", "/health", "/ready")


def wants_json(request: Request) -> bool:
    """Decide whether an error for this request should be rendered as JSON."""
    if request.url.path.startswith(JSON_PATHS):
        return True
    return "application/json" in request.headers.get("accept", "")


def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    """Build the ``{"error": message}`` body used by every JSON endpoint."""
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn unhandled exceptions into a generic 500 without leaking details."""

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            log_exception(
                'api',
                exc,
                {"method": request.method, "path": request.url.path},
            )
            if wants_json(request):
                return error_response(
                    status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"
                )
            return PlainTextResponse(
                "Something broke!", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
            )


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    def __init__(self, app: ASGIApp, include_hsts: bool = False):
        super().__init__(app)
        self.include_hsts = include_hsts

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        # Prevent clickjacking and MIME-type confusion
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"

        csp_policy = (
            "default-src 'self'; "
            "script-src 'self'; "
            "style-src 'self' 'unsafe-inline'; "
            "img-src 'self' data:; "
            "connect-src 'self'; "
            "object-src 'none'; "
            "base-uri 'self'; "
            "form-action 'self'; "
            "frame-ancestors 'none'"
        )
        response.headers["Content-Security-Policy"] = csp_policy

        # Only meaningful behind HTTPS
        if self.include_hsts and request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    first = errors[0]
    if first.get("type") == "missing":
        return "Missing fields"

    # Drop the leading "body"/"query" segment from the location
    location = [str(part) for part in first.get("loc", ())[1:]]
    field = ".".join(location)
    message = first.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers mapping exceptions to HTTP responses."""

    @app.exception_handler(TrackingError)
    async def tracking_error_handler(request: Request, exc: TrackingError):
        if exc.status_code >= 500:
            log_exception('api', exc, {"method": request.method, "path": request.url.path})
        else:
            logger.info(
                f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}"
            )
        message = exc.message if exc.expose_message else type(exc).default_message

        if wants_json(request):
            return error_response(exc.status_code, message)
        return PlainTextResponse(message, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_response(
            status.HTTP_400_BAD_REQUEST, _describe_validation_error(exc)
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        headers = getattr(exc, "headers", None)
        if wants_json(request):
            return error_response(exc.status_code, str(exc.detail), headers=headers)
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            return PlainTextResponse("Page not found", status_code=exc.status_code)
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=headers)

    @app.exception_handler(LoginRequired)
    async def login_required_handler(request: Request, exc: LoginRequired):
        return RedirectResponse(url="/login", status_code=status.HTTP_303_SEE_OTHER)
