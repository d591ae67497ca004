"""Main FastAPI application for the Driver Tracker."""

import time

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from starlette.middleware.sessions import SessionMiddleware

from . import __version__
from .api import auth, dashboard, links, tracking
from .api.middleware import (
    ErrorHandlingMiddleware,
    SecurityHeadersMiddleware,
    register_exception_handlers,
)
from .config import get_config, get_web_directory
from .core.sweeper import ExpiredLinkSweeper
from .db.database import SessionLocal, init_database
from .utils.logging_config import get_logger, initialize_logging

config = get_config()
logger = get_logger('main')

# Create FastAPI app
app = FastAPI(
    title=config.app.app_name,
    description=config.app.description,
    version=__version__,
    docs_url="/docs" if config.server.debug else None,
    redoc_url=None,
)

# Add custom middleware in correct order (innermost first)
app.add_middleware(ErrorHandlingMiddleware)
app.add_middleware(
    SessionMiddleware,
    secret_key=config.auth.session_secret,
    session_cookie="driver_tracker_session",
    max_age=config.auth.session_max_age_seconds,
    same_site="lax",
    https_only=config.auth.secure_cookies,
)
app.add_middleware(SecurityHeadersMiddleware, include_hsts=config.auth.secure_cookies)

register_exception_handlers(app)

app.mount(
    "/static",
    StaticFiles(directory=str(get_web_directory() / "static")),
    name="static",
)

# Register routers
app.include_router(auth.router)
app.include_router(dashboard.router)
app.include_router(links.router)
app.include_router(tracking.router)


@app.on_event("startup")
async def startup_event():
    """Initialize logging, the database schema and the expired link sweeper."""
    initialize_logging()
    logger.info(f"Starting {config.app.app_name} v{__version__}")

    if config.database.auto_create_tables:
        init_database()

    if config.links.sweep_enabled:
        sweeper = ExpiredLinkSweeper(
            session_factory=SessionLocal,
            interval_seconds=config.links.sweep_interval_seconds,
        )
        sweeper.start()
        app.state.sweeper = sweeper


@app.on_event("shutdown")
async def shutdown_event():
    """Stop background work."""
    sweeper = getattr(app.state, "sweeper", None)
    if sweeper is not None:
        await sweeper.stop()
        app.state.sweeper = None
    logger.info("Driver Tracker stopped")


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "driver-tracker", "version": __version__}


@app.get("/ready")
def readiness_check():
    """Readiness check endpoint that validates database connectivity."""
    start_time = time.time()
    checks = {"database": False}
    errors = []

    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception as e:
        errors.append(f"Database check failed: {e.__class__.__name__}")
        logger.error(f"Readiness check failed: {e}")
    finally:
        db.close()

    all_ready = all(checks.values())
    response = {
        "status": "ready" if all_ready else "not_ready",
        "service": "driver-tracker",
        "version": __version__,
        "checks": checks,
        "response_time_ms": round((time.time() - start_time) * 1000, 2),
    }
    if errors:
        response["errors"] = errors

    return JSONResponse(content=response, status_code=200 if all_ready else 503)
