"""
Command line entry point for Driver Tracker.

Commands:
- serve: run the web application with uvicorn (default)
- sweep: deactivate expired tracking links once and exit
"""

import argparse
import sys
from typing import List, Optional

import uvicorn

from .config import config_manager, get_config
from .utils.logging_config import get_logger, initialize_logging, log_exception


def build_parser() -> argparse.ArgumentParser:
    config = get_config()

    parser = argparse.ArgumentParser(
        prog="driver-tracker",
        description="Time-limited public tracking links for delivery drivers",
    )
    subparsers = parser.add_subparsers(dest="command")

    serve = subparsers.add_parser("serve", help="Run the web server (default)")
    serve.add_argument("--host", default=config.server.host, help="Bind address")
    serve.add_argument("--port", type=int, default=config.server.port, help="Bind port")
    serve.add_argument(
        "--reload",
        action="store_true",
        default=config.server.auto_reload,
        help="Reload on code changes (development only)",
    )

    subparsers.add_parser("sweep", help="Deactivate expired tracking links once and exit")

    return parser


def run_server(host: str, port: int, reload: bool = False) -> None:
    """Run the FastAPI application with uvicorn."""
    logger = get_logger('main')
    logger.info(f"Serving on http://{host}:{port}")
    uvicorn.run(
        "driver_tracker.main:app",
        host=host,
        port=port,
        reload=reload,
        log_level=get_config().app.log_level.lower(),
    )


def run_sweep() -> int:
    """Run one expiration sweep against the configured database."""
    from .core.sweeper import ExpiredLinkSweeper
    from .db.database import SessionLocal, init_database

    config = get_config()
    if config.database.auto_create_tables:
        init_database()

    sweeper = ExpiredLinkSweeper(session_factory=SessionLocal)
    return sweeper.run_once()


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    initialize_logging()

    logger = get_logger('main')
    for issue in config_manager.validate_config():
        logger.warning(f"Configuration: {issue}")

    if args.command == "sweep":
        try:
            count = run_sweep()
        except Exception as e:
            log_exception('sweeper', e)
            print(f"Sweep failed: {e}", file=sys.stderr)
            return 1
        print(f"Deactivated {count} expired tracking link(s)")
        return 0

    config = get_config()
    host = getattr(args, "host", config.server.host)
    port = getattr(args, "port", config.server.port)
    reload = getattr(args, "reload", config.server.auto_reload)
    run_server(host, port, reload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
