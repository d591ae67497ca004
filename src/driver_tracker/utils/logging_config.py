"""
Centralized logging configuration for Driver Tracker.
Provides component-specific loggers with separate log files.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Dict, Any
from datetime import datetime

from ..config import get_config

DETAILED_FORMAT = (
    '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s'
)
SIMPLE_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'


class ComponentLogger:
    """Manages component-specific logging with separate files."""

    _loggers: Dict[str, logging.Logger] = {}
    _initialized = False
    _log_dir: Optional[Path] = None
    _to_file = True
    _debug = False
    _unified_handler: Optional[logging.Handler] = None
    _stream_handler: Optional[logging.Handler] = None

    # Component definitions with their log levels
    COMPONENTS = {
        'api': {'level': logging.INFO, 'file': 'api.log'},
        'auth': {'level': logging.INFO, 'file': 'auth.log'},
        'links': {'level': logging.INFO, 'file': 'links.log'},
        'upstream': {'level': logging.INFO, 'file': 'upstream.log'},
        'sweeper': {'level': logging.INFO, 'file': 'sweeper.log'},
        'database': {'level': logging.INFO, 'file': 'database.log'},
        'main': {'level': logging.INFO, 'file': 'main.log'},
        'error': {'level': logging.ERROR, 'file': 'errors.log'},  # Centralized error log
    }

    @classmethod
    def initialize(cls, log_dir: Optional[str] = None, debug: Optional[bool] = None) -> None:
        """
        Initialize the logging system with component-specific loggers.

        Args:
            log_dir: Directory for log files. Defaults to config.app.log_dir
            debug: Enable debug logging for all components. Defaults to the
                configured log level.
        """
        if cls._initialized:
            return

        config = get_config()
        if debug is None:
            debug = config.app.log_level.upper() == "DEBUG"
        cls._debug = debug
        cls._to_file = config.app.log_to_file

        detailed_formatter = logging.Formatter(DETAILED_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
        simple_formatter = logging.Formatter(SIMPLE_FORMAT, datefmt='%H:%M:%S')

        root_level = logging.DEBUG if debug else logging.INFO
        logging.getLogger().setLevel(root_level)

        unified_handler: Optional[logging.Handler] = None
        session_dir = datetime.now().strftime("%Y%m%d_%H%M%S")

        if cls._to_file:
            cls._log_dir = Path(log_dir or config.app.log_dir) / session_dir
            cls._log_dir.mkdir(parents=True, exist_ok=True)

            # Write session info
            with open(cls._log_dir / "session_info.txt", 'w', encoding='utf-8') as f:
                f.write(f"Session started: {datetime.now().isoformat()}\n")
                f.write(f"Debug mode: {debug}\n")
                f.write("Config:\n")
                f.write(f"  Database: {config.database.url}\n")
                f.write(f"  Driver API: {config.upstream.drivers_url}\n")
                f.write(f"  Fallback drivers: {config.upstream.use_fallback_drivers}\n")
                f.write(f"  Log directory: {cls._log_dir}\n")

            unified_handler = logging.handlers.RotatingFileHandler(
                cls._log_dir / 'unified.log',
                maxBytes=20 * 1024 * 1024,  # 20MB
                backupCount=3,
                encoding='utf-8'
            )
            unified_handler.setLevel(root_level)
            unified_handler.setFormatter(detailed_formatter)

        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(simple_formatter)
        stream_handler.setLevel(root_level if not cls._to_file else logging.ERROR)

        for component_name, component_config in cls.COMPONENTS.items():
            logger = logging.getLogger(f"driver_tracker.{component_name}")
            logger.handlers.clear()
            logger.propagate = False

            level = logging.DEBUG if debug else component_config['level']
            logger.setLevel(level)

            if cls._to_file:
                logger.addHandler(cls._file_handler(component_config['file'], level, detailed_formatter))
                logger.addHandler(unified_handler)
                # Console handler for errors and critical
                if component_name in ['error', 'main']:
                    logger.addHandler(stream_handler)
            else:
                logger.addHandler(stream_handler)

            cls._loggers[component_name] = logger

        cls._unified_handler = unified_handler
        cls._stream_handler = stream_handler

        # Mark as initialized before logging to avoid recursion
        cls._initialized = True

        main_logger = cls._loggers['main']
        main_logger.info("Driver Tracker logging initialized")
        if cls._log_dir:
            main_logger.info(f"Log directory: {cls._log_dir}")

    @classmethod
    def _file_handler(cls, filename: str, level: int, formatter: logging.Formatter) -> logging.Handler:
        handler = logging.handlers.RotatingFileHandler(
            cls._log_dir / filename,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )
        handler.setLevel(level)
        handler.setFormatter(formatter)
        return handler

    @classmethod
    def get_logger(cls, component: str) -> logging.Logger:
        """
        Get a logger for a specific component.

        Args:
            component: Component name (api, auth, links, upstream, ...)

        Returns:
            Logger instance for the component
        """
        if not cls._initialized:
            cls.initialize()

        if component not in cls._loggers:
            cls._create_component_logger(component)
        return cls._loggers[component]

    @classmethod
    def _create_component_logger(cls, component: str) -> None:
        """Create a component logger on-demand."""
        logger = logging.getLogger(f"driver_tracker.{component}")
        logger.handlers.clear()
        logger.propagate = False

        level = logging.DEBUG if cls._debug else logging.INFO
        logger.setLevel(level)

        if cls._to_file:
            formatter = logging.Formatter(DETAILED_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')
            logger.addHandler(cls._file_handler(f'{component}.log', level, formatter))
            logger.addHandler(cls._unified_handler)
        else:
            logger.addHandler(cls._stream_handler)

        cls._loggers[component] = logger

    @classmethod
    def log_exception(cls, component: str, exc: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Log an exception with context to both component and error logs.

        Args:
            component: Component where the exception occurred
            exc: The exception to log
            context: Additional context information
        """
        component_logger = cls.get_logger(component)
        error_logger = cls.get_logger('error')

        context_str = ""
        if context:
            context_str = " | Context: " + ", ".join(f"{k}={v}" for k, v in context.items())

        component_logger.error(
            f"Exception in {component}: {type(exc).__name__}: {exc}{context_str}",
            exc_info=exc,
        )
        if error_logger is not component_logger:
            error_logger.error(
                f"[{component}] {type(exc).__name__}: {exc}{context_str}",
                exc_info=exc,
            )


# Convenience functions
def get_logger(component: str) -> logging.Logger:
    """Get a logger for a specific component."""
    return ComponentLogger.get_logger(component)


def initialize_logging(log_dir: Optional[str] = None, debug: Optional[bool] = None) -> None:
    """Initialize the logging system."""
    ComponentLogger.initialize(log_dir=log_dir, debug=debug)


def log_exception(component: str, exc: Exception, context: Optional[Dict[str, Any]] = None) -> None:
    """Log an exception with context."""
    ComponentLogger.log_exception(component, exc, context)
