"""
Configuration management for Driver Tracker

Builds the runtime configuration from defaults, an optional JSON file and
environment variables (highest precedence).
"""

import json
import os
import secrets
from pathlib import Path
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, asdict, field
import logging
import sys

# Known weak/default session secrets that should be rejected
WEAK_SESSION_SECRETS = {
    "your-secret-key-here",
    "your-secret-key-change-in-production",
    "secret",
    "key",
    "password",
    "session-secret",
    "secret-key",
    "change-me",
    "changeme",
    "default",
    "test",
    "development",
    "dev",
    "demo",
    "example",
    "sample",
}

DEFAULT_DRIVERS_URL = "https://server-eld-666563578864.us-south1.run.app/drivers"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _validate_session_secret(session_secret: str) -> None:
    """Validate the session signing secret and reject weak/default keys.

    Args:
        session_secret: The secret used to sign session cookies

    Raises:
        SystemExit: If the secret is weak, default, or insecure
    """
    if not session_secret:
        logging.critical(
            "Session secret is empty - session cookies could be forged"
        )
        sys.exit(1)

    if len(session_secret) < 32:
        logging.critical(
            f"Session secret is too short ({len(session_secret)} chars). "
            f"Minimum 32 characters required."
        )
        sys.exit(1)

    if session_secret.lower() in WEAK_SESSION_SECRETS:
        logging.critical(
            "Session secret is a known weak/default value. "
            "Set SESSION_SECRET to a random value, e.g. secrets.token_urlsafe(64)."
        )
        sys.exit(1)

    unique_chars = len(set(session_secret))
    if unique_chars < 8:
        logging.critical(
            f"Session secret has insufficient entropy ({unique_chars} unique characters)."
        )
        sys.exit(1)

    logging.debug(
        f"Session secret validation passed ({len(session_secret)} chars, {unique_chars} unique)"
    )


def _env_bool(name: str) -> Optional[bool]:
    value = os.getenv(name)
    if value is None or value == "":
        return None
    return value.strip().lower() in _TRUE_VALUES


def _env_int(name: str) -> Optional[int]:
    value = os.getenv(name)
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError:
        logging.warning(f"Ignoring non-integer value for {name}: {value!r}")
        return None


def _env_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError:
        logging.warning(f"Ignoring non-numeric value for {name}: {value!r}")
        return None


@dataclass
class DatabaseConfig:
    """Database configuration."""

    url: str = "sqlite:///./driver_tracker.db"
    echo: bool = False
    log_queries: bool = False  # Log query timings, warn on slow queries
    auto_create_tables: bool = True


@dataclass
class ServerConfig:
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False
    auto_reload: bool = False
    # Base URL used when building public tracking links; request URL when unset
    public_base_url: Optional[str] = None


@dataclass
class AuthConfig:
    """Operator login and session configuration."""

    login_username: Optional[str] = None
    login_password: Optional[str] = None
    session_secret: str = ""  # Must be set at runtime - no default for security
    session_max_age_seconds: int = 24 * 60 * 60
    secure_cookies: bool = False

    # Login rate limiting
    rate_limit_login_requests: int = 10  # Max login attempts per window
    rate_limit_window_seconds: int = 60
    rate_limit_max_failures: int = 5  # Failed logins before blocking the IP
    rate_limit_failure_penalty_minutes: int = 15

    @property
    def login_enabled(self) -> bool:
        return bool(self.login_username and self.login_password)


@dataclass
class UpstreamConfig:
    """Driver location API configuration."""

    drivers_url: str = DEFAULT_DRIVERS_URL
    timeout_seconds: float = 10.0
    user_agent: str = "Driver-Tracking-Server/1.0"
    # Serve the placeholder dataset when the API is unavailable
    use_fallback_drivers: bool = False


@dataclass
class LinkConfig:
    """Tracking link lifecycle configuration."""

    max_expiration_hours: int = 720
    sweep_enabled: bool = True
    sweep_interval_seconds: int = 60 * 60
    expiration_choices: List[int] = field(default_factory=lambda: [1, 2, 4, 8, 12, 24, 48, 72])


@dataclass
class AppConfig:
    """Main application configuration."""

    app_name: str = "Driver Tracker"
    version: str = "1.0.0"
    description: str = "Time-limited public tracking links for delivery drivers"

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = True
    log_dir: str = "logs"

    # Timezone used to display upstream timestamps
    display_timezone: str = "America/Chicago"


@dataclass
class DriverTrackerConfig:
    """Complete configuration for Driver Tracker."""

    app: AppConfig
    server: ServerConfig
    database: DatabaseConfig
    auth: AuthConfig
    upstream: UpstreamConfig
    links: LinkConfig

    def to_dict(self, include_secrets: bool = False) -> Dict[str, Any]:
        """Convert to dictionary."""
        data = {
            "app": asdict(self.app),
            "server": asdict(self.server),
            "database": asdict(self.database),
            "auth": asdict(self.auth),
            "upstream": asdict(self.upstream),
            "links": asdict(self.links),
        }
        if not include_secrets:
            data["auth"]["login_password"] = "***" if self.auth.login_password else None
            data["auth"]["session_secret"] = "***" if self.auth.session_secret else ""
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DriverTrackerConfig":
        """Create from dictionary."""
        return cls(
            app=AppConfig(**data.get("app", {})),
            server=ServerConfig(**data.get("server", {})),
            database=DatabaseConfig(**data.get("database", {})),
            auth=AuthConfig(**data.get("auth", {})),
            upstream=UpstreamConfig(**data.get("upstream", {})),
            links=LinkConfig(**data.get("links", {})),
        )


class ConfigManager:
    """Manages configuration loading and environment overrides."""

    def __init__(self):
        self.config_file: Optional[Path] = None
        self.config: Optional[DriverTrackerConfig] = None

    def get_config_file_path(self) -> Optional[Path]:
        """Get the path of the optional JSON config file."""
        config_file = os.getenv("DRIVER_TRACKER_CONFIG_FILE")
        return Path(config_file) if config_file else None

    def _read_config_file(self) -> Dict[str, Any]:
        self.config_file = self.get_config_file_path()
        if self.config_file is None:
            return {}

        if not self.config_file.exists():
            logging.warning(f"Config file {self.config_file} not found, using defaults")
            return {}

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logging.warning(f"Failed to load config from {self.config_file}: {e}")
            return {}

        logging.info(f"Loaded configuration from {self.config_file}")
        return data

    def _apply_environment(self, config: DriverTrackerConfig) -> None:
        """Override configuration values from environment variables."""
        # Database URL priority: DRIVER_TRACKER_DATABASE_URL > DATABASE_URL > file/default
        db_url = os.getenv("DRIVER_TRACKER_DATABASE_URL") or os.getenv("DATABASE_URL")
        if db_url:
            config.database.url = db_url
        if _env_bool("DRIVER_TRACKER_LOG_QUERIES") is not None:
            config.database.log_queries = _env_bool("DRIVER_TRACKER_LOG_QUERIES")

        if os.getenv("HOST"):
            config.server.host = os.getenv("HOST")
        if _env_int("PORT") is not None:
            config.server.port = _env_int("PORT")
        if _env_bool("DRIVER_TRACKER_DEBUG") is not None:
            config.server.debug = _env_bool("DRIVER_TRACKER_DEBUG")
        if os.getenv("DRIVER_TRACKER_PUBLIC_BASE_URL"):
            config.server.public_base_url = os.getenv("DRIVER_TRACKER_PUBLIC_BASE_URL")

        if os.getenv("LOGIN_USERNAME"):
            config.auth.login_username = os.getenv("LOGIN_USERNAME")
        if os.getenv("LOGIN_PASSWORD"):
            config.auth.login_password = os.getenv("LOGIN_PASSWORD")
        if os.getenv("SESSION_SECRET") is not None:
            config.auth.session_secret = os.getenv("SESSION_SECRET")
        if _env_bool("DRIVER_TRACKER_SECURE_COOKIES") is not None:
            config.auth.secure_cookies = _env_bool("DRIVER_TRACKER_SECURE_COOKIES")

        if os.getenv("DRIVER_API_URL"):
            config.upstream.drivers_url = os.getenv("DRIVER_API_URL")
        if _env_float("DRIVER_API_TIMEOUT") is not None:
            config.upstream.timeout_seconds = _env_float("DRIVER_API_TIMEOUT")
        if _env_bool("DRIVER_TRACKER_USE_FALLBACK_DRIVERS") is not None:
            config.upstream.use_fallback_drivers = _env_bool(
                "DRIVER_TRACKER_USE_FALLBACK_DRIVERS"
            )

        if _env_bool("DRIVER_TRACKER_SWEEP_ENABLED") is not None:
            config.links.sweep_enabled = _env_bool("DRIVER_TRACKER_SWEEP_ENABLED")
        if _env_int("DRIVER_TRACKER_SWEEP_INTERVAL") is not None:
            config.links.sweep_interval_seconds = _env_int("DRIVER_TRACKER_SWEEP_INTERVAL")
        if _env_int("DRIVER_TRACKER_MAX_EXPIRATION_HOURS") is not None:
            config.links.max_expiration_hours = _env_int(
                "DRIVER_TRACKER_MAX_EXPIRATION_HOURS"
            )

        if os.getenv("DRIVER_TRACKER_LOG_LEVEL"):
            config.app.log_level = os.getenv("DRIVER_TRACKER_LOG_LEVEL").upper()
        elif config.server.debug:
            config.app.log_level = "DEBUG"
        if os.getenv("DRIVER_TRACKER_LOG_DIR"):
            config.app.log_dir = os.getenv("DRIVER_TRACKER_LOG_DIR")
        if _env_bool("DRIVER_TRACKER_LOG_TO_FILE") is not None:
            config.app.log_to_file = _env_bool("DRIVER_TRACKER_LOG_TO_FILE")
        if os.getenv("DRIVER_TRACKER_DISPLAY_TIMEZONE"):
            config.app.display_timezone = os.getenv("DRIVER_TRACKER_DISPLAY_TIMEZONE")

    def load_config(self) -> DriverTrackerConfig:
        """Build configuration from defaults, the config file and the environment."""
        try:
            config = DriverTrackerConfig.from_dict(self._read_config_file())
        except TypeError as e:
            logging.warning(f"Invalid config file {self.config_file}: {e}")
            logging.info("Creating default configuration")
            config = DriverTrackerConfig.from_dict({})

        self._apply_environment(config)

        if not config.auth.session_secret:
            # Sessions will not survive a restart with a generated secret
            config.auth.session_secret = secrets.token_urlsafe(64)
            logging.info("Generated new session secret (not from environment)")
        else:
            _validate_session_secret(config.auth.session_secret)

        if not config.auth.login_enabled:
            logging.warning(
                "LOGIN_USERNAME/LOGIN_PASSWORD not configured - operator login is disabled"
            )

        self.config = config
        return config

    def get_config(self) -> DriverTrackerConfig:
        """Get the cached configuration, loading it on first use."""
        if self.config is None:
            self.load_config()
        return self.config

    def validate_config(self) -> List[str]:
        """Validate configuration and return list of warnings."""
        config = self.get_config()
        issues = []

        if not config.auth.login_enabled:
            issues.append("Operator credentials are not configured")

        if config.links.max_expiration_hours < 1:
            issues.append("max_expiration_hours must be at least 1")

        if config.links.sweep_interval_seconds < 1:
            issues.append("sweep_interval_seconds must be at least 1")

        if config.upstream.timeout_seconds <= 0:
            issues.append("Driver API timeout must be positive")

        if config.upstream.use_fallback_drivers:
            issues.append(
                "Fallback driver data is enabled - placeholder drivers are served during API outages"
            )

        if config.database.url.startswith("sqlite:///"):
            db_dir = Path(config.database.url.replace("sqlite:///", "")).parent
            if db_dir.exists() and not os.access(db_dir, os.W_OK):
                issues.append(f"Database directory is not writable: {db_dir}")

        return issues


# Global config manager instance
config_manager = ConfigManager()


def get_config() -> DriverTrackerConfig:
    """Get the current configuration."""
    return config_manager.get_config()


def get_database_url() -> str:
    """Get the database URL."""
    return get_config().database.url


def get_web_directory() -> Path:
    """Get the directory holding templates and static assets."""
    return Path(__file__).parent / "web"
