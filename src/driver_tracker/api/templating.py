"""Jinja2 template environment shared by the HTML routes."""

from fastapi import Request
from fastapi.templating import Jinja2Templates

from ..config import get_config, get_web_directory
from ..utils.time_format import format_datetime, format_timestamp

templates = Jinja2Templates(directory=str(get_web_directory() / "templates"))


def _display_timestamp(value) -> str:
    tz_name = get_config().app.display_timezone
    if value is None or isinstance(value, str):
        return format_timestamp(value, tz_name)
    return format_datetime(value, tz_name)


templates.env.filters["display_time"] = _display_timestamp


def resolve_base_url(request: Request) -> str:
    """Base URL for public tracking links: configured value or the request's own."""
    configured = get_config().server.public_base_url
    if configured:
        return configured.rstrip("/")
    return str(request.base_url).rstrip("/")
