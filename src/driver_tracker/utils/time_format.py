"""Display formatting for upstream timestamps."""

import re
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# Upstream timestamps carry up to nanosecond precision
_FRACTION = re.compile(r"\.(\d+)")


def parse_iso_timestamp(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, tolerating 'Z' and over-long fractions."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: Optional[str], tz_name: str = "America/Chicago") -> str:
    """
    Render a timestamp for display, e.g. 'July 15, 2025, 12:55:04 PM CDT'.

    Returns 'N/A' for empty input and the original string when it cannot
    be parsed.
    """
    if not value:
        return "N/A"

    parsed = parse_iso_timestamp(value)
    if parsed is None:
        return value

    return format_datetime(parsed, tz_name)


def format_datetime(value: datetime, tz_name: str = "America/Chicago") -> str:
    """Render an aware datetime in the display timezone."""
    try:
        zone = ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        zone = timezone.utc

    local = value.astimezone(zone)
    hour = local.hour % 12 or 12
    return (
        f"{local.strftime('%B')} {local.day}, {local.year}, "
        f"{hour:02d}:{local.minute:02d}:{local.second:02d} "
        f"{'AM' if local.hour < 12 else 'PM'} {local.tzname()}"
    )
