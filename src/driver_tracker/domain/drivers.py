"""Driver records as reported by the upstream driver location API."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class DriverRecord(BaseModel):
    """One driver entry from the driver API.

    Unknown upstream fields are kept and passed through to API consumers.
    """

    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1)
    status: Optional[str] = None
    location: Optional[str] = None
    truck_id: Optional[str] = None
    shift_start: Optional[str] = None
    break_time: Optional[str] = None
    drive_time: Optional[str] = None
    cycle_time: Optional[str] = None
    connection_status: Optional[str] = None
    reported_at: Optional[str] = None
    last_updated: Optional[str] = None

    # Set on records served from the fallback dataset
    placeholder: bool = Field(default=False, exclude=True)

    @field_validator(
        "status",
        "location",
        "truck_id",
        "shift_start",
        "break_time",
        "drive_time",
        "cycle_time",
        "connection_status",
        "reported_at",
        "last_updated",
        mode="before",
    )
    @classmethod
    def _coerce_to_str(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    def to_public_dict(self) -> Dict[str, Any]:
        """Serialize for the public tracking API."""
        return self.model_dump(mode="json")


FALLBACK_DRIVERS: List[Dict[str, Any]] = [
    {
        "name": "Albert Davis (Demo)",
        "status": "Off Duty",
        "location": "2mi SSE from Tremonton, UT",
        "truck_id": "507889",
        "shift_start": "08:00",
        "break_time": "09:14",
        "drive_time": "03:32",
        "cycle_time": "38:03",
        "connection_status": "",
        "reported_at": "08:54 AM CDT",
        "last_updated": "2025-07-15T17:55:04.913055887Z",
    }
]


def fallback_drivers() -> List[DriverRecord]:
    """Build fresh placeholder records for use during driver API outages."""
    return [
        DriverRecord(**record, placeholder=True) for record in FALLBACK_DRIVERS
    ]
