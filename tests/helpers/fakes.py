"""Test doubles for the clock and the driver API."""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from driver_tracker.domain.drivers import DriverRecord
from driver_tracker.domain.errors import UpstreamFetchError

START_TIME = datetime(2025, 7, 15, 12, 0, 0, tzinfo=timezone.utc)


class MutableClock:
    """A clock tests can move forward."""

    def __init__(self, now: datetime = START_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeDriverClient:
    """Stands in for DriverDataClient without network access."""

    def __init__(self, drivers: Optional[List[DriverRecord]] = None):
        self.drivers = list(drivers or [])
        self.fail = False
        self.calls = 0

    def fetch_drivers(self) -> List[DriverRecord]:
        self.calls += 1
        if self.fail:
            raise UpstreamFetchError("Driver API unreachable")
        return list(self.drivers)

    def find_driver(self, name: str) -> Optional[DriverRecord]:
        for driver in self.fetch_drivers():
            if driver.name == name:
                return driver
        return None

    def remove(self, name: str) -> None:
        self.drivers = [d for d in self.drivers if d.name != name]


def make_driver(name: str, **fields) -> DriverRecord:
    defaults = {
        "status": "Driving",
        "location": "3mi N of Ogden, UT",
        "truck_id": "507889",
        "reported_at": "08:54 AM CDT",
        "last_updated": "2025-07-15T17:55:04.913055887Z",
    }
    defaults.update(fields)
    return DriverRecord(name=name, **defaults)
