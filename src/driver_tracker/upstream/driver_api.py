"""HTTP client for the upstream driver location API."""

from functools import lru_cache
from typing import List, Optional

import requests
from pydantic import ValidationError as PydanticValidationError
from requests.exceptions import RequestException, Timeout, ConnectionError

from ..config import get_config
from ..domain.drivers import DriverRecord, fallback_drivers
from ..domain.errors import UpstreamFetchError
from ..utils.logging_config import get_logger

logger = get_logger('upstream')


class DriverDataClient:
    """Fetches the current driver list from the driver location API.

    Every fetch is a fresh request; nothing is cached between calls.
    """

    def __init__(
        self,
        drivers_url: str,
        timeout_secs: float = 10.0,
        use_fallback: bool = False,
        user_agent: str = "Driver-Tracking-Server/1.0",
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the driver client.

        Args:
            drivers_url: Full URL of the drivers endpoint
            timeout_secs: HTTP request timeout in seconds
            use_fallback: Serve the placeholder dataset instead of raising
                when the API fails
            user_agent: User-Agent header sent upstream
            session: Optional preconfigured requests session
        """
        self.drivers_url = drivers_url
        self.timeout_secs = timeout_secs
        self.use_fallback = use_fallback
        self.session = session or requests.Session()
        self.session.headers.update({
            'User-Agent': user_agent,
            'Accept': 'application/json',
        })

    def fetch_drivers(self) -> List[DriverRecord]:
        """
        Fetch all drivers.

        Returns:
            Driver records in upstream order, or the placeholder dataset when
            the API fails and fallback is enabled

        Raises:
            UpstreamFetchError: If the API fails and fallback is disabled
        """
        try:
            return self._request_drivers()
        except UpstreamFetchError as e:
            if not self.use_fallback:
                raise
            logger.warning(f"Driver API failed ({e}), returning placeholder drivers")
            return fallback_drivers()

    def find_driver(self, name: str) -> Optional[DriverRecord]:
        """Find the driver whose name matches exactly."""
        for driver in self.fetch_drivers():
            if driver.name == name:
                return driver
        return None

    def _request_drivers(self) -> List[DriverRecord]:
        try:
            logger.debug(f"Fetching drivers from {self.drivers_url}")
            response = self.session.get(self.drivers_url, timeout=self.timeout_secs)
        except Timeout:
            logger.error(f"Driver API timeout after {self.timeout_secs}s")
            raise UpstreamFetchError("Driver API request timed out")
        except ConnectionError as e:
            logger.error(f"Driver API connection error: {e}")
            raise UpstreamFetchError("Driver API unreachable")
        except RequestException as e:
            logger.error(f"Driver API request error: {e}")
            raise UpstreamFetchError("Driver API request failed")

        if not response.ok:
            logger.error(f"Driver API responded with {response.status_code}")
            raise UpstreamFetchError(f"Driver API responded with {response.status_code}")

        try:
            payload = response.json()
        except ValueError:
            logger.error("Driver API returned a non-JSON body")
            raise UpstreamFetchError("Invalid driver data format")

        if not isinstance(payload, list):
            logger.error(f"Driver API returned {type(payload).__name__}, expected a list")
            raise UpstreamFetchError("Invalid driver data format")

        try:
            drivers = [DriverRecord.model_validate(item) for item in payload]
        except PydanticValidationError as e:
            logger.error(f"Driver API returned an invalid driver record: {e}")
            raise UpstreamFetchError("Invalid driver data format")

        logger.debug(f"Fetched {len(drivers)} drivers")
        return drivers


@lru_cache()
def get_driver_client() -> DriverDataClient:
    """Get the process-wide driver client built from configuration."""
    upstream = get_config().upstream
    return DriverDataClient(
        drivers_url=upstream.drivers_url,
        timeout_secs=upstream.timeout_seconds,
        use_fallback=upstream.use_fallback_drivers,
        user_agent=upstream.user_agent,
    )
