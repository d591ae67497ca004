"""Error taxonomy for the tracking link lifecycle.

Each error carries the HTTP status used when it reaches the JSON API.
"""


class TrackingError(Exception):
    """Base exception for tracking link operations."""

    status_code = 500
    default_message = "Tracking operation failed"
    # False when the message may hold store internals such as SQL text
    expose_message = True

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(TrackingError):
    """A required input is missing or malformed."""

    status_code = 400
    default_message = "Missing fields"


class NotFoundError(TrackingError):
    """The referenced driver or link does not exist."""

    status_code = 404
    default_message = "Not found"


class InvalidLinkError(TrackingError):
    """No tracking link exists for the identifier."""

    status_code = 404
    default_message = "Invalid link"


class ExpiredLinkError(TrackingError):
    """The tracking link was cancelled, superseded, or is past its expiry."""

    status_code = 403
    default_message = "Link expired or inactive"


class DriverMissingError(NotFoundError):
    """The link's driver is no longer reported by the driver API."""

    default_message = "Driver data missing"


class UpstreamFetchError(TrackingError):
    """The driver API was unreachable or returned malformed data."""

    status_code = 502
    default_message = "Driver data unavailable"


class StoreError(TrackingError):
    """The link store failed to read or write."""

    status_code = 500
    default_message = "Link store failure"
    expose_message = False
