"""Error taxonomy for the watcher.

Sub-stage failures inside one scrape attempt never surface as these errors;
they are logged and handled by the next fallback. These exceptions mark the
points where a whole path (direct fetch, browser session, notification) gave up.
"""


class WatchError(Exception):
    """Base class for all watcher errors."""


class ConfigError(WatchError):
    """Raised when required configuration is missing or invalid."""


class FetchError(WatchError):
    """Raised when the direct HTTP path produced no listings."""


class ScrapeError(WatchError):
    """Raised when the browser session reached an unrecoverable stage."""


class AcquisitionError(WatchError):
    """Raised when every acquisition attempt failed without a recorded error."""


class NotifyError(WatchError):
    """Raised when the messaging endpoint rejects a message.

    Attributes:
        status: HTTP status code returned by the transport.
        body: Raw response body for diagnostics.
    """

    def __init__(self, status: int, body: str):
        self.status = status
        self.body = body
        super().__init__(f"telegram error: {status} {body}")
