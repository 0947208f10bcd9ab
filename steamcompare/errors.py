from typing import Optional


class SteamCompareError(Exception):
    """Base class for errors surfaced by the comparison backend."""

    status_code: int = 500
    public_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.public_message
        super().__init__(self.message)


class ValidationError(SteamCompareError):
    """Required input is missing or malformed."""

    status_code = 400
    public_message = "Invalid request"


class NotFoundError(SteamCompareError):
    """Identifier, player or title could not be found."""

    status_code = 404
    public_message = "Not found"


class UpstreamError(SteamCompareError):
    """The Steam Web API could not be reached or returned an unusable response."""

    status_code = 500
    public_message = "Failed to fetch data from Steam"


class UpstreamHTTPError(UpstreamError):
    """Steam answered with a non-retryable HTTP error status."""

    def __init__(self, url: str, status_code: int) -> None:
        self.url = url
        self.upstream_status = status_code
        super().__init__(f"{url} responded with HTTP {status_code}")


class UpstreamTimeoutError(UpstreamError):
    """Steam did not answer within the configured timeout."""


class UpstreamUnavailable(UpstreamError):
    """Steam kept failing after all retry attempts, or sent a body that is not JSON."""
