"""Custom exceptions for external API adapters."""


class AdapterError(Exception):
    """Base exception for all adapter errors.

    Catching this exception will catch any failure talking to an external
    API (ads platform, export platform).
    """

    pass


class AdapterHTTPError(AdapterError):
    """HTTP request failed with a 4xx or 5xx status, or never got a response.

    A ``status_code`` of 0 means the connection itself failed.
    """

    def __init__(self, message: str, status_code: int, url: str) -> None:
        """Initialize HTTP error with status code and URL.

        Args:
            message: Human-readable error message
            status_code: HTTP status code (e.g., 400, 500), 0 for connection errors
            url: URL that failed
        """
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class AdapterTimeoutError(AdapterError):
    """HTTP request did not complete within the configured timeout."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class AdapterResponseError(AdapterError):
    """Response received but it could not be parsed or lacked required fields."""

    pass


class AdapterConfigurationError(AdapterError):
    """Invalid adapter configuration (bad timeout, missing credentials, ...)."""

    pass


class InterestLookupError(AdapterError):
    """Interest suggestions could not be fetched for one criterion.

    Raised by the ads-platform adapter; a batch records it on the affected
    item and continues with the next criterion.
    """

    def __init__(self, message: str, query: str) -> None:
        super().__init__(message)
        self.query = query
