"""Errors raised by external product data sources."""


class ProductSourceError(Exception):
    """Base error for failures talking to a product data source."""

    def __init__(self, message: str, source: str) -> None:
        super().__init__(message)
        self.source = source


class AuthenticationError(ProductSourceError):
    """Token exchange failed or returned an unusable response."""


class ApiError(ProductSourceError):
    """A data source answered with a non-success status or an error body."""

    def __init__(self, source: str, status_code: int, body: str) -> None:
        super().__init__(f"{source} API error: {status_code} - {body}", source)
        self.status_code = status_code
        self.body = body

    @property
    def is_transient(self) -> bool:
        """Return True for statuses worth retrying (5xx and rate limits)."""
        return self.status_code >= 500 or self.status_code == 429


class NetworkError(ProductSourceError):
    """Transport-level failure: DNS, connection reset, timeout."""
