"""
Base definitions for the remote catalog client.

Configuration dataclass and the exception hierarchy shared by the
client and its callers.
"""

from dataclasses import dataclass


@dataclass
class CatalogClientConfig:
    """
    Configuration for catalog client instances.

    Attributes:
        base_url: API endpoint URL
        api_key: Bearer token (required for every remote call)
        timeout: Request timeout in seconds
    """

    base_url: str
    api_key: str | None = None
    timeout: float = 30.0


class CatalogClientError(Exception):
    """
    Base exception for remote catalog errors.

    Attributes:
        message: Error description
        endpoint: API path that failed
        original_error: Underlying exception if available
    """

    def __init__(
        self,
        message: str,
        endpoint: str | None = None,
        original_error: Exception | None = None,
    ):
        self.message = message
        self.endpoint = endpoint
        self.original_error = original_error
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.endpoint:
            parts.append(f"endpoint={self.endpoint}")
        return " | ".join(parts)


class CatalogConfigError(CatalogClientError):
    """Raised when a required credential is missing. Terminal for a load."""

    pass


class CatalogTimeoutError(CatalogClientError):
    """Raised when a request times out."""

    pass


class CatalogConnectionError(CatalogClientError):
    """Raised when the catalog API cannot be reached."""

    pass


class CatalogResponseError(CatalogClientError):
    """
    Raised when the catalog API returns an error response.

    Attributes:
        status_code: HTTP status code
        response_body: Response body (truncated)
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.response_body = response_body


class CatalogRateLimitError(CatalogResponseError):
    """
    Raised on HTTP 429.

    Attributes:
        retry_after: Server-provided Retry-After seconds (None if absent)
    """

    def __init__(self, message: str, retry_after: float | None = None, **kwargs):
        super().__init__(message, status_code=429, **kwargs)
        self.retry_after = retry_after
