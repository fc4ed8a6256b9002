"""Custom exceptions for posting sources."""

from typing import Optional


class SourceError(Exception):
    """Base exception for all posting source errors."""

    pass


class FetchFailure(SourceError):
    """The source could not return a candidate pool.

    Covers network, authentication and store errors. The suggestion service
    never retries; it hands this exception to its caller unchanged.
    """

    def __init__(self, message: str, source: Optional[str] = None) -> None:
        super().__init__(message)
        self.source = source


class SourceHTTPError(FetchFailure):
    """HTTP request failed with a 4xx/5xx status, or could not be sent at all.

    ``status_code`` is 0 when no response was received (connection refused,
    DNS failure and similar).
    """

    def __init__(self, message: str, status_code: int, url: str, source: Optional[str] = None) -> None:
        super().__init__(message, source=source)
        self.status_code = status_code
        self.url = url

    @property
    def is_transient(self) -> bool:
        """True for 5xx, 429 and connection-level failures."""
        return self.status_code == 0 or self.status_code == 429 or self.status_code >= 500


class SourceTimeoutError(FetchFailure):
    """Request to the store did not complete within the configured timeout."""

    def __init__(self, message: str, url: str, source: Optional[str] = None) -> None:
        super().__init__(message, source=source)
        self.url = url


class SourceResponseError(FetchFailure):
    """The store answered, but the response could not be parsed."""

    pass


class SourceConfigurationError(SourceError):
    """Invalid source configuration (unknown type, missing project id, ...)."""

    pass
