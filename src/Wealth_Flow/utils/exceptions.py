"""Custom exception hierarchy for the Wealth Flow application.

All market-data exceptions inherit from DataFetchError, which carries
contextual information about what went wrong during data retrieval.
"""


class DataFetchError(Exception):
    """Base exception for all data-fetching failures.

    Attributes:
        ticker: The ticker symbol (or query) involved in the failure.
        source: The data source that failed (e.g., "eodhd").
        http_status: The HTTP status code, if the failure was HTTP-related.
    """

    def __init__(
        self,
        message: str,
        *,
        ticker: str,
        source: str,
        http_status: int | None = None,
    ) -> None:
        self.ticker = ticker
        self.source = source
        self.http_status = http_status
        super().__init__(message)


class CredentialMissingError(DataFetchError):
    """Raised when no provider API key is configured for the caller."""


class UpstreamError(DataFetchError):
    """Raised on a non-success HTTP response or a transport failure."""


class MalformedResponseError(DataFetchError):
    """Raised when the provider body cannot be decoded as JSON."""
