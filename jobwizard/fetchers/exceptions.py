"""Exceptions raised by job board fetchers."""


class FetcherError(Exception):
    """Base exception for all fetcher errors.

    The fetch service catches this per source, records the error and moves
    on to the next source.
    """


class FetcherHTTPError(FetcherError):
    """Provider responded with a 4xx or 5xx status, or the connection failed.

    ``status_code`` is 0 when no response was received.
    """

    def __init__(self, message: str, status_code: int, url: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url

    @property
    def is_transient(self) -> bool:
        """404 (unknown board) and 5xx are logged and treated as "no jobs"."""
        return self.status_code == 404 or self.status_code >= 500


class FetcherTimeoutError(FetcherError):
    """Provider did not answer within the configured timeout."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class FetcherResponseError(FetcherError):
    """Response could not be parsed (invalid JSON or XML, unexpected shape)."""


class FetcherConfigurationError(FetcherError):
    """Unknown provider or invalid fetcher settings."""
