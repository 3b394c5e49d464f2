"""Exceptions raised while fetching a status snapshot."""


class FetchError(Exception):
    """Base exception for status fetch failures.

    Every failure surfaced by :class:`status_fetcher.StatusFetcher` is an
    instance of this class and carries a human-readable ``message``.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FetchTimeoutError(FetchError):
    """Request timed out waiting for the status service."""

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Request timed out after {timeout_seconds}s")


class FetchConnectionError(FetchError):
    """Cannot reach the status service."""

    def __init__(self, base_url: str, original_error: Exception):
        self.base_url = base_url
        self.original_error = original_error
        super().__init__(f"Cannot connect to {base_url}: {original_error}")


class FetchServiceError(FetchError):
    """Status service answered with an error response."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"Service error {status_code}: {detail}")


class FetchDecodeError(FetchError):
    """Response body is not a valid status snapshot."""

    def __init__(self, message: str):
        super().__init__(f"Invalid status payload: {message}")
