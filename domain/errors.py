from typing import Optional


class BookmarkError(Exception):
    """Base class for every error raised by the bookmark proxy and client."""
    status_code = 500


class ValidationError(BookmarkError):
    """Caller-supplied input is missing or malformed."""
    status_code = 400


class ConfigurationError(BookmarkError):
    """The server is missing Airtable configuration."""
    status_code = 500


class UpstreamError(BookmarkError):
    """Airtable could not be reached or sent back something unreadable."""
    status_code = 500


class MethodNotAllowed(BookmarkError):
    status_code = 405


class ProxyRequestError(BookmarkError):
    """A call from the client to the record proxy failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class WorkerStateError(BookmarkError):
    """An offline cache worker transition was requested out of order."""


class AssetFetchError(BookmarkError):
    """A static asset could not be fetched from the network."""
