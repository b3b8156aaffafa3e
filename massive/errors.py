"""Exception types raised by the Massive SDK."""

from __future__ import annotations

from typing import Optional


class MassiveError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(MassiveError):
    """Raised when a client or session is built from invalid settings."""


class RequestError(MassiveError):
    """Raised when a REST request fails below the HTTP layer.

    HTTP error statuses are returned to the caller as responses; this error
    only covers connection failures, timeouts and similar transport problems.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class FlatFilesError(MassiveError):
    """Raised when the flat-file object store rejects or fails a request."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class DecompressionError(FlatFilesError):
    """Raised when a downloaded flat file is not valid gzip data."""


class StreamTimeoutError(MassiveError):
    """Raised when a stream session does not answer a query in time."""


__all__ = [
    "MassiveError",
    "ConfigurationError",
    "RequestError",
    "FlatFilesError",
    "DecompressionError",
    "StreamTimeoutError",
]
