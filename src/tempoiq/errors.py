"""Exceptions raised by the TempoIQ client.

Not-found lookups are not errors: single-resource GET/DELETE calls return
``None``/``False`` instead. Partial write failures are reported through
:class:`tempoiq.models.write.WriteStatus`, never raised.
"""

from typing import Any


class TempoIQError(Exception):
    """Base exception for client errors."""

    def __init__(
        self,
        message: str,
        source: str | None = None,
        original_error: Exception | None = None,
    ):
        super().__init__(message)
        self.source = source
        self.original_error = original_error


class TransportError(TempoIQError):
    """Network, timeout or connection failure in the HTTP session."""
    pass


class UnexpectedStatusError(TempoIQError):
    """Raised when an operation receives a status code it does not handle."""

    def __init__(
        self,
        method: str,
        path: str,
        status_code: int,
        body: Any = None,
    ):
        super().__init__(
            f"Unexpected HTTP {status_code} for {method} {path}",
            source=path,
        )
        self.method = method
        self.path = path
        self.status_code = status_code
        self.body = body


class ResponseParseError(TempoIQError):
    """Response body could not be decoded into the expected shape."""
    pass


class CursorBusy(TempoIQError):
    """A cursor was advanced while another consumer was awaiting it."""
    pass


class WriteAlreadySubmitted(TempoIQError):
    """A bulk write was modified or resubmitted after submission began."""
    pass
