"""TempoIQ time-series client.

Provides:
- Device and sensor provisioning
- Bulk writes with per-device status reporting
- Paginated reads and latest-value queries through lazy cursors
- Selection and pipeline builders for server-side queries
"""

from tempoiq.client import Client
from tempoiq.cursor import Cursor, CursorState, Page, PageFetcher
from tempoiq.errors import (
    CursorBusy,
    ResponseParseError,
    TempoIQError,
    TransportError,
    UnexpectedStatusError,
    WriteAlreadySubmitted,
)
from tempoiq.models import (
    AllSelector,
    And,
    BulkWrite,
    ByAttributes,
    ByKey,
    DataPoint,
    DeleteSummary,
    Device,
    Or,
    Pipeline,
    RawFilter,
    Row,
    Selection,
    Sensor,
    WriteOutcome,
    WriteResult,
    WriteStatus,
)
from tempoiq.session import HttpSession, Response, Session, StubbedSession

__version__ = "0.1.0"

__all__ = [
    "AllSelector",
    "And",
    "BulkWrite",
    "ByAttributes",
    "ByKey",
    "Client",
    "Cursor",
    "CursorBusy",
    "CursorState",
    "DataPoint",
    "DeleteSummary",
    "Device",
    "HttpSession",
    "Or",
    "Page",
    "PageFetcher",
    "Pipeline",
    "RawFilter",
    "Response",
    "ResponseParseError",
    "Row",
    "Selection",
    "Sensor",
    "Session",
    "StubbedSession",
    "TempoIQError",
    "TransportError",
    "UnexpectedStatusError",
    "WriteAlreadySubmitted",
    "WriteOutcome",
    "WriteResult",
    "WriteStatus",
]
