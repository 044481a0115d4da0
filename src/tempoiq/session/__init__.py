"""HTTP transport collaborators used by the client."""

from tempoiq.session.base import Response, Session
from tempoiq.session.http import HttpSession
from tempoiq.session.stubbed import RecordedRequest, StubbedSession

__all__ = [
    "HttpSession",
    "RecordedRequest",
    "Response",
    "Session",
    "StubbedSession",
]
