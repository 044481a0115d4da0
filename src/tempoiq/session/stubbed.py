"""In-memory session for tests and offline development."""

import json
from dataclasses import dataclass
from typing import Any

from tempoiq.errors import TransportError
from tempoiq.session.base import Response, Session


@dataclass(frozen=True)
class RecordedRequest:
    """A request seen by the stubbed session."""
    method: str
    path: str
    body: Any = None


class StubbedSession(Session):
    """
    Session returning canned responses.

    Responses are registered per (method, path). A sequence of responses is
    served in order, with the last one repeated once the others are used.
    """

    def __init__(self):
        self._stubs: dict[tuple[str, str], list[Response]] = {}
        self.requests: list[RecordedRequest] = []
        self.closed = False

    def stub(
        self,
        method: str,
        path: str,
        status_code: int,
        body: Any = None,
    ) -> None:
        """
        Register a response, replacing any previous one for the route.

        ``body`` may be JSON text (as sent on the wire) or an already decoded
        value.
        """
        self._stubs[(method.upper(), path)] = [self._response(status_code, body)]

    def stub_sequence(
        self,
        method: str,
        path: str,
        responses: list[tuple[int, Any]],
    ) -> None:
        """Register several (status_code, body) responses served in order."""
        if not responses:
            raise ValueError("At least one response is required")
        self._stubs[(method.upper(), path)] = [
            self._response(status_code, body) for status_code, body in responses
        ]

    @staticmethod
    def _response(status_code: int, body: Any) -> Response:
        if isinstance(body, str):
            body = json.loads(body) if body else None
        return Response(status_code=status_code, body=body)

    def requests_for(self, method: str, path: str) -> list[RecordedRequest]:
        return [
            r for r in self.requests
            if r.method == method.upper() and r.path == path
        ]

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
    ) -> Response:
        method = method.upper()
        # Round-trip through JSON so unserializable bodies fail like on the wire.
        wire_body = json.loads(json.dumps(body)) if body is not None else None
        self.requests.append(RecordedRequest(method=method, path=path, body=wire_body))

        responses = self._stubs.get((method, path))
        if not responses:
            raise TransportError(f"No stub registered for {method} {path}", source=path)
        if len(responses) > 1:
            return responses.pop(0)
        return responses[0]

    async def close(self) -> None:
        self.closed = True
