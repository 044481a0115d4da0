"""HTTP session backed by httpx."""

import json
from typing import Any

import httpx
import structlog

from tempoiq.core.config import Settings
from tempoiq.errors import TransportError
from tempoiq.session.base import Response, Session

logger = structlog.get_logger()


class HttpSession(Session):
    """
    Session talking to the TempoIQ HTTP API.

    Requests are authenticated with HTTP basic auth using the API key and
    secret. GET requests carry a JSON body, as the search endpoints require.
    """

    USER_AGENT = "tempoiq-python/0.1.0"

    def __init__(
        self,
        key: str,
        secret: str,
        base_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.key = key
        self.secret = secret
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpSession":
        return cls(
            key=settings.key,
            secret=settings.secret,
            base_url=settings.base_url,
            timeout=settings.timeout,
        )

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                auth=httpx.BasicAuth(self.key, self.secret),
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                    "User-Agent": self.USER_AGENT,
                },
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
    ) -> Response:
        """Send a JSON request and decode the JSON response."""
        client = self._ensure_client()
        content = json.dumps(body) if body is not None else None

        try:
            response = await client.request(method, path, content=content)
        except httpx.HTTPError as e:
            logger.warning("Request failed", method=method, path=path, error=str(e))
            raise TransportError(
                f"{method} {path} failed: {e}",
                source=path,
                original_error=e,
            )

        logger.debug(
            "Request completed",
            method=method,
            path=path,
            status_code=response.status_code,
        )
        return Response(status_code=response.status_code, body=self._decode(response))

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            # Non-JSON bodies (HTML error pages) are handed back as text.
            return response.text

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
