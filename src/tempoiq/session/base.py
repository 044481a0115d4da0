"""Transport interface consumed by the client core."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Response:
    """Status code and decoded JSON body (None when the body is empty)."""
    status_code: int
    body: Any = None


class Session(ABC):
    """
    Base class for transports.

    The client only ever needs one capability: send a JSON request and get
    back a status code with a decoded body.
    """

    @abstractmethod
    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
    ) -> Response:
        """
        Send a request.

        Args:
            method: HTTP method
            path: Absolute API path such as ``/v2/devices``
            body: JSON-serializable request body, or None

        Returns:
            Response with decoded body

        Raises:
            TransportError: If the request could not be completed
        """
        pass

    async def close(self) -> None:
        """Release transport resources."""
        pass
