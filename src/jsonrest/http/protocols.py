"""Protocol definitions for the transport abstraction."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional, Protocol


class HttpMethod(str, Enum):
    """Supported request methods."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def has_body(self) -> bool:
        """POST, PUT and PATCH send a JSON body; GET and DELETE only take query parameters."""
        return self in (HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH)


@dataclass(frozen=True)
class PreparedRequest:
    """
    Ready-to-dispatch request produced by the RequestBuilder.

    Attributes:
        method: Request method
        url: Absolute URL including any query string
        headers: Final request headers, defaults already applied
        body: Encoded JSON body, None for bodiless requests
    """

    method: HttpMethod
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None


@dataclass(frozen=True)
class TransportResult:
    """
    Raw outcome of one transport dispatch.

    Attributes:
        content: Response bytes, None when no response was received
        status_code: HTTP status code, 0 when no status line was received
        headers: Response headers
        error: Transport exception, None on completion
    """

    content: Optional[bytes] = None
    status_code: int = 0
    headers: dict[str, str] = field(default_factory=dict)
    error: Optional[BaseException] = None

    @staticmethod
    def failure(error: BaseException | None = None) -> TransportResult:
        """Create a result for a request that never produced a response."""
        return TransportResult(error=error)


CompletionHandler = Callable[[TransportResult], None]


class Transport(Protocol):
    """
    Protocol for request transports.

    This abstraction allows for:
    - Stub and spy implementations in tests
    - Different backends (aiohttp, requests, etc.)

    Implementations must be safe for concurrent dispatch and must call
    ``on_complete`` exactly once per dispatch, from any thread.
    """

    def dispatch(self, request: PreparedRequest, on_complete: CompletionHandler) -> None:
        """
        Issue a request and report its outcome.

        Args:
            request: The request to send
            on_complete: Called exactly once with the TransportResult
        """
        ...

    def close(self) -> None:
        """Release sessions, threads and sockets held by the transport."""
        ...
