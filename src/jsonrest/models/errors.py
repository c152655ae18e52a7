"""Structured error taxonomy for request failures."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    """Kinds of request failure."""

    # Build-time
    URL_ERROR = "url_error"
    JSON_PARSE_ERROR = "json_parse_error"

    # Transport-time
    UNKNOWN_ERROR = "unknown_error"

    # Non-blocking placeholder, never a real result
    PENDING = "pending"

    # Status-mapped
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    UNPROCESSABLE_ENTITY = "unprocessable_entity"
    INTERNAL_SERVER = "internal_server"
    BAD_GATEWAY = "bad_gateway"
    SERVICE_UNAVAILABLE = "service_unavailable"
    GATEWAY_TIMEOUT = "gateway_timeout"
    INVALID_RESPONSE = "invalid_response"


STATUS_ERROR_KINDS: dict[int, ErrorKind] = {
    400: ErrorKind.BAD_REQUEST,
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    422: ErrorKind.UNPROCESSABLE_ENTITY,
    500: ErrorKind.INTERNAL_SERVER,
    502: ErrorKind.BAD_GATEWAY,
    503: ErrorKind.SERVICE_UNAVAILABLE,
    504: ErrorKind.GATEWAY_TIMEOUT,
}

# Kinds whose payload is the response body
MESSAGE_KINDS = frozenset(
    {
        ErrorKind.BAD_REQUEST,
        ErrorKind.UNAUTHORIZED,
        ErrorKind.FORBIDDEN,
        ErrorKind.NOT_FOUND,
        ErrorKind.UNPROCESSABLE_ENTITY,
    }
)

PLACEHOLDER_BODY = "Could not perform request"


def error_kind_for_status(code: int) -> ErrorKind:
    """
    Map an HTTP status code to its error kind.

    Total over all integers: any code without a dedicated kind maps to
    ``ErrorKind.INVALID_RESPONSE``.

    Args:
        code: HTTP status code

    Returns:
        The matching ErrorKind
    """
    return STATUS_ERROR_KINDS.get(code, ErrorKind.INVALID_RESPONSE)


@dataclass(frozen=True)
class RequestError(Exception):
    """
    Error attached to a Response when a request did not fully succeed.

    Attributes:
        code: HTTP status code, or 0 when no status line was received
        kind: Taxonomy kind
        body: Raw response body for status-mapped kinds, otherwise a reason

    Example:
        err = RequestError.from_status(404, '{"detail": "missing"}')
        assert err.kind is ErrorKind.NOT_FOUND
        assert err.message == '{"detail": "missing"}'
    """

    code: int
    kind: ErrorKind
    body: str = ""

    def __str__(self) -> str:
        if self.body:
            return f"{self.kind.value} ({self.code}): {self.body}"
        return f"{self.kind.value} ({self.code})"

    @property
    def message(self) -> str | None:
        """Response body carried by bad_request, unauthorized, forbidden, not_found, unprocessable_entity."""
        if self.kind in MESSAGE_KINDS:
            return self.body
        return None

    @classmethod
    def from_status(cls, code: int, body: str | None = None) -> RequestError:
        """Build the error for a completed response with a non-2xx status."""
        return cls(code=code, kind=error_kind_for_status(code), body=body or "")

    @classmethod
    def url_error(cls, reason: str = "Malformed URL") -> RequestError:
        return cls(code=0, kind=ErrorKind.URL_ERROR, body=reason)

    @classmethod
    def json_parse_error(cls, reason: str = "Body is not JSON serializable") -> RequestError:
        return cls(code=0, kind=ErrorKind.JSON_PARSE_ERROR, body=reason)

    @classmethod
    def unknown(cls, reason: str = "Unknown Error") -> RequestError:
        return cls(code=0, kind=ErrorKind.UNKNOWN_ERROR, body=reason)

    @classmethod
    def pending(cls) -> RequestError:
        return cls(code=0, kind=ErrorKind.PENDING, body=PLACEHOLDER_BODY)
