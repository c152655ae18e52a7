"""Normalized response value returned by every client call."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional

from .errors import PLACEHOLDER_BODY, ErrorKind, RequestError


def is_success(status_code: int) -> bool:
    """Return True for 2xx status codes."""
    return 200 <= status_code <= 299


def parse_json_body(body: str | None) -> Any:
    """
    Best-effort JSON decode of a response body.

    Returns:
        Decoded value, or None when the body is absent, not valid JSON,
        or nested too deeply to decode
    """
    if body is None:
        return None
    try:
        return json.loads(body)
    except (ValueError, RecursionError):
        return None


@dataclass(frozen=True)
class Response:
    """
    Immutable result of one request attempt.

    Exactly one of two states holds: a 2xx status with ``error is None``,
    or ``error`` set. A status code of 0 means no status line was received.

    Attributes:
        status_code: HTTP status code, 0 if the request never completed
        body: Raw response text, None when no response was produced
        headers: Response headers, empty when unavailable
        error: RequestError or the propagated transport exception
        parsed_body: JSON-decoded body, None if absent or undecodable
    """

    status_code: int = 0
    body: Optional[str] = None
    headers: dict[str, str] = field(default_factory=dict)
    error: Optional[BaseException] = None
    parsed_body: Any = field(init=False, default=None)

    def __post_init__(self) -> None:
        if (self.error is None) != is_success(self.status_code):
            raise ValueError(
                f"Response with status {self.status_code} must "
                f"{'not ' if is_success(self.status_code) else ''}carry an error"
            )
        object.__setattr__(self, "headers", dict(self.headers))
        object.__setattr__(self, "parsed_body", parse_json_body(self.body))

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def is_placeholder(self) -> bool:
        """True for the stand-in returned by non-blocking calls."""
        return isinstance(self.error, RequestError) and self.error.kind is ErrorKind.PENDING

    @classmethod
    def failed(cls, error: BaseException) -> Response:
        """Response for an attempt that never received a status line."""
        return cls(status_code=0, error=error)

    @classmethod
    def placeholder(cls) -> Response:
        return cls(status_code=0, body=PLACEHOLDER_BODY, error=RequestError.pending())

    def render(self) -> str:
        """Diagnostic multi-line rendering; deterministic for equal responses."""
        if self.parsed_body is None:
            parsed = "None"
        else:
            parsed = json.dumps(self.parsed_body, sort_keys=True)

        lines = [
            f"Response Code: {self.status_code}",
            f"Response Str: {self.body or ''}",
            f"Response JSON: {parsed}",
            "Headers:",
        ]
        lines.extend(f"  {name}: {value}" for name, value in sorted(self.headers.items()))

        if self.error is None:
            lines.append("Error: none")
        elif isinstance(self.error, RequestError):
            lines.append(f"Error: {self.error.kind.value} ({self.error.code}) => {self.error.body}")
        else:
            lines.append(f"Error: {type(self.error).__name__}: {self.error}")

        return "\n".join(lines)
