"""Assemble transport requests from caller-supplied primitives."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from multidict import CIMultiDict

from ..models.config import JSON_MEDIA_TYPE
from ..models.errors import RequestError
from .protocols import HttpMethod, PreparedRequest
from .url_validator import UrlValidator

logger = logging.getLogger(__name__)

DEFAULT_HEADERS: dict[str, str] = {"Accept": JSON_MEDIA_TYPE, "Content-Type": JSON_MEDIA_TYPE}


def _query_value(value: Any) -> str:
    """Render one query value; booleans use their JSON spelling."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def query_string(params: Mapping[str, Any]) -> str:
    """
    Render a flat parameter mapping as a query string.

    List and tuple values expand to one ``key=value`` segment per element,
    in element order. Booleans render as ``true``/``false``; everything
    else renders with ``str()``. Nothing is percent-encoded.

    Example:
        >>> query_string({"trial": True, "error": [True, False]})
        'trial=true&error=true&error=false'
    """
    segments: list[str] = []
    for key, value in params.items():
        if isinstance(value, (list, tuple)):
            segments.extend(f"{key}={_query_value(item)}" for item in value)
        else:
            segments.append(f"{key}={_query_value(value)}")
    return "&".join(segments)


def build_url(url: str, params: Mapping[str, Any] | None = None) -> str:
    """Append the query string to ``url`` when there are parameters."""
    if not params:
        return url
    return f"{url}?{query_string(params)}"


def merge_headers(
    headers: Mapping[str, str] | None,
    defaults: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """
    Merge caller headers with defaults; caller entries always win.

    Header names are matched case-insensitively, so a caller's
    ``content-type`` suppresses the default ``Content-Type``.
    """
    merged: CIMultiDict[str] = CIMultiDict()
    for name, value in (headers or {}).items():
        merged[name] = value
    for name, value in (DEFAULT_HEADERS if defaults is None else defaults).items():
        merged.setdefault(name, value)
    return dict(merged.items())


def encode_body(data: Any) -> bytes | None:
    """
    Serialize a body mapping to JSON bytes.

    Returns:
        UTF-8 encoded JSON, or None for a missing or empty mapping

    Raises:
        RequestError: json_parse_error when the data cannot be serialized
    """
    if data is None:
        return None
    if not isinstance(data, Mapping):
        raise RequestError.json_parse_error(f"Body must be a mapping, got {type(data).__name__}")
    if not data:
        return None
    try:
        return json.dumps(data, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise RequestError.json_parse_error(str(e)) from e


class RequestBuilder:
    """
    Builds PreparedRequest values, or fails before anything is dispatched.

    Example:
        builder = RequestBuilder()
        request = builder.build("GET", "https://api.example.com/items", params={"page": 2})
        assert request.url == "https://api.example.com/items?page=2"
    """

    def __init__(
        self,
        default_headers: Mapping[str, str] | None = None,
        url_validator: UrlValidator | None = None,
    ) -> None:
        """
        Initialize the builder.

        Args:
            default_headers: Headers applied when the caller omits them
                             (default: JSON Accept and Content-Type)
            url_validator: Validator for the final URL
        """
        self.default_headers = dict(DEFAULT_HEADERS if default_headers is None else default_headers)
        self.url_validator = url_validator or UrlValidator()

    def build(
        self,
        method: HttpMethod | str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> PreparedRequest:
        """
        Build a request.

        Args:
            method: Request method
            url: Target URL without query string
            params: Query parameters (GET and DELETE)
            data: JSON body mapping (POST, PUT and PATCH)
            headers: Caller headers, taking precedence over defaults

        Returns:
            PreparedRequest ready for a Transport

        Raises:
            RequestError: url_error or json_parse_error
        """
        method = HttpMethod(method.upper() if isinstance(method, str) else method)

        full_url = build_url(url, params)
        result = self.url_validator.validate(full_url)
        if not result.is_valid:
            raise RequestError.url_error(result.rejection_reason or "Malformed URL")

        body = encode_body(data) if method.has_body else None

        return PreparedRequest(
            method=method,
            url=full_url,
            headers=merge_headers(headers, self.default_headers),
            body=body,
        )
