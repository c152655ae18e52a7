"""jsonrest configuration, response and error models."""

from .config import JSON_MEDIA_TYPE, ClientConfig
from .errors import (
    MESSAGE_KINDS,
    PLACEHOLDER_BODY,
    STATUS_ERROR_KINDS,
    ErrorKind,
    RequestError,
    error_kind_for_status,
)
from .response import Response, is_success, parse_json_body

__all__ = [
    # Config
    "ClientConfig",
    "JSON_MEDIA_TYPE",
    # Errors
    "ErrorKind",
    "MESSAGE_KINDS",
    "PLACEHOLDER_BODY",
    "RequestError",
    "STATUS_ERROR_KINDS",
    "error_kind_for_status",
    # Response
    "Response",
    "is_success",
    "parse_json_body",
]
