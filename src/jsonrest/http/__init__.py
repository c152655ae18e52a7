"""Request building and transports for jsonrest."""

from .builder import DEFAULT_HEADERS, RequestBuilder, build_url, encode_body, merge_headers, query_string
from .content import decode_content
from .protocols import CompletionHandler, HttpMethod, PreparedRequest, Transport, TransportResult
from .transport import AiohttpTransport, TransportClosedError
from .url_validator import UrlValidationResult, UrlValidator

__all__ = [
    "AiohttpTransport",
    "CompletionHandler",
    "DEFAULT_HEADERS",
    "HttpMethod",
    "PreparedRequest",
    "RequestBuilder",
    "Transport",
    "TransportClosedError",
    "TransportResult",
    "UrlValidationResult",
    "UrlValidator",
    "build_url",
    "decode_content",
    "encode_body",
    "merge_headers",
    "query_string",
]
