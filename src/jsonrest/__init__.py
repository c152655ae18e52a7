"""
jsonrest - A small JSON HTTP client with blocking and callback call styles.

Usage:
    from jsonrest import Client

    with Client() as client:
        # Blocking
        response = client.get("https://api.example.com/items", params={"page": 1})
        print(response.status_code, response.parsed_body)

        # Non-blocking: returns a placeholder, delivers the real Response later
        client.post("https://api.example.com/items", {"name": "x"}, on_complete=print)
"""

__version__ = "1.0.0"

from .core.client import Client
from .core.executor import RequestExecutor
from .http.protocols import HttpMethod, PreparedRequest, Transport, TransportResult
from .http.transport import AiohttpTransport, TransportClosedError
from .logging_config import setup_logging
from .models.config import ClientConfig
from .models.errors import ErrorKind, RequestError, error_kind_for_status
from .models.response import Response

__all__ = [
    "__version__",
    # Core
    "Client",
    "RequestExecutor",
    # Config
    "ClientConfig",
    # Model
    "ErrorKind",
    "RequestError",
    "Response",
    "error_kind_for_status",
    # Transport
    "AiohttpTransport",
    "HttpMethod",
    "PreparedRequest",
    "Transport",
    "TransportClosedError",
    "TransportResult",
    # Logging
    "setup_logging",
]
