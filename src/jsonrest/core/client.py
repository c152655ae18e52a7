"""Client facade: one call per HTTP method, blocking or callback-driven."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from concurrent.futures import Future
from types import TracebackType
from typing import Any, Union

from ..http.builder import RequestBuilder
from ..http.protocols import HttpMethod, PreparedRequest, Transport
from ..http.transport import AiohttpTransport
from ..http.url_validator import UrlValidator
from ..models.config import ClientConfig
from ..models.errors import RequestError
from ..models.response import Response
from .executor import RequestExecutor, ResponseCallback

logger = logging.getLogger(__name__)


class Client:
    """
    JSON-oriented HTTP client with a blocking and a callback call style.

    Every call yields a Response; failures are reported through
    ``Response.error``, never raised. Passing ``on_complete`` selects
    non-blocking mode: the call returns a placeholder immediately and the
    real Response is delivered to the callback from the transport thread.

    Example:
        with Client() as client:
            response = client.get("https://api.example.com/items", params={"tag": ["a", "b"]})
            if response.ok:
                print(response.parsed_body)

            client.post("https://api.example.com/items", {"name": "x"}, on_complete=print)
    """

    def __init__(self, config: ClientConfig | None = None, *, transport: Transport | None = None) -> None:
        """
        Initialize the client.

        Args:
            config: Client configuration (defaults to ClientConfig())
            transport: Transport to dispatch on. When omitted, the client
                       creates an AiohttpTransport and closes it on close().
        """
        self.config = config or ClientConfig()

        self._owns_transport = transport is None
        if transport is None:
            transport = AiohttpTransport(
                timeout=self.config.request_timeout,
                proxy=self.config.proxy,
                user_agent=self.config.user_agent,
                trust_env=self.config.trust_env,
            )
        self.transport = transport

        self._builder = RequestBuilder(
            default_headers=self.config.default_headers,
            url_validator=UrlValidator(allowed_schemes=set(self.config.allowed_schemes)),
        )
        self._executor = RequestExecutor(transport, wait_timeout=self.config.wait_timeout)

    def __enter__(self) -> Client:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport:
            self.transport.close()

    def _prepare(
        self,
        method: Union[HttpMethod, str],
        url: str,
        params: Mapping[str, Any] | None,
        data: Mapping[str, Any] | None,
        headers: Mapping[str, str] | None,
    ) -> PreparedRequest | Response:
        """Build the request, or the failure Response when building fails."""
        try:
            return self._builder.build(method, url, params=params, data=data, headers=headers)
        except RequestError as e:
            logger.warning(f"Not dispatching {method} {url!r}: {e}")
            return Response.failed(e)

    def send(
        self,
        method: Union[HttpMethod, str],
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Future[Response]:
        """
        Issue a request and return a future for its Response.

        Build failures return an already-resolved future. Use
        ``future.result()`` to wait or ``future.add_done_callback`` to
        continue asynchronously.
        """
        prepared = self._prepare(method, url, params, data, headers)
        if isinstance(prepared, Response):
            future: Future[Response] = Future()
            future.set_result(prepared)
            return future
        return self._executor.submit(prepared)

    def request(
        self,
        method: Union[HttpMethod, str],
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        on_complete: ResponseCallback | None = None,
    ) -> Response:
        """
        Issue a request in blocking mode, or in callback mode when ``on_complete`` is given.

        Args:
            method: Request method
            url: Target URL without query string
            params: Query parameters (GET, DELETE)
            data: JSON body mapping (POST, PUT, PATCH)
            headers: Headers overriding the configured defaults
            on_complete: Callback for non-blocking mode

        Returns:
            The Response in blocking mode. In callback mode, a placeholder;
            build failures are returned as-is and also passed to the callback.
        """
        prepared = self._prepare(method, url, params, data, headers)
        if isinstance(prepared, Response):
            if on_complete is not None:
                on_complete(prepared)
            return prepared
        return self._executor.execute(prepared, on_complete)

    def get(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        on_complete: ResponseCallback | None = None,
    ) -> Response:
        return self.request(HttpMethod.GET, url, params=params, headers=headers, on_complete=on_complete)

    def delete(
        self,
        url: str,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        on_complete: ResponseCallback | None = None,
    ) -> Response:
        return self.request(HttpMethod.DELETE, url, params=params, headers=headers, on_complete=on_complete)

    def post(
        self,
        url: str,
        data: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        on_complete: ResponseCallback | None = None,
    ) -> Response:
        return self.request(HttpMethod.POST, url, data=data, headers=headers, on_complete=on_complete)

    def put(
        self,
        url: str,
        data: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        on_complete: ResponseCallback | None = None,
    ) -> Response:
        return self.request(HttpMethod.PUT, url, data=data, headers=headers, on_complete=on_complete)

    def patch(
        self,
        url: str,
        data: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        on_complete: ResponseCallback | None = None,
    ) -> Response:
        return self.request(HttpMethod.PATCH, url, data=data, headers=headers, on_complete=on_complete)
