"""Dispatch prepared requests and normalize their outcome into Responses."""

from __future__ import annotations

import logging
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, Optional

from ..http.content import decode_content
from ..http.protocols import PreparedRequest, Transport, TransportResult
from ..models.errors import RequestError
from ..models.response import Response, is_success

logger = logging.getLogger(__name__)

ResponseCallback = Callable[[Response], None]


def normalize(result: TransportResult) -> Response:
    """
    Turn a raw transport result into a Response.

    A failed or empty result yields status 0 with the transport's exception
    (or an unknown_error). A completed result always keeps status, body and
    headers; non-2xx statuses additionally carry a status-mapped error.
    """
    if result.error is not None or result.content is None or result.status_code <= 0:
        return Response.failed(result.error or RequestError.unknown())

    content_type = next((v for k, v in result.headers.items() if k.lower() == "content-type"), "")
    body = decode_content(result.content, content_type)
    error = None if is_success(result.status_code) else RequestError.from_status(result.status_code, body)

    return Response(
        status_code=result.status_code,
        body=body,
        headers=result.headers,
        error=error,
    )


class RequestExecutor:
    """
    Runs prepared requests on a transport in blocking or callback mode.

    Blocking mode suspends the calling thread on a future that the transport
    completion handler resolves exactly once. There is no timeout unless
    ``wait_timeout`` is set: an unresponsive transport blocks forever.

    Example:
        executor = RequestExecutor(AiohttpTransport())
        response = executor.execute(request)                     # blocks
        executor.execute(request, on_complete=print)             # returns a placeholder
    """

    def __init__(self, transport: Transport, wait_timeout: Optional[float] = None) -> None:
        """
        Initialize the executor.

        Args:
            transport: Transport used for every dispatch
            wait_timeout: Seconds a blocking call waits (None = no limit)
        """
        self.transport = transport
        self.wait_timeout = wait_timeout

    def submit(self, request: PreparedRequest) -> Future[Response]:
        """
        Dispatch a request and return a future for its Response.

        The future always resolves with a Response, never an exception.
        """
        future: Future[Response] = Future()
        future.set_running_or_notify_cancel()

        def on_transport_complete(result: TransportResult) -> None:
            try:
                response = normalize(result)
            except Exception as e:
                # The future must resolve or a blocking caller never returns
                logger.exception(f"Could not normalize response for {request.method.value} {request.url}")
                response = Response.failed(RequestError.unknown(str(e) or type(e).__name__))
            logger.debug(f"{request.method.value} {request.url} completed with {response.status_code}")
            future.set_result(response)

        self.transport.dispatch(request, on_transport_complete)
        return future

    def wait(self, future: Future[Response]) -> Response:
        """Block until the future resolves, or until ``wait_timeout`` elapses."""
        try:
            return future.result(timeout=self.wait_timeout)
        except FutureTimeoutError:
            logger.warning(f"Timed out after {self.wait_timeout}s waiting for transport")
            return Response.failed(RequestError.unknown(f"Timed out after {self.wait_timeout}s waiting for transport"))

    def execute(self, request: PreparedRequest, on_complete: ResponseCallback | None = None) -> Response:
        """
        Run a request in blocking mode, or in callback mode when ``on_complete`` is given.

        Args:
            request: The request to dispatch
            on_complete: Callback receiving the real Response exactly once,
                         on the transport's completion thread

        Returns:
            The real Response in blocking mode, otherwise a placeholder
            (status 0, pending error) that is not the request's result
        """
        future = self.submit(request)
        if on_complete is None:
            return self.wait(future)

        future.add_done_callback(lambda done: on_complete(done.result()))
        return Response.placeholder()
