"""aiohttp transport driven from a background event-loop thread."""

from __future__ import annotations

import asyncio
import logging
import threading
from concurrent.futures import Future
from types import TracebackType

import aiohttp
from multidict import CIMultiDictProxy

from .protocols import CompletionHandler, PreparedRequest, TransportResult

logger = logging.getLogger(__name__)


class TransportClosedError(RuntimeError):
    """Raised (via the completion handler) when dispatching on a closed transport."""


def join_headers(headers: CIMultiDictProxy[str]) -> dict[str, str]:
    """
    Flatten response headers into a dict, one entry per header name.

    Repeated headers such as ``Set-Cookie`` are joined with ``", "`` in
    arrival order under the first spelling of the name.
    """
    joined: dict[str, str] = {}
    seen: set[str] = set()
    for name in headers:
        if name.lower() in seen:
            continue
        seen.add(name.lower())
        joined[name] = ", ".join(headers.getall(name))
    return joined


class AiohttpTransport:
    """
    Transport that sends requests through one shared aiohttp session.

    The session lives on a private asyncio loop running in a daemon thread,
    so callers on any thread can dispatch without an event loop of their
    own. Completion handlers run on that loop thread.

    Example:
        with AiohttpTransport(timeout=30) as transport:
            transport.dispatch(request, on_complete=handle_result)
    """

    THREAD_NAME = "jsonrest-transport"

    # Network failures delivered as results rather than logged as bugs
    EXPECTED_EXCEPTIONS = (
        aiohttp.ClientError,
        asyncio.TimeoutError,
        OSError,
    )

    def __init__(
        self,
        *,
        timeout: float | None = None,
        proxy: str | None = None,
        user_agent: str | None = None,
        trust_env: bool = False,
    ) -> None:
        """
        Initialize the transport. No thread or session is created until the first dispatch.

        Args:
            timeout: Total request timeout in seconds (None = no timeout)
            proxy: Proxy URL (http:// or https://)
            user_agent: Custom User-Agent string
            trust_env: Read proxy settings and .netrc credentials from the environment
        """
        self._timeout = timeout
        self._proxy = proxy
        self._user_agent = user_agent
        self._trust_env = trust_env

        self._lock = threading.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._closed = False

        # Only touched from the loop thread
        self._session: aiohttp.ClientSession | None = None

    def __enter__(self) -> AiohttpTransport:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        """Start the loop thread on first use. Caller holds ``self._lock``."""
        if self._loop is None:
            loop = asyncio.new_event_loop()
            thread = threading.Thread(
                target=self._run_loop,
                args=(loop,),
                name=self.THREAD_NAME,
                daemon=True,
            )
            thread.start()
            self._loop = loop
            self._thread = thread
            logger.debug("Started transport loop thread")
        return self._loop

    @staticmethod
    def _run_loop(loop: asyncio.AbstractEventLoop) -> None:
        asyncio.set_event_loop(loop)
        loop.run_forever()

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            headers = {"User-Agent": self._user_agent} if self._user_agent else None
            self._session = aiohttp.ClientSession(
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self._timeout),
                trust_env=self._trust_env,
            )
        return self._session

    def dispatch(self, request: PreparedRequest, on_complete: CompletionHandler) -> None:
        """
        Schedule a request on the loop thread.

        ``on_complete`` fires exactly once: on the loop thread, or on the
        calling thread if the transport is already closed.
        """
        deliver = _OnceHandler(on_complete)
        future: Future | None = None

        with self._lock:
            if not self._closed:
                loop = self._ensure_loop()
                future = asyncio.run_coroutine_threadsafe(self._perform(request, deliver), loop)

        if future is None:
            deliver(TransportResult.failure(TransportClosedError("Transport is closed")))
            return

        future.add_done_callback(deliver.on_future_done)

    async def _perform(self, request: PreparedRequest, on_complete: CompletionHandler) -> None:
        logger.debug(f"{request.method.value} {request.url}")
        try:
            session = await self._get_session()
            async with session.request(
                request.method.value,
                request.url,
                headers=request.headers,
                data=request.body,
                proxy=self._proxy,
                allow_redirects=True,
            ) as response:
                content = await response.read()
                result = TransportResult(
                    content=content,
                    status_code=response.status,
                    headers=join_headers(response.headers),
                )
        except self.EXPECTED_EXCEPTIONS as e:
            logger.debug(f"Transport error for {request.url}: {e!r}")
            result = TransportResult.failure(e)
        except Exception as e:
            # The completion handler fires exactly once, whatever failed
            logger.exception(f"Unexpected transport error for {request.url}")
            result = TransportResult.failure(e)

        logger.debug(f"{request.method.value} {request.url} -> {result.status_code}")
        on_complete(result)

    async def _shutdown(self) -> None:
        current = asyncio.current_task()
        pending = [task for task in asyncio.all_tasks() if task is not current]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        if self._session is not None:
            await self._session.close()
            self._session = None

    def close(self) -> None:
        """
        Cancel in-flight requests, close the session and stop the loop thread.

        Idempotent. In-flight requests complete with CancelledError.

        Raises:
            RuntimeError: If called from the transport's own loop thread
        """
        with self._lock:
            if self._closed:
                return
            if self._thread is not None and threading.current_thread() is self._thread:
                raise RuntimeError("close() cannot be called from a completion handler")
            self._closed = True
            loop, thread = self._loop, self._thread

        if loop is None or thread is None:
            return

        asyncio.run_coroutine_threadsafe(self._shutdown(), loop).result()
        loop.call_soon_threadsafe(loop.stop)
        thread.join()
        loop.close()
        logger.debug("Transport closed")


class _OnceHandler:
    """Wraps a completion handler so only the first result is delivered."""

    def __init__(self, on_complete: CompletionHandler) -> None:
        self._on_complete = on_complete
        self._lock = threading.Lock()
        self._fired = False

    def __call__(self, result: TransportResult) -> None:
        with self._lock:
            if self._fired:
                return
            self._fired = True
        self._on_complete(result)

    def on_future_done(self, future: Future) -> None:
        # A task cancelled before it started never reaches its own handler
        if future.cancelled():
            self(TransportResult.failure(asyncio.CancelledError()))
