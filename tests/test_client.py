"""Tests for the Client facade and RequestExecutor with stub transports."""

import json
import threading
from unittest.mock import MagicMock, patch

import pytest
from jsonrest.core.client import Client
from jsonrest.core.executor import RequestExecutor, normalize
from jsonrest.http.protocols import HttpMethod, PreparedRequest, TransportResult
from jsonrest.http.transport import AiohttpTransport
from jsonrest.models.config import ClientConfig
from jsonrest.models.errors import ErrorKind, RequestError
from jsonrest.models.response import Response

WAIT = 5.0


class SpyTransport:
    """Records dispatched requests and completes them synchronously with a fixed result."""

    def __init__(self, result=None):
        self.result = result or TransportResult(
            content=b'{"ok":true}',
            status_code=200,
            headers={"Content-Type": "application/json"},
        )
        self.requests = []
        self.closed = False

    def dispatch(self, request, on_complete):
        self.requests.append(request)
        on_complete(self.result)

    def close(self):
        self.closed = True


class ThreadedTransport(SpyTransport):
    """Completes each request on its own thread once released."""

    def __init__(self, result=None):
        super().__init__(result)
        self.release = threading.Event()

    def dispatch(self, request, on_complete):
        self.requests.append(request)

        def complete():
            self.release.wait(WAIT)
            on_complete(self.result)

        threading.Thread(target=complete, daemon=True).start()


class HungTransport(SpyTransport):
    """Never completes."""

    def dispatch(self, request, on_complete):
        self.requests.append(request)


class TestNormalize:
    """Tests for normalize()."""

    def test_success(self):
        """Test a 2xx result becomes an ok Response."""
        response = normalize(TransportResult(content=b'{"ok":true}', status_code=200, headers={"X": "1"}))
        assert response.status_code == 200
        assert response.error is None
        assert response.parsed_body == {"ok": True}
        assert response.headers == {"X": "1"}

    @pytest.mark.parametrize("status,kind", [(404, ErrorKind.NOT_FOUND), (500, ErrorKind.INTERNAL_SERVER)])
    def test_error_status_keeps_body(self, status, kind):
        """Test non-2xx results stay fully populated with a mapped error."""
        response = normalize(TransportResult(content=b"oops", status_code=status, headers={"A": "b"}))
        assert response.status_code == status
        assert response.body == "oops"
        assert response.headers == {"A": "b"}
        assert response.error == RequestError.from_status(status, "oops")
        assert response.error.kind is kind

    def test_transport_error_propagated(self):
        """Test the transport's exception is kept as the error."""
        exc = ConnectionRefusedError("refused")
        response = normalize(TransportResult.failure(exc))
        assert response.status_code == 0
        assert response.error is exc
        assert response.body is None

    def test_no_content_is_unknown_error(self):
        """Test a result without content or error becomes unknown_error."""
        response = normalize(TransportResult(content=None, status_code=200))
        assert response.status_code == 0
        assert response.error.kind is ErrorKind.UNKNOWN_ERROR

    def test_no_status_is_unknown_error(self):
        """Test a result without a status line becomes unknown_error."""
        response = normalize(TransportResult(content=b"x", status_code=0))
        assert response.error.kind is ErrorKind.UNKNOWN_ERROR

    def test_charset_from_headers(self):
        """Test the declared charset is used for decoding."""
        response = normalize(
            TransportResult(
                content="café".encode("latin-1"),
                status_code=200,
                headers={"content-type": "text/plain; charset=latin-1"},
            )
        )
        assert response.body == "café"


class TestRequestExecutor:
    """Tests for RequestExecutor."""

    @pytest.fixture
    def request_(self):
        return PreparedRequest(method=HttpMethod.GET, url="https://example.com/")

    def test_submit_returns_future(self, request_):
        """Test submit resolves a future with the normalized response."""
        executor = RequestExecutor(SpyTransport())
        future = executor.submit(request_)
        assert future.result(timeout=WAIT).status_code == 200

    def test_wait_timeout(self, request_):
        """Test an opt-in wait timeout turns a hung transport into unknown_error."""
        executor = RequestExecutor(HungTransport(), wait_timeout=0.05)
        response = executor.execute(request_)
        assert response.status_code == 0
        assert response.error.kind is ErrorKind.UNKNOWN_ERROR
        assert "Timed out" in response.error.body

    def test_callback_mode_returns_placeholder(self, request_):
        """Test execute with a callback returns the placeholder."""
        transport = ThreadedTransport()
        executor = RequestExecutor(transport)
        received = []
        result = executor.execute(request_, on_complete=received.append)
        assert result.is_placeholder
        transport.release.set()

    def test_deeply_nested_body_still_resolves(self, request_):
        """Test a body too deep to decode yields a Response without parsed_body."""
        body = b"[" * 200000 + b"]" * 200000
        transport = SpyTransport(TransportResult(content=body, status_code=200))

        response = RequestExecutor(transport).execute(request_)

        assert response.status_code == 200
        assert response.error is None
        assert response.parsed_body is None

    def test_normalize_failure_resolves_blocking_call(self, request_):
        """Test a failure while normalizing still completes a blocking call."""
        transport = ThreadedTransport()
        executor = RequestExecutor(transport)
        threading.Timer(0.05, transport.release.set).start()

        with patch("jsonrest.core.executor.normalize", side_effect=RuntimeError("boom")):
            response = executor.execute(request_)

        assert response.status_code == 0
        assert response.error.kind is ErrorKind.UNKNOWN_ERROR
        assert response.error.body == "boom"

    def test_normalize_failure_reaches_callback(self, request_):
        """Test a failure while normalizing is still delivered to the callback."""
        transport = ThreadedTransport()
        executor = RequestExecutor(transport)
        done = threading.Event()
        received = []

        def on_complete(response):
            received.append(response)
            done.set()

        with patch("jsonrest.core.executor.normalize", side_effect=RuntimeError("boom")):
            executor.execute(request_, on_complete=on_complete)
            transport.release.set()
            assert done.wait(WAIT)

        assert len(received) == 1
        assert received[0].error.kind is ErrorKind.UNKNOWN_ERROR


class TestClientBlocking:
    """Tests for blocking-mode calls."""

    def test_get_success(self):
        """Test blocking GET returns the transport's response."""
        transport = SpyTransport()
        client = Client(transport=transport)

        response = client.get("https://example.com/items")

        assert response.status_code == 200
        assert response.error is None
        assert response.parsed_body == {"ok": True}
        assert len(transport.requests) == 1
        assert transport.requests[0].method is HttpMethod.GET

    def test_get_blocks_until_threaded_completion(self):
        """Test the caller waits for a completion on another thread."""
        transport = ThreadedTransport()
        client = Client(transport=transport)
        threading.Timer(0.05, transport.release.set).start()

        response = client.get("https://example.com/items")

        assert response.status_code == 200

    def test_get_without_params_uses_plain_url(self):
        """Test an empty params mapping adds no query string."""
        transport = SpyTransport()
        Client(transport=transport).get("https://example.com/items", params={})
        assert transport.requests[0].url == "https://example.com/items"

    def test_delete_with_params(self):
        """Test DELETE appends its query string and sends no body."""
        transport = SpyTransport()
        Client(transport=transport).delete("https://example.com/items", params={"id": [1, 2]})
        request = transport.requests[0]
        assert request.method is HttpMethod.DELETE
        assert request.url == "https://example.com/items?id=1&id=2"
        assert request.body is None

    @pytest.mark.parametrize("name", ["post", "put", "patch"])
    def test_body_methods(self, name):
        """Test POST, PUT and PATCH send the JSON body and default headers."""
        transport = SpyTransport()
        client = Client(transport=transport)

        response = getattr(client, name)("https://example.com/items", {"test": True})

        request = transport.requests[0]
        assert response.ok
        assert request.method.value == name.upper()
        assert json.loads(request.body) == {"test": True}
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["Accept"] == "application/json"

    def test_caller_headers_win(self):
        """Test caller headers override configured defaults."""
        transport = SpyTransport()
        Client(transport=transport).get("https://example.com/", headers={"Accept": "text/html"})
        assert transport.requests[0].headers["Accept"] == "text/html"

    def test_config_default_headers(self):
        """Test configured default headers reach the transport."""
        transport = SpyTransport()
        config = ClientConfig(default_headers={"Accept": "application/json", "X-Api-Key": "k"})
        Client(config, transport=transport).get("https://example.com/")
        assert transport.requests[0].headers == {"Accept": "application/json", "X-Api-Key": "k"}

    def test_malformed_url_never_dispatches(self):
        """Test a malformed URL fails with url_error and zero transport calls."""
        transport = SpyTransport()
        response = Client(transport=transport).get("")

        assert response.status_code == 0
        assert response.error.kind is ErrorKind.URL_ERROR
        assert transport.requests == []

    def test_bad_body_never_dispatches(self):
        """Test a serialization failure fails with json_parse_error and zero transport calls."""
        transport = SpyTransport()
        response = Client(transport=transport).post("https://example.com/", {"bad": object()})

        assert response.status_code == 0
        assert response.error.kind is ErrorKind.JSON_PARSE_ERROR
        assert transport.requests == []

    def test_disallowed_scheme(self):
        """Test allowed_schemes from config is enforced."""
        transport = SpyTransport()
        client = Client(ClientConfig(allowed_schemes=["https"]), transport=transport)
        assert client.get("http://example.com/").error.kind is ErrorKind.URL_ERROR
        assert transport.requests == []

    def test_error_status_body_readable(self):
        """Test non-2xx responses keep their body and headers."""
        transport = SpyTransport(TransportResult(content=b'{"detail":"bad"}', status_code=400, headers={"A": "1"}))
        response = Client(transport=transport).get("https://example.com/")

        assert response.status_code == 400
        assert response.error.kind is ErrorKind.BAD_REQUEST
        assert response.error.message == '{"detail":"bad"}'
        assert response.parsed_body == {"detail": "bad"}
        assert response.headers == {"A": "1"}

    def test_transport_failure(self):
        """Test transport exceptions surface with status 0."""
        exc = OSError("network down")
        transport = SpyTransport(TransportResult.failure(exc))
        response = Client(transport=transport).get("https://example.com/")
        assert response.status_code == 0
        assert response.error is exc

    def test_idempotent(self):
        """Test identical calls on a deterministic transport give equal responses."""
        client = Client(transport=SpyTransport(TransportResult(content=b"[1]", status_code=503)))
        first = client.get("https://example.com/", params={"a": 1})
        second = client.get("https://example.com/", params={"a": 1})
        assert first == second
        assert first is not second

    def test_request_with_method_string(self):
        """Test request() accepts method names."""
        transport = SpyTransport()
        Client(transport=transport).request("patch", "https://example.com/", data={"a": 1})
        assert transport.requests[0].method is HttpMethod.PATCH


class TestClientNonBlocking:
    """Tests for callback-mode calls."""

    def test_placeholder_then_callback(self):
        """Test the call returns a placeholder and the callback fires exactly once."""
        transport = ThreadedTransport()
        client = Client(transport=transport)
        done = threading.Event()
        received = []

        def on_complete(response):
            received.append(response)
            done.set()

        result = client.get("https://example.com/", on_complete=on_complete)

        assert result.status_code == 0
        assert result.is_placeholder
        assert received == []

        transport.release.set()
        assert done.wait(WAIT)
        assert len(received) == 1
        assert received[0].status_code == 200
        assert received[0].parsed_body == {"ok": True}

    def test_callback_runs_on_completion_thread(self):
        """Test the callback is invoked from the transport's thread."""
        transport = ThreadedTransport()
        client = Client(transport=transport)
        done = threading.Event()
        threads = []

        def on_complete(response):
            threads.append(threading.current_thread())
            done.set()

        client.post("https://example.com/", {"a": 1}, on_complete=on_complete)
        transport.release.set()

        assert done.wait(WAIT)
        assert threads[0] is not threading.current_thread()

    def test_independent_completions(self):
        """Test concurrent calls each get their own completion."""
        transport = ThreadedTransport()
        client = Client(transport=transport)
        callback = MagicMock()
        lock = threading.Lock()
        all_done = threading.Event()

        def on_complete(response):
            with lock:
                callback(response)
                if callback.call_count == 3:
                    all_done.set()

        for i in range(3):
            client.get("https://example.com/", params={"i": i}, on_complete=on_complete)
        transport.release.set()

        assert all_done.wait(WAIT)
        assert callback.call_count == 3
        assert sorted(r.url for r in transport.requests) == [f"https://example.com/?i={i}" for i in range(3)]

    def test_build_failure_delivered_synchronously(self):
        """Test build failures go to the callback immediately and are returned."""
        transport = SpyTransport()
        callback = MagicMock()

        result = Client(transport=transport).get("not a url", on_complete=callback)

        assert result.error.kind is ErrorKind.URL_ERROR
        assert not result.is_placeholder
        callback.assert_called_once_with(result)
        assert transport.requests == []


class TestClientSend:
    """Tests for the future-returning send()."""

    def test_send_resolves(self):
        """Test send returns a future with the real response."""
        transport = ThreadedTransport()
        client = Client(transport=transport)

        future = client.send("GET", "https://example.com/")
        assert not future.done()

        transport.release.set()
        response = future.result(timeout=WAIT)
        assert response.status_code == 200

    def test_send_build_failure_resolved(self):
        """Test build failures come back as an already-completed future."""
        transport = SpyTransport()
        future = Client(transport=transport).send("GET", "")
        assert future.done()
        assert future.result().error.kind is ErrorKind.URL_ERROR
        assert transport.requests == []


class TestClientLifecycle:
    """Tests for transport ownership."""

    def test_injected_transport_not_closed(self):
        """Test the client leaves injected transports open."""
        transport = SpyTransport()
        with Client(transport=transport):
            pass
        assert transport.closed is False

    def test_owned_transport_closed(self):
        """Test the client closes a transport it created."""
        client = Client(ClientConfig(request_timeout=5, user_agent="jsonrest-test"))
        assert isinstance(client.transport, AiohttpTransport)
        with client:
            pass
        assert client.transport.closed

    def test_returns_response_type(self):
        """Test every call style returns a Response."""
        client = Client(transport=SpyTransport())
        assert isinstance(client.get("https://example.com/"), Response)
        assert isinstance(client.get("https://example.com/", on_complete=lambda r: None), Response)
