import asyncio
import io
from unittest.mock import AsyncMock, MagicMock, Mock

import aiohttp
import pytest
import requests

from cloudfiles_sdk.config import ClientConfig
from cloudfiles_sdk.exceptions import NetworkError, RequestTimeoutError
from cloudfiles_sdk.executor import AsyncHttpExecutor, HttpExecutor, build_response
from cloudfiles_sdk.request import ApiRequest, FormPart, RequestMethod, ResultType

FILES = "https://api.test/2.0/files/"


@pytest.fixture
def session():
    session = Mock()
    session.headers = {}
    session.request.return_value = Mock(status_code=200, headers={"Content-Type": "application/json"}, content=b'{"id": "42"}')
    return session


@pytest.fixture
def aio_session():
    response = Mock(status=200, headers={"X-Total-Pages": "2"})
    response.read = AsyncMock(return_value=b"png-bytes")
    session = MagicMock()
    session.closed = False
    session.request.return_value.__aenter__.return_value = response
    return session


class TestBuildResponse:
    """Test cases for response wrapping"""

    def test_json_success(self):
        response = build_response(200, {}, b'{"id": "1"}', ResultType.JSON)

        assert response.body == {"id": "1"}
        assert response.error is None

    def test_stream_success(self):
        response = build_response(200, {}, b"bytes", ResultType.STREAM)

        assert response.body.read() == b"bytes"

    def test_processing_has_no_body(self):
        response = build_response(202, {"Retry-After": "1"}, b"", ResultType.STREAM)

        assert response.body is None
        assert response.headers["retry-after"] == "1"

    def test_error_keeps_body(self):
        response = build_response(404, {}, b'{"code": "not_found"}', ResultType.STREAM)

        assert response.body is None
        assert response.error == {"code": "not_found"}

    def test_error_plain_text(self):
        assert build_response(502, {}, b"Bad Gateway", ResultType.JSON).error == "Bad Gateway"


class TestHttpExecutor:
    """Test cases for the blocking executor"""

    def test_default_headers(self, test_config, session):
        HttpExecutor(test_config, session=session)

        assert session.headers["Authorization"] == "Bearer test_token"
        assert session.headers["User-Agent"].startswith("CloudFiles-Python-SDK/")

    def test_submit(self, test_config, session):
        executor = HttpExecutor(test_config, session=session)
        request = ApiRequest(FILES, "42").param("fields", ["name"])

        response = executor.submit(request)

        assert response.body == {"id": "42"}
        _, kwargs = session.request.call_args
        assert kwargs["method"] == "GET"
        assert kwargs["url"] == FILES + "42"
        assert kwargs["params"] == {"fields": "name"}
        assert kwargs["timeout"] == test_config.timeout
        assert kwargs["allow_redirects"] is True

    def test_json_payload(self, test_config, session):
        executor = HttpExecutor(test_config, session=session)

        executor.submit(ApiRequest(FILES, "42", method=RequestMethod.PUT).with_payload('{"name": "b"}'))

        _, kwargs = session.request.call_args
        assert kwargs["data"] == b'{"name": "b"}'
        assert kwargs["headers"]["Content-Type"] == "application/json"

    def test_multipart(self, test_config, session):
        executor = HttpExecutor(test_config, session=session)
        stream = io.BytesIO(b"abc")
        request = (
            ApiRequest(FILES, "content", method=RequestMethod.POST)
            .form_part(FormPart("metadata", "{}"))
            .form_part(FormPart("file", stream, filename="a.txt"))
        )

        executor.submit(request)

        _, kwargs = session.request.call_args
        assert kwargs["files"] == [
            ("metadata", (None, "{}")),
            ("file", ("a.txt", stream, "application/octet-stream")),
        ]
        assert "data" not in kwargs

    def test_redirects_not_followed(self, test_config, session):
        executor = HttpExecutor(test_config, session=session)

        executor.submit(ApiRequest(FILES, "42/content", follow_redirect=False))

        assert session.request.call_args[1]["allow_redirects"] is False

    def test_request_does_not_change(self, test_config, session):
        executor = HttpExecutor(test_config, session=session)
        request = ApiRequest(FILES, "42").with_payload("{}")

        executor.submit(request)
        executor.submit(request)

        assert request.headers == {}
        assert request.parameters == {}

    def test_timeout(self, test_config, session):
        session.request.side_effect = requests.exceptions.Timeout("slow")
        executor = HttpExecutor(test_config, session=session)

        with pytest.raises(RequestTimeoutError) as exc_info:
            executor.submit(ApiRequest(FILES, "42", timeout=5))

        assert exc_info.value.timeout_seconds == 5

    def test_connection_error(self, test_config, session):
        session.request.side_effect = requests.exceptions.ConnectionError("refused")
        executor = HttpExecutor(test_config, session=session)

        with pytest.raises(NetworkError):
            executor.submit(ApiRequest(FILES, "42"))

    def test_error_status_is_returned(self, test_config, session):
        session.request.return_value = Mock(status_code=404, headers={}, content=b'{"code": "not_found"}')
        executor = HttpExecutor(test_config, session=session)

        response = executor.submit(ApiRequest(FILES, "42"))

        assert response.is_error
        assert response.error == {"code": "not_found"}

    def test_throttled_request_holds_semaphore(self, session):
        config = ClientConfig(access_token="test_token", max_concurrent_requests=1)
        executor = HttpExecutor(config, session=session)
        available = []

        def record(**kwargs):
            available.append(executor._semaphore._value)
            return Mock(status_code=200, headers={}, content=b"")

        session.request.side_effect = record

        executor.submit(ApiRequest(FILES, "42"))
        executor.submit(ApiRequest(FILES, "42", throttle=False))

        assert available == [0, 1]
        assert executor._semaphore._value == 1

    def test_context_manager_closes_session(self, test_config, session):
        with HttpExecutor(test_config, session=session):
            pass

        session.close.assert_called_once()


class TestAsyncHttpExecutor:
    """Test cases for the aiohttp executor"""

    @pytest.mark.asyncio
    async def test_submit(self, test_config, aio_session):
        executor = AsyncHttpExecutor(test_config, session=aio_session)
        request = ApiRequest(FILES, "42/preview.png", result_type=ResultType.STREAM).param("page", 1)

        response = await executor.submit(request)

        assert response.body.read() == b"png-bytes"
        assert response.headers["x-total-pages"] == "2"
        args, kwargs = aio_session.request.call_args
        assert args == ("GET", FILES + "42/preview.png")
        assert kwargs["params"] == {"page": "1"}
        assert kwargs["headers"]["Authorization"] == "Bearer test_token"
        assert isinstance(kwargs["timeout"], aiohttp.ClientTimeout)

    @pytest.mark.asyncio
    async def test_multipart_uses_form_data(self, test_config, aio_session):
        executor = AsyncHttpExecutor(test_config, session=aio_session)
        request = ApiRequest(FILES, "content", method=RequestMethod.POST).form_part(
            FormPart("file", io.BytesIO(b"abc"), filename="a.txt")
        )

        await executor.submit(request)

        assert isinstance(aio_session.request.call_args[1]["data"], aiohttp.FormData)

    @pytest.mark.asyncio
    async def test_timeout(self, test_config, aio_session):
        aio_session.request.side_effect = asyncio.TimeoutError()
        executor = AsyncHttpExecutor(test_config, session=aio_session)

        with pytest.raises(RequestTimeoutError):
            await executor.submit(ApiRequest(FILES, "42"))

    @pytest.mark.asyncio
    async def test_connection_error(self, test_config, aio_session):
        aio_session.request.side_effect = aiohttp.ClientConnectionError("refused")
        executor = AsyncHttpExecutor(test_config, session=aio_session)

        with pytest.raises(NetworkError):
            await executor.submit(ApiRequest(FILES, "42"))

    @pytest.mark.asyncio
    async def test_throttled_request_holds_semaphore(self, aio_session):
        config = ClientConfig(access_token="test_token", max_concurrent_requests=1)
        executor = AsyncHttpExecutor(config, session=aio_session)
        context = aio_session.request.return_value
        available = []

        def record(*args, **kwargs):
            available.append(executor._semaphore._value)
            return context

        aio_session.request.side_effect = record

        await executor.submit(ApiRequest(FILES, "42"))
        await executor.submit(ApiRequest(FILES, "42", throttle=False))

        assert available == [0, 1]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("throttle, expected_peak", [(True, 1), (False, 3)])
    async def test_concurrent_requests_limit(self, aio_session, throttle, expected_peak):
        config = ClientConfig(access_token="test_token", max_concurrent_requests=1)
        executor = AsyncHttpExecutor(config, session=aio_session)
        counts = {"in_flight": 0, "peak": 0}

        async def read():
            counts["in_flight"] += 1
            counts["peak"] = max(counts["peak"], counts["in_flight"])
            await asyncio.sleep(0)
            counts["in_flight"] -= 1
            return b""

        aio_session.request.return_value.__aenter__.return_value.read = read

        await asyncio.gather(*(executor.submit(ApiRequest(FILES, "42", throttle=throttle)) for _ in range(3)))

        assert counts["peak"] == expected_peak

    def test_built_outside_event_loop(self, test_config, aio_session):
        executor = AsyncHttpExecutor(test_config, session=aio_session)
        assert executor._semaphore is None

        response = asyncio.run(executor.submit(ApiRequest(FILES, "42")))

        assert response.status_code == 200
        assert executor._semaphore is not None

    @pytest.mark.asyncio
    async def test_injected_session_is_not_closed(self, test_config, aio_session):
        aio_session.close = AsyncMock()

        async with AsyncHttpExecutor(test_config, session=aio_session):
            pass

        aio_session.close.assert_not_awaited()
