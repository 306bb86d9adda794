import io
from unittest.mock import AsyncMock, patch

import pytest

from cloudfiles_sdk.config import ClientConfig
from cloudfiles_sdk.response import ApiResponse


def make_response(status_code, headers=None, body=None, error=None):
    return ApiResponse(status_code=status_code, headers=headers or {}, body=body, error=error)


def snapshot(request):
    """Everything about a request that goes on the wire."""
    return (
        request.method,
        request.url,
        tuple(sorted(request.parameters.items())),
        tuple(sorted(request.headers.items())),
        request.payload,
    )


class FakeExecutor:
    """Returns scripted responses and records what was submitted."""

    def __init__(self):
        self.responses = []
        self.requests = []
        self.snapshots = []

    def queue(self, *responses):
        self.responses.extend(responses)
        return self

    def _next(self, request):
        self.requests.append(request)
        self.snapshots.append(snapshot(request))
        if not self.responses:
            raise AssertionError(f"Unexpected request to {request.url}")
        return self.responses.pop(0)

    def submit(self, request):
        return self._next(request)

    @property
    def last_request(self):
        return self.requests[-1]


class FakeAsyncExecutor(FakeExecutor):
    async def submit(self, request):
        return self._next(request)


@pytest.fixture
def respond():
    """Factory for ApiResponse objects"""
    return make_response


@pytest.fixture
def png_stream():
    return io.BytesIO(b"\x89PNG\r\n\x1a\nfake-image")


@pytest.fixture
def test_config():
    """Create test configuration"""
    return ClientConfig(access_token="test_token", base_url="https://api.test/2.0", upload_url="https://upload.test/api/2.0")


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def async_executor():
    return FakeAsyncExecutor()


@pytest.fixture
def async_sleep():
    """Replace the poll delay so tests don't wait"""
    with patch("cloudfiles_sdk.polling.asyncio.sleep", new_callable=AsyncMock) as sleep:
        yield sleep


@pytest.fixture
def blocking_sleep():
    with patch("cloudfiles_sdk.polling.time.sleep") as sleep:
        yield sleep
