"""
Request executors for CloudFiles SDK.

An executor turns an ``ApiRequest`` into one HTTP round trip and returns an
``ApiResponse``. Error statuses are returned, not raised; only transport
failures raise. ``HttpExecutor`` uses requests and blocks, ``AsyncHttpExecutor``
uses aiohttp. Both enforce the ``throttle`` flag with a semaphore sized by
``ClientConfig.max_concurrent_requests``.
"""

import asyncio
import io
import json
import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Mapping, Optional

import aiohttp
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .auth import AuthManager
from .config import ClientConfig
from .exceptions import NetworkError, RequestTimeoutError
from .request import ApiRequest, ResultType
from .response import ApiResponse, ResponseStatus, classify_status

logger = logging.getLogger(__name__)


def _decode(raw: bytes) -> Any:
    if not raw:
        return None
    text = raw.decode("utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        return text


def build_response(status_code: int, headers: Mapping[str, str], raw: bytes, result_type: ResultType) -> ApiResponse:
    """Wrap a raw HTTP response in an ``ApiResponse``."""
    status = classify_status(status_code)
    body = None
    error = None

    if status is ResponseStatus.SUCCESS:
        if result_type is ResultType.STREAM:
            body = io.BytesIO(raw)
        else:
            body = _decode(raw)
    elif status is ResponseStatus.ERROR:
        error = _decode(raw)

    return ApiResponse(status_code=status_code, headers=dict(headers), body=body, error=error)


def _default_headers(config: ClientConfig) -> Dict[str, str]:
    headers = AuthManager.from_config(config).get_auth_headers()
    headers["User-Agent"] = config.user_agent
    return headers


class HttpExecutor:
    """
    Blocking executor backed by a ``requests.Session``.

    Connection failures are retried by the session adapter; HTTP error
    statuses are never retried here.
    """

    def __init__(self, config: ClientConfig, session: Optional[requests.Session] = None):
        self.config = config
        self._semaphore = threading.BoundedSemaphore(config.max_concurrent_requests)

        if session is None:
            session = requests.Session()
            retry_strategy = Retry(
                total=config.max_retries,
                read=False,
                respect_retry_after_header=False,
                backoff_factor=1,
                raise_on_status=False,
            )
            adapter = HTTPAdapter(max_retries=retry_strategy)
            session.mount("http://", adapter)
            session.mount("https://", adapter)
        self.session = session
        self.session.headers.update(_default_headers(config))

    @contextmanager
    def _throttle(self, request: ApiRequest):
        if not request.throttle:
            yield
            return
        with self._semaphore:
            yield

    def _build_kwargs(self, request: ApiRequest) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "params": dict(request.parameters),
            "headers": dict(request.headers),
            "timeout": request.timeout or self.config.timeout,
            "allow_redirects": request.follow_redirect,
        }
        if request.is_multipart:
            files = []
            for part in request.form_parts:
                if part.is_file:
                    files.append((part.name, (part.filename, part.value, part.content_type or "application/octet-stream")))
                else:
                    files.append((part.name, (None, part.value)))
            kwargs["files"] = files
        elif request.payload is not None:
            kwargs["data"] = request.payload.encode("utf-8")
            kwargs["headers"]["Content-Type"] = request.content_type or "application/json"
        return kwargs

    def submit(self, request: ApiRequest) -> ApiResponse:
        """Send ``request`` once and return the classified response."""
        kwargs = self._build_kwargs(request)
        logger.debug("%s %s params=%s", request.method.value, request.url, request.parameters)

        with self._throttle(request):
            try:
                response = self.session.request(method=request.method.value, url=request.url, **kwargs)
            except requests.exceptions.Timeout as e:
                raise RequestTimeoutError(f"Request timeout: {e}", timeout_seconds=kwargs["timeout"])
            except requests.exceptions.ConnectionError as e:
                raise NetworkError(f"Connection error: {e}")
            except requests.exceptions.RequestException as e:
                raise NetworkError(f"Request failed: {e}")

        logger.debug("%s %s -> %d", request.method.value, request.url, response.status_code)
        return build_response(response.status_code, response.headers, response.content, request.result_type)

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class AsyncHttpExecutor:
    """
    Cooperative executor backed by an ``aiohttp.ClientSession``.

    The session and the throttle semaphore are created lazily on first use,
    inside the running event loop, so the executor can be built outside one.
    """

    def __init__(self, config: ClientConfig, session: Optional[aiohttp.ClientSession] = None):
        self.config = config
        self._session = session
        self._owns_session = session is None
        self._semaphore: Optional[asyncio.Semaphore] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.config.max_concurrent_requests)
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(limit=100, limit_per_host=30)
            self._session = aiohttp.ClientSession(
                headers=_default_headers(self.config),
                connector=connector,
            )
            self._owns_session = True
        return self._session

    def _build_kwargs(self, request: ApiRequest) -> Dict[str, Any]:
        headers = dict(request.headers)
        if not self._owns_session:
            headers = {**_default_headers(self.config), **headers}

        kwargs: Dict[str, Any] = {
            "params": dict(request.parameters),
            "headers": headers,
            "timeout": aiohttp.ClientTimeout(total=request.timeout or self.config.timeout),
            "allow_redirects": request.follow_redirect,
        }
        if request.is_multipart:
            form_data = aiohttp.FormData()
            for part in request.form_parts:
                if part.is_file:
                    form_data.add_field(
                        part.name,
                        part.value,
                        filename=part.filename,
                        content_type=part.content_type or "application/octet-stream",
                    )
                else:
                    form_data.add_field(part.name, part.value)
            kwargs["data"] = form_data
        elif request.payload is not None:
            kwargs["data"] = request.payload.encode("utf-8")
            headers["Content-Type"] = request.content_type or "application/json"
        return kwargs

    async def _send(self, session: aiohttp.ClientSession, request: ApiRequest) -> ApiResponse:
        kwargs = self._build_kwargs(request)
        async with session.request(request.method.value, request.url, **kwargs) as response:
            raw = await response.read()
            logger.debug("%s %s -> %d", request.method.value, request.url, response.status)
            return build_response(response.status, response.headers, raw, request.result_type)

    async def submit(self, request: ApiRequest) -> ApiResponse:
        """Send ``request`` once and return the classified response."""
        session = await self._get_session()
        logger.debug("%s %s params=%s", request.method.value, request.url, request.parameters)

        try:
            if request.throttle:
                async with self._semaphore:
                    return await self._send(session, request)
            return await self._send(session, request)
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError(f"Request timeout: {e}", timeout_seconds=request.timeout or self.config.timeout)
        except aiohttp.ClientConnectionError as e:
            raise NetworkError(f"Connection error: {e}")
        except aiohttp.ClientError as e:
            raise NetworkError(f"Request failed: {e}")

    async def close(self):
        """Close the client session."""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
