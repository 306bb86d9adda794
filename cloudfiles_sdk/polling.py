"""
Polling for server-generated assets.

Thumbnails and previews are rendered on demand. Until an asset is ready the
server answers ``202 Accepted``, usually with a ``Retry-After`` hint. The
controllers here resubmit the same request after the advised delay until the
response is no longer ``202``.

There is no retry limit unless ``max_attempts`` is given: a server that
keeps answering ``202`` keeps the caller waiting. Use the request timeout
to bound each round trip.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import parse_qs, urlparse

from .request import ApiRequest
from .response import ApiResponse, ResponseStatus, freeze_headers

logger = logging.getLogger(__name__)

DEFAULT_RETRY_DELAY = 1000  # milliseconds
UNKNOWN_PAGE_COUNT = 0

RETRY_AFTER_HEADER = "Retry-After"
TOTAL_PAGES_HEADER = "X-Total-Pages"
LINK_HEADER = "Link"


def compute_delay(headers: Optional[Mapping[str, str]], default_ms: int = DEFAULT_RETRY_DELAY) -> int:
    """
    Milliseconds to wait before polling again.

    Uses the whole-seconds ``Retry-After`` hint when it parses as an integer
    and ``default_ms`` otherwise. The header name is matched
    case-insensitively. Never raises.
    """
    if not headers:
        return default_ms
    value = freeze_headers(headers).get(RETRY_AFTER_HEADER)
    if value is None:
        return default_ms
    try:
        seconds = int(str(value).strip())
    except ValueError:
        return default_ms
    return max(0, seconds * 1000)


def extract_page_count(headers: Optional[Mapping[str, str]]) -> int:
    """
    Total number of pages of a preview, or ``UNKNOWN_PAGE_COUNT``.

    Reads ``X-Total-Pages`` first, then the ``page`` parameter of the
    ``rel="last"`` entry of a ``Link`` header.
    """
    if not headers:
        return UNKNOWN_PAGE_COUNT

    headers = freeze_headers(headers)
    total = headers.get(TOTAL_PAGES_HEADER)
    if total is not None:
        try:
            return max(UNKNOWN_PAGE_COUNT, int(str(total).strip()))
        except ValueError:
            pass

    link = headers.get(LINK_HEADER)
    if link:
        return _last_page_from_link(link)
    return UNKNOWN_PAGE_COUNT


def _last_page_from_link(link: str) -> int:
    for entry in link.split(","):
        if 'rel="last"' not in entry:
            continue
        target = entry.split(";", 1)[0].strip().strip("<>")
        pages = parse_qs(urlparse(target).query).get("page")
        if pages:
            try:
                return int(pages[0])
            except ValueError:
                return UNKNOWN_PAGE_COUNT
    return UNKNOWN_PAGE_COUNT


@dataclass
class PollOutcome:
    """Terminal (or last observed) response of a polled asset request."""

    response: ApiResponse
    attempts: int = 1
    total_pages: int = UNKNOWN_PAGE_COUNT

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def status(self) -> ResponseStatus:
        return self.response.status

    @property
    def stream(self) -> Any:
        """The asset body; only set when the asset is ready."""
        if self.response.is_success:
            return self.response.body
        return None

    @property
    def error(self) -> Any:
        return self.response.error


def _outcome(response: ApiResponse, attempts: int) -> PollOutcome:
    total_pages = UNKNOWN_PAGE_COUNT
    if response.is_success:
        total_pages = extract_page_count(response.headers)
    return PollOutcome(response=response, attempts=attempts, total_pages=total_pages)


def _should_poll(response: ApiResponse, handle_retry: bool, attempts: int,
                 max_attempts: Optional[int], request: ApiRequest) -> bool:
    if not response.is_processing or not handle_retry:
        return False
    if max_attempts is not None and attempts >= max_attempts:
        logger.warning(
            "Giving up on %s after %d attempts; asset is still processing",
            request.url, attempts,
        )
        return False
    return True


async def poll_async(
    executor,
    request: ApiRequest,
    handle_retry: bool = True,
    *,
    default_delay_ms: int = DEFAULT_RETRY_DELAY,
    max_attempts: Optional[int] = None,
) -> PollOutcome:
    """
    Submit ``request`` through an async executor, polling while it is processing.

    The delay between attempts is awaited with ``asyncio.sleep`` so other
    tasks keep running. Only one attempt is in flight at a time.
    """
    response = await executor.submit(request)
    attempts = 1

    while _should_poll(response, handle_retry, attempts, max_attempts, request):
        delay_ms = compute_delay(response.headers, default_delay_ms)
        logger.debug("%s is processing, polling again in %d ms", request.url, delay_ms)
        await asyncio.sleep(delay_ms / 1000)
        response = await executor.submit(request)
        attempts += 1

    return _outcome(response, attempts)


def poll(
    executor,
    request: ApiRequest,
    handle_retry: bool = True,
    *,
    default_delay_ms: int = DEFAULT_RETRY_DELAY,
    max_attempts: Optional[int] = None,
) -> PollOutcome:
    """Blocking variant of ``poll_async`` for the synchronous client."""
    response = executor.submit(request)
    attempts = 1

    while _should_poll(response, handle_retry, attempts, max_attempts, request):
        delay_ms = compute_delay(response.headers, default_delay_ms)
        logger.debug("%s is processing, polling again in %d ms", request.url, delay_ms)
        time.sleep(delay_ms / 1000)
        response = executor.submit(request)
        attempts += 1

    return _outcome(response, attempts)
