"""
Thumbnail and preview fetching.

Both assets are rendered by the server on demand, so fetching them goes
through the polling controller: a ``202`` answer is retried after the
advised delay unless the caller passes ``handle_retry=False``.

The functions take the executor as an argument and keep no state, so any
client (or none) can use them.
"""

from dataclasses import dataclass
from typing import Optional

from .models import FilePreview
from .polling import DEFAULT_RETRY_DELAY, PollOutcome, poll, poll_async
from .request import ApiRequest, ResultType
from .utils import require_not_blank, require_not_none


THUMBNAIL_PATH = "{file_id}/thumbnail.{extension}"
PREVIEW_PATH = "{file_id}/preview.png"


@dataclass
class AssetFetchParameters:
    """Inputs of a single thumbnail or preview fetch."""

    file_id: str
    page: Optional[int] = None
    min_height: Optional[int] = None
    min_width: Optional[int] = None
    max_height: Optional[int] = None
    max_width: Optional[int] = None
    handle_retry: bool = True
    throttle: bool = True

    def validate(self) -> "AssetFetchParameters":
        require_not_blank(self.file_id, "file_id")
        return self


def thumbnail_request(files_endpoint: str, params: AssetFetchParameters, extension: str = "png") -> ApiRequest:
    """Build the GET request for a file thumbnail."""
    params.validate()
    return (
        ApiRequest(
            files_endpoint,
            THUMBNAIL_PATH.format(file_id=params.file_id, extension=extension),
            throttle=params.throttle,
            result_type=ResultType.STREAM,
        )
        .param("min_height", params.min_height)
        .param("min_width", params.min_width)
        .param("max_height", params.max_height)
        .param("max_width", params.max_width)
    )


def preview_request(files_endpoint: str, params: AssetFetchParameters) -> ApiRequest:
    """Build the GET request for one page of a file preview."""
    params.validate()
    require_not_none(params.page, "page")
    return (
        ApiRequest(
            files_endpoint,
            PREVIEW_PATH.format(file_id=params.file_id),
            throttle=params.throttle,
            result_type=ResultType.STREAM,
        )
        .param("page", params.page)
        .param("max_width", params.max_width)
        .param("max_height", params.max_height)
        .param("min_width", params.min_width)
        .param("min_height", params.min_height)
    )


def to_file_preview(outcome: PollOutcome, page: int) -> FilePreview:
    """Echo the requested page; attach stream and page count only on 200."""
    preview = FilePreview(current_page=page, returned_status_code=outcome.status_code)
    if outcome.status_code == 200:
        preview.preview_stream = outcome.stream
        preview.total_pages = outcome.total_pages
    return preview


async def fetch_thumbnail(
    executor,
    files_endpoint: str,
    file_id: str,
    min_height: Optional[int] = None,
    min_width: Optional[int] = None,
    max_height: Optional[int] = None,
    max_width: Optional[int] = None,
    throttle: bool = True,
    handle_retry: bool = True,
    default_delay_ms: int = DEFAULT_RETRY_DELAY,
    max_attempts: Optional[int] = None,
) -> PollOutcome:
    """
    Fetch a thumbnail, waiting for the server to render it if needed.

    Returns the poll outcome: ``outcome.stream`` holds the image once the
    server answered with success, and ``outcome.status_code`` the final status.
    """
    params = AssetFetchParameters(
        file_id=file_id,
        min_height=min_height,
        min_width=min_width,
        max_height=max_height,
        max_width=max_width,
        handle_retry=handle_retry,
        throttle=throttle,
    )
    request = thumbnail_request(files_endpoint, params)
    return await poll_async(
        executor, request, params.handle_retry,
        default_delay_ms=default_delay_ms, max_attempts=max_attempts,
    )


async def fetch_preview(
    executor,
    files_endpoint: str,
    file_id: str,
    page: int,
    max_width: Optional[int] = None,
    min_width: Optional[int] = None,
    max_height: Optional[int] = None,
    min_height: Optional[int] = None,
    handle_retry: bool = True,
    default_delay_ms: int = DEFAULT_RETRY_DELAY,
    max_attempts: Optional[int] = None,
) -> FilePreview:
    """Fetch one preview page along with the document's total page count."""
    params = AssetFetchParameters(
        file_id=file_id,
        page=page,
        min_height=min_height,
        min_width=min_width,
        max_height=max_height,
        max_width=max_width,
        handle_retry=handle_retry,
    )
    request = preview_request(files_endpoint, params)
    outcome = await poll_async(
        executor, request, params.handle_retry,
        default_delay_ms=default_delay_ms, max_attempts=max_attempts,
    )
    return to_file_preview(outcome, page)


def fetch_thumbnail_sync(
    executor,
    files_endpoint: str,
    file_id: str,
    min_height: Optional[int] = None,
    min_width: Optional[int] = None,
    max_height: Optional[int] = None,
    max_width: Optional[int] = None,
    throttle: bool = True,
    handle_retry: bool = True,
    default_delay_ms: int = DEFAULT_RETRY_DELAY,
    max_attempts: Optional[int] = None,
) -> PollOutcome:
    """Blocking variant of ``fetch_thumbnail``."""
    params = AssetFetchParameters(
        file_id=file_id,
        min_height=min_height,
        min_width=min_width,
        max_height=max_height,
        max_width=max_width,
        handle_retry=handle_retry,
        throttle=throttle,
    )
    request = thumbnail_request(files_endpoint, params)
    return poll(
        executor, request, params.handle_retry,
        default_delay_ms=default_delay_ms, max_attempts=max_attempts,
    )


def fetch_preview_sync(
    executor,
    files_endpoint: str,
    file_id: str,
    page: int,
    max_width: Optional[int] = None,
    min_width: Optional[int] = None,
    max_height: Optional[int] = None,
    min_height: Optional[int] = None,
    handle_retry: bool = True,
    default_delay_ms: int = DEFAULT_RETRY_DELAY,
    max_attempts: Optional[int] = None,
) -> FilePreview:
    """Blocking variant of ``fetch_preview``."""
    params = AssetFetchParameters(
        file_id=file_id,
        page=page,
        min_height=min_height,
        min_width=min_width,
        max_height=max_height,
        max_width=max_width,
        handle_retry=handle_retry,
    )
    request = preview_request(files_endpoint, params)
    outcome = poll(
        executor, request, params.handle_retry,
        default_delay_ms=default_delay_ms, max_attempts=max_attempts,
    )
    return to_file_preview(outcome, page)
