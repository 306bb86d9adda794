import pytest

from cloudfiles_sdk.assets import (
    AssetFetchParameters,
    fetch_preview,
    fetch_preview_sync,
    fetch_thumbnail,
    fetch_thumbnail_sync,
    preview_request,
    thumbnail_request,
)
from cloudfiles_sdk.exceptions import ValidationError
from cloudfiles_sdk.request import RequestMethod, ResultType

FILES = "https://api.test/2.0/files/"


class TestThumbnailRequest:
    """Test cases for the thumbnail request builder"""

    def test_bounds_become_query_parameters(self):
        params = AssetFetchParameters("42", min_height=32, min_width=32, max_height=256, max_width=320)

        request = thumbnail_request(FILES, params)

        assert request.method is RequestMethod.GET
        assert request.url == "https://api.test/2.0/files/42/thumbnail.png"
        assert request.parameters == {
            "min_height": "32",
            "min_width": "32",
            "max_height": "256",
            "max_width": "320",
        }
        assert request.result_type is ResultType.STREAM

    def test_absent_bounds_are_omitted(self):
        request = thumbnail_request(FILES, AssetFetchParameters("42", max_width=64))

        assert request.parameters == {"max_width": "64"}

    def test_throttle_flag_is_carried(self):
        assert thumbnail_request(FILES, AssetFetchParameters("42")).throttle is True
        assert thumbnail_request(FILES, AssetFetchParameters("42", throttle=False)).throttle is False

    @pytest.mark.parametrize("file_id", [None, "", "   "])
    def test_blank_file_id_rejected(self, file_id):
        with pytest.raises(ValidationError) as exc_info:
            thumbnail_request(FILES, AssetFetchParameters(file_id))

        assert exc_info.value.field == "file_id"


class TestPreviewRequest:
    """Test cases for the preview request builder"""

    def test_page_is_always_sent(self):
        request = preview_request(FILES, AssetFetchParameters("42", page=3))

        assert request.url == "https://api.test/2.0/files/42/preview.png"
        assert request.parameters == {"page": "3"}

    def test_bounds(self):
        params = AssetFetchParameters("42", page=1, max_width=800, min_height=100)

        request = preview_request(FILES, params)

        assert request.parameters == {"page": "1", "max_width": "800", "min_height": "100"}

    def test_page_required(self):
        with pytest.raises(ValidationError) as exc_info:
            preview_request(FILES, AssetFetchParameters("42"))

        assert exc_info.value.field == "page"

    def test_blank_file_id_rejected(self):
        with pytest.raises(ValidationError):
            preview_request(FILES, AssetFetchParameters(" ", page=1))


class TestFetchThumbnail:
    """End-to-end thumbnail fetches against scripted responses"""

    @pytest.mark.asyncio
    async def test_waits_for_rendering_then_returns_stream(self, async_executor, respond, async_sleep, png_stream):
        async_executor.queue(respond(202, {"Retry-After": "2"}), respond(200, body=png_stream))

        outcome = await fetch_thumbnail(async_executor, FILES, "42", max_width=160)

        assert outcome.stream is png_stream
        assert outcome.status_code == 200
        async_sleep.assert_awaited_once_with(2.0)
        assert len(async_executor.requests) == 2

    @pytest.mark.asyncio
    async def test_no_retry_returns_processing_immediately(self, async_executor, respond, async_sleep):
        async_executor.queue(respond(202, {"Retry-After": "2"}))

        outcome = await fetch_thumbnail(async_executor, FILES, "42", handle_retry=False)

        assert outcome.status_code == 202
        assert outcome.stream is None
        async_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_validation_happens_before_submission(self, async_executor):
        with pytest.raises(ValidationError):
            await fetch_thumbnail(async_executor, FILES, "")

        assert async_executor.requests == []

    def test_blocking_fetch(self, executor, respond, blocking_sleep, png_stream):
        executor.queue(respond(202), respond(200, body=png_stream))

        outcome = fetch_thumbnail_sync(executor, FILES, "42", throttle=False)

        assert outcome.stream is png_stream
        assert executor.last_request.throttle is False
        blocking_sleep.assert_called_once_with(1.0)


class TestFetchPreview:
    """End-to-end preview fetches against scripted responses"""

    @pytest.mark.asyncio
    async def test_page_metadata_on_success(self, async_executor, respond, async_sleep, png_stream):
        async_executor.queue(respond(200, {"X-Total-Pages": "10"}, body=png_stream))

        preview = await fetch_preview(async_executor, FILES, "42", 3)

        assert preview.current_page == 3
        assert preview.total_pages == 10
        assert preview.returned_status_code == 200
        assert preview.preview_stream is png_stream
        async_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_found_is_not_retried(self, async_executor, respond, async_sleep):
        async_executor.queue(respond(404, error={"code": "not_found"}))

        preview = await fetch_preview(async_executor, FILES, "42", 2)

        assert preview.returned_status_code == 404
        assert preview.current_page == 2
        assert preview.preview_stream is None
        assert preview.total_pages == 0
        assert len(async_executor.requests) == 1
        async_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_processing_without_retry_echoes_page(self, async_executor, respond, async_sleep):
        async_executor.queue(respond(202))

        preview = await fetch_preview(async_executor, FILES, "42", 5, handle_retry=False)

        assert preview.returned_status_code == 202
        assert preview.current_page == 5
        assert preview.preview_stream is None

    def test_blocking_fetch(self, executor, respond, blocking_sleep, png_stream):
        executor.queue(respond(202, {"Retry-After": "1"}), respond(200, {"X-Total-Pages": "2"}, body=png_stream))

        preview = fetch_preview_sync(executor, FILES, "42", 1, max_width=640)

        assert preview.total_pages == 2
        assert preview.preview_stream is png_stream
        assert executor.last_request.parameters["max_width"] == "640"
