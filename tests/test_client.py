import hashlib
import io
from unittest.mock import Mock

import pytest

from cloudfiles_sdk import FilesClient
from cloudfiles_sdk.exceptions import NotFoundError, PreconditionFailedError, ValidationError
from cloudfiles_sdk.models import (
    FileLockRequest,
    FileRequest,
    FolderReference,
    LockRequest,
    PreflightCheckRequest,
)
from cloudfiles_sdk.request import RequestMethod
from cloudfiles_sdk.utils import calculate_sha1

FILES = "https://api.test/2.0/files/"


@pytest.fixture
def client(test_config, executor):
    return FilesClient(config=test_config, executor=executor)


class TestFilesClient:
    """Test cases for the blocking client"""

    def test_get_information(self, client, executor, respond):
        executor.queue(respond(200, body={"id": "42", "name": "report.pdf", "size": 1024, "etag": "1"}))

        file_info = client.get_information("42", fields=["name", "size"])

        assert file_info.name == "report.pdf"
        assert file_info.size == 1024
        assert executor.last_request.url == FILES + "42"
        assert executor.last_request.parameters == {"fields": "name,size"}

    def test_not_found(self, client, executor, respond):
        executor.queue(respond(404, {"X-Request-Id": "r1"}, error={"code": "not_found", "message": "Not Found"}))

        with pytest.raises(NotFoundError) as exc_info:
            client.get_information("missing")

        assert exc_info.value.status_code == 404
        assert exc_info.value.request_id == "r1"

    def test_validation_before_network(self, client, executor):
        with pytest.raises(ValidationError):
            client.get_information("")

        assert executor.requests == []

    def test_delete(self, client, executor, respond):
        executor.queue(respond(204))

        assert client.delete("42", etag="5") is True
        assert executor.last_request.method is RequestMethod.DELETE
        assert executor.last_request.headers == {"If-Match": "5"}

    def test_delete_with_stale_etag(self, client, executor, respond):
        executor.queue(respond(412))

        with pytest.raises(PreconditionFailedError):
            client.delete("42", etag="1")

    def test_download_follows_location(self, client, executor, respond, png_stream):
        executor.queue(
            respond(302, {"Location": "https://dl.test/content/42"}),
            respond(200, body=png_stream),
        )

        assert client.download("42") is png_stream
        first, second = executor.requests
        assert first.follow_redirect is False
        assert second.url == "https://dl.test/content/42"

    def test_upload_returns_first_entry(self, client, executor, respond):
        executor.queue(respond(201, body={"total_count": 1, "entries": [{"id": "9", "name": "a.txt"}]}))
        file_request = FileRequest(name="a.txt", parent=FolderReference("0"))

        file_info = client.upload(file_request, io.BytesIO(b"abc"))

        assert file_info.id == "9"
        assert executor.last_request.url == "https://upload.test/api/2.0/files/content"

    def test_preflight_conflict(self, client, executor, respond):
        executor.queue(respond(409, error={"code": "item_name_in_use"}))

        check = client.preflight_check(PreflightCheckRequest(name="a.txt", size=3, parent=FolderReference("0")))

        assert check.success is False
        assert check.error == {"code": "item_name_in_use"}

    def test_get_versions(self, client, executor, respond):
        executor.queue(respond(200, body={"total_count": 2, "entries": [{"id": "v1"}, {"id": "v2"}]}))

        versions = client.get_versions("42")

        assert [v.id for v in versions.entries] == ["v1", "v2"]
        assert versions.total_count == 2

    def test_lock_round_trip(self, client, executor, respond):
        lock_body = {"id": "42", "lock": {"id": "l1", "is_download_prevented": True}}
        executor.queue(respond(200, body=lock_body), respond(200, body={"id": "42"}))

        lock = client.update_lock(FileLockRequest(LockRequest(is_download_prevented=True)), "42")
        assert lock.id == "l1"
        assert lock.is_download_prevented is True

        assert client.unlock("42") is True

    def test_get_thumbnail_not_ready(self, client, executor, respond, blocking_sleep):
        executor.queue(respond(202, {"Retry-After": "3"}))

        assert client.get_thumbnail("42", handle_retry=False) is None
        blocking_sleep.assert_not_called()

    def test_get_preview_waits(self, client, executor, respond, blocking_sleep, png_stream):
        executor.queue(respond(202), respond(200, {"X-Total-Pages": "4"}, body=png_stream))

        preview = client.get_file_preview("42", 2)

        assert preview.total_pages == 4
        assert preview.current_page == 2
        blocking_sleep.assert_called_once_with(1.0)

    def test_poll_cap_from_config(self, test_config, executor, respond, blocking_sleep):
        test_config.max_poll_attempts = 2
        client = FilesClient(config=test_config, executor=executor)
        executor.queue(respond(202), respond(202))

        outcome = client.fetch_thumbnail("42")

        assert outcome.status_code == 202
        assert outcome.attempts == 2

    def test_context_manager_closes_executor(self, test_config):
        executor = Mock()

        with FilesClient(config=test_config, executor=executor):
            pass

        executor.close.assert_called_once()

    def test_get_comments(self, client, executor, respond):
        body = {"total_count": 1, "entries": [{"id": "c1", "message": "looks good", "created_by": {"id": "u1"}}]}
        executor.queue(respond(200, body=body))

        comments = client.get_comments("42")

        assert comments.entries[0].message == "looks good"
        assert comments.entries[0].created_by.id == "u1"
        assert executor.last_request.url == FILES + "42/comments"

    def test_upload_sends_content_digest(self, client, executor, respond):
        executor.queue(respond(201, body={"total_count": 1, "entries": [{"id": "9"}]}))
        stream = io.BytesIO(b"hello world")
        file_request = FileRequest(name="hello.txt", parent=FolderReference("0"))

        client.upload(file_request, stream, content_md5=calculate_sha1(stream))

        assert executor.last_request.headers["Content-MD5"] == hashlib.sha1(b"hello world").hexdigest()
