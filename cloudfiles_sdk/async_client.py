"""
Asynchronous CloudFiles client implementation.

This module provides an async/await client for file operations. Waiting on
the network or between preview polls never blocks the event loop, so many
fetches can run concurrently.
"""

import logging
from typing import BinaryIO, List, Optional

from . import assets, files
from .config import ClientConfig
from .executor import AsyncHttpExecutor
from .models import (
    Collection, Comment, FileInfo, FileLock, FileLockRequest, FilePreview, FileRequest,
    FileVersion, PreflightCheck, PreflightCheckRequest, SharedLinkRequest, Task,
)
from .polling import PollOutcome

logger = logging.getLogger(__name__)


class AsyncFilesClient:
    """
    Async client for file metadata, content, previews, trash, locks and shared links.

    Args:
        access_token: Bearer token (can also use CLOUDFILES_ACCESS_TOKEN env var)
        config: Full client configuration; built from ``access_token`` and
            ``options`` when omitted
        executor: Object with an async ``submit(request)``; an
            ``AsyncHttpExecutor`` is created when omitted
        **options: Extra ``ClientConfig`` fields
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        executor=None,
        **options,
    ):
        if config is None:
            if access_token is not None:
                options["access_token"] = access_token
            config = ClientConfig(**options)
        self.config = config
        self.executor = executor or AsyncHttpExecutor(self.config)

    @property
    def _files(self) -> str:
        return self.config.files_endpoint

    async def get_information(self, file_id: str, fields: Optional[List[str]] = None) -> FileInfo:
        """Get metadata about a file."""
        request = files.information_request(self._files, file_id, fields)
        return files.parse_file(await self.executor.submit(request))

    async def get_download_uri(self, file_id: str, version_id: Optional[str] = None) -> Optional[str]:
        """Get the temporary URL the file content is served from."""
        request = files.download_uri_request(self._files, file_id, version_id)
        return files.parse_download_uri(await self.executor.submit(request))

    async def download(self, file_id: str, version_id: Optional[str] = None, timeout: files.Timeout = None):
        """Download file content; returns a binary stream."""
        uri = await self.get_download_uri(file_id, version_id)
        response = files.raise_for_response(await self.executor.submit(files.download_request(uri, timeout)))
        return response.body

    async def preflight_check(self, preflight_request: PreflightCheckRequest) -> PreflightCheck:
        """Check whether an upload would be accepted before sending content."""
        request = files.preflight_check_request(self._files, preflight_request)
        return files.parse_preflight(await self.executor.submit(request))

    async def preflight_check_new_version(self, file_id: str, preflight_request: PreflightCheckRequest) -> PreflightCheck:
        request = files.preflight_check_new_version_request(self._files, file_id, preflight_request)
        return files.parse_preflight(await self.executor.submit(request))

    async def upload(
        self,
        file_request: FileRequest,
        stream: BinaryIO,
        fields: Optional[List[str]] = None,
        timeout: files.Timeout = None,
        content_md5: Optional[bytes] = None,
        rewind: bool = True,
        upload_uri: Optional[str] = None,
    ) -> Optional[FileInfo]:
        """
        Upload a new file.

        Args:
            file_request: Name and parent folder of the new file
            stream: Binary content
            fields: Attributes to include in the response
            timeout: Timeout for this request
            content_md5: Raw SHA-1 digest of the content, sent hex-encoded
            rewind: Seek the stream to the start before sending
            upload_uri: Upload URL returned by a preflight check

        Returns:
            FileInfo of the uploaded file
        """
        request = files.upload_request(
            self.config.upload_endpoint, file_request, stream, fields, timeout, content_md5, rewind, upload_uri
        )
        logger.debug("Uploading %s to folder %s", file_request.name, file_request.parent.id)
        return files.parse_uploaded_file(await self.executor.submit(request))

    async def upload_new_version(
        self,
        file_name: str,
        file_id: str,
        stream: BinaryIO,
        etag: Optional[str] = None,
        fields: Optional[List[str]] = None,
        timeout: files.Timeout = None,
        content_md5: Optional[bytes] = None,
        rewind: bool = True,
        upload_uri: Optional[str] = None,
    ) -> Optional[FileInfo]:
        """Upload new content for an existing file."""
        request = files.upload_new_version_request(
            self.config.upload_endpoint, file_id, file_name, stream, etag, fields, timeout, content_md5, rewind, upload_uri
        )
        return files.parse_uploaded_file(await self.executor.submit(request))

    async def get_versions(self, file_id: str, fields: Optional[List[str]] = None) -> Collection[FileVersion]:
        request = files.versions_request(self._files, file_id, fields)
        return files.parse_collection(await self.executor.submit(request), FileVersion.from_dict)

    async def update_information(
        self, file_request: FileRequest, etag: Optional[str] = None, fields: Optional[List[str]] = None
    ) -> FileInfo:
        """Update name, description, tags or parent of a file."""
        request = files.update_information_request(self._files, file_request, etag, fields)
        return files.parse_file(await self.executor.submit(request))

    async def delete(self, file_id: str, etag: Optional[str] = None) -> bool:
        """Move a file to the trash."""
        request = files.delete_request(self._files, file_id, etag)
        return files.parse_success(await self.executor.submit(request))

    async def copy(self, file_request: FileRequest, fields: Optional[List[str]] = None) -> FileInfo:
        request = files.copy_request(self._files, file_request, fields)
        return files.parse_file(await self.executor.submit(request))

    async def create_shared_link(
        self, file_id: str, shared_link_request: SharedLinkRequest, fields: Optional[List[str]] = None
    ) -> FileInfo:
        request = files.create_shared_link_request(self._files, file_id, shared_link_request, fields)
        return files.parse_file(await self.executor.submit(request))

    async def delete_shared_link(self, file_id: str) -> FileInfo:
        request = files.delete_shared_link_request(self._files, file_id)
        return files.parse_file(await self.executor.submit(request))

    async def get_comments(self, file_id: str, fields: Optional[List[str]] = None) -> Collection[Comment]:
        request = files.comments_request(self._files, file_id, fields)
        return files.parse_collection(await self.executor.submit(request), Comment.from_dict)

    async def fetch_thumbnail(
        self,
        file_id: str,
        min_height: Optional[int] = None,
        min_width: Optional[int] = None,
        max_height: Optional[int] = None,
        max_width: Optional[int] = None,
        throttle: bool = True,
        handle_retry: bool = True,
    ) -> PollOutcome:
        """Fetch a thumbnail and the final response status."""
        return await assets.fetch_thumbnail(
            self.executor,
            self._files,
            file_id,
            min_height=min_height,
            min_width=min_width,
            max_height=max_height,
            max_width=max_width,
            throttle=throttle,
            handle_retry=handle_retry,
            default_delay_ms=self.config.default_retry_delay_ms,
            max_attempts=self.config.max_poll_attempts,
        )

    async def get_thumbnail(
        self,
        file_id: str,
        min_height: Optional[int] = None,
        min_width: Optional[int] = None,
        max_height: Optional[int] = None,
        max_width: Optional[int] = None,
        throttle: bool = True,
        handle_retry: bool = True,
    ):
        """
        Get a thumbnail image stream.

        Returns None when the thumbnail is not ready (``handle_retry=False``)
        or the server answered with an error; use ``fetch_thumbnail`` to see
        the status.
        """
        outcome = await self.fetch_thumbnail(
            file_id, min_height, min_width, max_height, max_width, throttle, handle_retry
        )
        return outcome.stream

    async def get_preview_link(self, file_id: str) -> Optional[str]:
        """Get an expiring URL for embedding a preview of the file."""
        request = files.preview_link_request(self._files, file_id)
        return files.parse_preview_link(await self.executor.submit(request))

    async def get_preview(self, file_id: str, page: int, handle_retry: bool = True):
        """Get the stream of one preview page, or None if it is not available."""
        preview = await self.get_file_preview(file_id, page, handle_retry=handle_retry)
        return preview.preview_stream

    async def get_file_preview(
        self,
        file_id: str,
        page: int,
        max_width: Optional[int] = None,
        min_width: Optional[int] = None,
        max_height: Optional[int] = None,
        min_height: Optional[int] = None,
        handle_retry: bool = True,
    ) -> FilePreview:
        """Get one preview page together with the total page count and status."""
        return await assets.fetch_preview(
            self.executor,
            self._files,
            file_id,
            page,
            max_width=max_width,
            min_width=min_width,
            max_height=max_height,
            min_height=min_height,
            handle_retry=handle_retry,
            default_delay_ms=self.config.default_retry_delay_ms,
            max_attempts=self.config.max_poll_attempts,
        )

    async def get_trashed(self, file_id: str, fields: Optional[List[str]] = None) -> FileInfo:
        request = files.trashed_request(self._files, file_id, fields)
        return files.parse_file(await self.executor.submit(request))

    async def restore_trashed(self, file_request: FileRequest, fields: Optional[List[str]] = None) -> FileInfo:
        request = files.restore_trashed_request(self._files, file_request, fields)
        return files.parse_file(await self.executor.submit(request))

    async def purge_trashed(self, file_id: str) -> bool:
        """Permanently delete a trashed file."""
        request = files.purge_trashed_request(self._files, file_id)
        return files.parse_success(await self.executor.submit(request))

    async def get_lock(self, file_id: str) -> Optional[FileLock]:
        request = files.lock_request(self._files, file_id)
        return files.parse_lock(await self.executor.submit(request))

    async def update_lock(self, lock_request: FileLockRequest, file_id: str) -> Optional[FileLock]:
        request = files.update_lock_request(self._files, lock_request, file_id)
        return files.parse_lock(await self.executor.submit(request))

    async def unlock(self, file_id: str) -> bool:
        request = files.unlock_request(self._files, file_id)
        return files.parse_success(await self.executor.submit(request))

    async def get_tasks(self, file_id: str, fields: Optional[List[str]] = None) -> Collection[Task]:
        request = files.tasks_request(self._files, file_id, fields)
        return files.parse_collection(await self.executor.submit(request), Task.from_dict)

    async def close(self):
        """Close the executor's session."""
        close = getattr(self.executor, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
