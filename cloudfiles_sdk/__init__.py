"""
CloudFiles SDK - Python client for the CloudFiles REST API.

This package provides:
- File metadata retrieval and updates, copy, delete and version listing
- Single-shot and new-version multipart uploads with preflight checks
- Thumbnails and document previews, polling while the server renders them
- Trash, lock and shared-link management
- Blocking (requests) and async/await (aiohttp) clients
"""

__version__ = "1.0.0"
__author__ = "CloudFiles Team"
__email__ = "support@cloudfiles.io"

from .client import FilesClient
from .async_client import AsyncFilesClient
from .config import ClientConfig
from .executor import AsyncHttpExecutor, HttpExecutor
from .request import ApiRequest, FormPart, RequestMethod, ResultType
from .response import ApiResponse, ResponseStatus, classify_status
from .polling import (
    DEFAULT_RETRY_DELAY,
    UNKNOWN_PAGE_COUNT,
    PollOutcome,
    compute_delay,
    extract_page_count,
    poll,
    poll_async,
)
from .assets import AssetFetchParameters, fetch_preview, fetch_thumbnail
from .models import (
    FileInfo,
    FileVersion,
    FileLock,
    FilePreview,
    SharedLink,
    Comment,
    Task,
    Collection,
    PreflightCheck,
    FileRequest,
    FolderReference,
    SharedLinkRequest,
    SharedLinkAccess,
    LockRequest,
    FileLockRequest,
    PreflightCheckRequest,
)
from .exceptions import (
    CloudFilesError,
    ValidationError,
    ConfigurationError,
    NetworkError,
    RequestTimeoutError,
    ApiError,
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ConflictError,
    PreconditionFailedError,
    RateLimitError,
    ServerError,
)

__all__ = [
    # Main clients
    "FilesClient",
    "AsyncFilesClient",
    "ClientConfig",
    "HttpExecutor",
    "AsyncHttpExecutor",

    # Requests, responses and polling
    "ApiRequest",
    "FormPart",
    "RequestMethod",
    "ResultType",
    "ApiResponse",
    "ResponseStatus",
    "classify_status",
    "DEFAULT_RETRY_DELAY",
    "UNKNOWN_PAGE_COUNT",
    "PollOutcome",
    "compute_delay",
    "extract_page_count",
    "poll",
    "poll_async",
    "AssetFetchParameters",
    "fetch_preview",
    "fetch_thumbnail",

    # Data models
    "FileInfo",
    "FileVersion",
    "FileLock",
    "FilePreview",
    "SharedLink",
    "Comment",
    "Task",
    "Collection",
    "PreflightCheck",
    "FileRequest",
    "FolderReference",
    "SharedLinkRequest",
    "SharedLinkAccess",
    "LockRequest",
    "FileLockRequest",
    "PreflightCheckRequest",

    # Exceptions
    "CloudFilesError",
    "ValidationError",
    "ConfigurationError",
    "NetworkError",
    "RequestTimeoutError",
    "ApiError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ConflictError",
    "PreconditionFailedError",
    "RateLimitError",
    "ServerError",
]
