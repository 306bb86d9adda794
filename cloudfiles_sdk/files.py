"""
Request builders for file operations.

Each ``*_request`` function validates its arguments and returns an
``ApiRequest``; none of them touch the network. The ``parse_*`` functions
turn the executor's responses into models, raising ``ApiError`` for error
statuses. The sync and async clients pair the two.
"""

import json
from datetime import timedelta
from typing import Any, BinaryIO, Callable, Dict, List, Optional, TypeVar, Union

from .exceptions import ApiError
from .models import (
    Collection, FileInfo, FileLock, FileLockRequest, FileRequest,
    PreflightCheck, PreflightCheckRequest, SharedLinkRequest,
)
from .request import ApiRequest, FormPart, RequestMethod, ResultType
from .response import ApiResponse
from .utils import guess_mime_type, hex_digest, require_not_blank, require_not_none

T = TypeVar("T")

REDIRECT_STATUSES = (301, 302, 303, 307, 308)
PREFLIGHT_REJECTIONS = (400, 403, 409)

FIELDS_PARAM = "fields"
IF_MATCH_HEADER = "If-Match"
CONTENT_MD5_HEADER = "Content-MD5"

CONTENT_PATH = "{file_id}/content"
VERSIONS_PATH = "{file_id}/versions"
COPY_PATH = "{file_id}/copy"
COMMENTS_PATH = "{file_id}/comments"
TRASH_PATH = "{file_id}/trash"
TASKS_PATH = "{file_id}/tasks"

LOCK_FIELD = "lock"
EXPIRING_EMBED_LINK_FIELD = "expiring_embed_link"

Timeout = Optional[Union[float, timedelta]]


def _seconds(timeout: Timeout) -> Optional[float]:
    if isinstance(timeout, timedelta):
        return timeout.total_seconds()
    return timeout


def _serialize(data) -> str:
    return json.dumps(data)


def information_request(files_endpoint: str, file_id: str, fields: Optional[List[str]] = None) -> ApiRequest:
    require_not_blank(file_id, "file_id")
    return ApiRequest(files_endpoint, file_id).param(FIELDS_PARAM, fields)


def download_uri_request(files_endpoint: str, file_id: str, version_id: Optional[str] = None) -> ApiRequest:
    """Ask for the content location without following the redirect."""
    require_not_blank(file_id, "file_id")
    return (
        ApiRequest(files_endpoint, CONTENT_PATH.format(file_id=file_id), follow_redirect=False)
        .param("version", version_id)
    )


def download_request(download_uri: str, timeout: Timeout = None) -> ApiRequest:
    require_not_blank(download_uri, "download_uri")
    return ApiRequest(download_uri, timeout=_seconds(timeout), result_type=ResultType.STREAM)


def _require_parent(file_request: FileRequest, name: str) -> None:
    require_not_none(file_request.parent, f"{name}.parent")
    require_not_blank(file_request.parent.id, f"{name}.parent.id")


def preflight_check_request(files_endpoint: str, preflight_request: PreflightCheckRequest) -> ApiRequest:
    require_not_none(preflight_request, "preflight_request")
    require_not_blank(preflight_request.name, "preflight_request.name")
    require_not_none(preflight_request.parent, "preflight_request.parent")
    require_not_blank(preflight_request.parent.id, "preflight_request.parent.id")

    return (
        ApiRequest(files_endpoint, "content")
        .with_method(RequestMethod.OPTIONS)
        .with_payload(_serialize(preflight_request.to_dict()))
    )


def preflight_check_new_version_request(
    files_endpoint: str, file_id: str, preflight_request: PreflightCheckRequest
) -> ApiRequest:
    """
    Check whether a new version of ``file_id`` would be accepted.

    A zero size would always pass the check, so it is rejected.
    """
    require_not_blank(file_id, "file_id")
    require_not_none(preflight_request, "preflight_request")
    if preflight_request.size <= 0:
        raise ValueError("Size in bytes must be greater than zero for a new version preflight check")

    return (
        ApiRequest(files_endpoint, CONTENT_PATH.format(file_id=file_id))
        .with_method(RequestMethod.OPTIONS)
        .with_payload(_serialize(preflight_request.to_dict()))
    )


def upload_request(
    upload_endpoint: str,
    file_request: FileRequest,
    stream: BinaryIO,
    fields: Optional[List[str]] = None,
    timeout: Timeout = None,
    content_md5: Optional[bytes] = None,
    rewind: bool = True,
    upload_uri: Optional[str] = None,
) -> ApiRequest:
    """
    Multipart upload of a new file.

    The body has a ``metadata`` JSON part and a ``file`` part. A digest
    passed as ``content_md5`` is sent hex-encoded so the server can verify
    the bytes it received.
    """
    require_not_none(stream, "stream")
    require_not_none(file_request, "file_request")
    require_not_blank(file_request.name, "file_request.name")
    _require_parent(file_request, "file_request")

    if rewind:
        stream.seek(0)

    request = (
        ApiRequest(upload_uri or upload_endpoint, None if upload_uri else "content",
                   method=RequestMethod.POST, timeout=_seconds(timeout))
        .param(FIELDS_PARAM, fields)
        .form_part(FormPart(name="metadata", value=_serialize(file_request.to_dict())))
        .form_part(FormPart(name="file", value=stream, filename=file_request.name,
                            content_type=guess_mime_type(file_request.name)))
    )
    if content_md5 is not None:
        request.header(CONTENT_MD5_HEADER, hex_digest(content_md5))
    return request


def upload_new_version_request(
    upload_endpoint: str,
    file_id: str,
    file_name: str,
    stream: BinaryIO,
    etag: Optional[str] = None,
    fields: Optional[List[str]] = None,
    timeout: Timeout = None,
    content_md5: Optional[bytes] = None,
    rewind: bool = True,
    upload_uri: Optional[str] = None,
) -> ApiRequest:
    """Multipart upload replacing the content of ``file_id``."""
    require_not_none(stream, "stream")
    require_not_blank(file_name, "file_name")
    if upload_uri is None:
        require_not_blank(file_id, "file_id")

    if rewind:
        stream.seek(0)

    request = (
        ApiRequest(upload_uri or upload_endpoint,
                   None if upload_uri else CONTENT_PATH.format(file_id=file_id),
                   method=RequestMethod.POST, timeout=_seconds(timeout))
        .header(IF_MATCH_HEADER, etag)
        .param(FIELDS_PARAM, fields)
        .form_part(FormPart(name="filename", value=stream, filename=file_name,
                            content_type=guess_mime_type(file_name)))
    )
    if content_md5 is not None:
        request.header(CONTENT_MD5_HEADER, hex_digest(content_md5))
    return request


def versions_request(files_endpoint: str, file_id: str, fields: Optional[List[str]] = None) -> ApiRequest:
    require_not_blank(file_id, "file_id")
    return ApiRequest(files_endpoint, VERSIONS_PATH.format(file_id=file_id)).param(FIELDS_PARAM, fields)


def update_information_request(
    files_endpoint: str, file_request: FileRequest, etag: Optional[str] = None, fields: Optional[List[str]] = None
) -> ApiRequest:
    require_not_none(file_request, "file_request")
    require_not_blank(file_request.id, "file_request.id")

    return (
        ApiRequest(files_endpoint, file_request.id)
        .with_method(RequestMethod.PUT)
        .header(IF_MATCH_HEADER, etag)
        .param(FIELDS_PARAM, fields)
        .with_payload(_serialize(file_request.to_dict()))
    )


def delete_request(files_endpoint: str, file_id: str, etag: Optional[str] = None) -> ApiRequest:
    require_not_blank(file_id, "file_id")
    return (
        ApiRequest(files_endpoint, file_id)
        .with_method(RequestMethod.DELETE)
        .header(IF_MATCH_HEADER, etag)
    )


def copy_request(files_endpoint: str, file_request: FileRequest, fields: Optional[List[str]] = None) -> ApiRequest:
    require_not_none(file_request, "file_request")
    require_not_blank(file_request.id, "file_request.id")
    _require_parent(file_request, "file_request")

    body = file_request.to_dict()
    body.pop("id", None)
    return (
        ApiRequest(files_endpoint, COPY_PATH.format(file_id=file_request.id))
        .with_method(RequestMethod.POST)
        .param(FIELDS_PARAM, fields)
        .with_payload(_serialize(body))
    )


def create_shared_link_request(
    files_endpoint: str, file_id: str, shared_link_request: SharedLinkRequest, fields: Optional[List[str]] = None
) -> ApiRequest:
    require_not_blank(file_id, "file_id")
    require_not_none(shared_link_request, "shared_link_request")

    return (
        ApiRequest(files_endpoint, file_id)
        .with_method(RequestMethod.PUT)
        .param(FIELDS_PARAM, fields)
        .with_payload(_serialize({"shared_link": shared_link_request.to_dict()}))
    )


def delete_shared_link_request(files_endpoint: str, file_id: str) -> ApiRequest:
    require_not_blank(file_id, "file_id")
    return (
        ApiRequest(files_endpoint, file_id)
        .with_method(RequestMethod.PUT)
        .with_payload(_serialize({"shared_link": None}))
    )


def comments_request(files_endpoint: str, file_id: str, fields: Optional[List[str]] = None) -> ApiRequest:
    require_not_blank(file_id, "file_id")
    return ApiRequest(files_endpoint, COMMENTS_PATH.format(file_id=file_id)).param(FIELDS_PARAM, fields)


def preview_link_request(files_endpoint: str, file_id: str) -> ApiRequest:
    return information_request(files_endpoint, file_id, [EXPIRING_EMBED_LINK_FIELD])


def trashed_request(files_endpoint: str, file_id: str, fields: Optional[List[str]] = None) -> ApiRequest:
    require_not_blank(file_id, "file_id")
    return ApiRequest(files_endpoint, TRASH_PATH.format(file_id=file_id)).param(FIELDS_PARAM, fields)


def restore_trashed_request(
    files_endpoint: str, file_request: FileRequest, fields: Optional[List[str]] = None
) -> ApiRequest:
    """Restore a trashed file, optionally under a new name or parent."""
    require_not_none(file_request, "file_request")
    require_not_blank(file_request.id, "file_request.id")
    require_not_blank(file_request.name, "file_request.name")

    return (
        ApiRequest(files_endpoint, file_request.id)
        .with_method(RequestMethod.POST)
        .param(FIELDS_PARAM, fields)
        .with_payload(_serialize(file_request.to_dict()))
    )


def purge_trashed_request(files_endpoint: str, file_id: str) -> ApiRequest:
    require_not_blank(file_id, "file_id")
    return ApiRequest(files_endpoint, TRASH_PATH.format(file_id=file_id)).with_method(RequestMethod.DELETE)


def lock_request(files_endpoint: str, file_id: str) -> ApiRequest:
    return information_request(files_endpoint, file_id, [LOCK_FIELD])


def update_lock_request(files_endpoint: str, lock_request: FileLockRequest, file_id: str) -> ApiRequest:
    require_not_none(lock_request, "lock_request")
    require_not_none(lock_request.lock, "lock_request.lock")
    require_not_blank(file_id, "file_id")

    return (
        ApiRequest(files_endpoint, file_id)
        .with_method(RequestMethod.PUT)
        .param(FIELDS_PARAM, LOCK_FIELD)
        .with_payload(_serialize(lock_request.to_dict()))
    )


def unlock_request(files_endpoint: str, file_id: str) -> ApiRequest:
    require_not_blank(file_id, "file_id")
    return (
        ApiRequest(files_endpoint, file_id)
        .with_method(RequestMethod.PUT)
        .with_payload(_serialize({"lock": None}))
    )


def tasks_request(files_endpoint: str, file_id: str, fields: Optional[List[str]] = None) -> ApiRequest:
    require_not_blank(file_id, "file_id")
    return ApiRequest(files_endpoint, TASKS_PATH.format(file_id=file_id)).param(FIELDS_PARAM, fields)


def raise_for_response(response: ApiResponse) -> ApiResponse:
    """Raise the matching ``ApiError`` for an error response."""
    if response.is_error:
        raise ApiError.from_response(response)
    return response


def parse_file(response: ApiResponse) -> Optional[FileInfo]:
    raise_for_response(response)
    if not response.body:
        return None
    return FileInfo.from_dict(response.body)


def parse_uploaded_file(response: ApiResponse) -> Optional[FileInfo]:
    """Uploads return a collection holding the single uploaded file."""
    raise_for_response(response)
    entries = (response.body or {}).get("entries") or []
    if not entries:
        return None
    return FileInfo.from_dict(entries[0])


def parse_collection(response: ApiResponse, item_factory: Callable[[Dict[str, Any]], T]) -> Collection[T]:
    raise_for_response(response)
    return Collection.from_dict(response.body or {}, item_factory)


def parse_download_uri(response: ApiResponse) -> Optional[str]:
    if response.status_code in REDIRECT_STATUSES or response.is_success:
        return response.location
    raise ApiError.from_response(response)


def parse_preflight(response: ApiResponse) -> PreflightCheck:
    """Rejections are reported through ``success`` and ``error`` rather than raised."""
    if response.is_error and response.status_code not in PREFLIGHT_REJECTIONS:
        raise ApiError.from_response(response)
    body = response.body if isinstance(response.body, dict) else None
    check = PreflightCheck.from_dict(body)
    check.success = response.is_success
    check.error = response.error
    return check


def parse_success(response: ApiResponse) -> bool:
    raise_for_response(response)
    return response.is_success


def parse_lock(response: ApiResponse) -> Optional[FileLock]:
    file_info = parse_file(response)
    return file_info.lock if file_info else None


def parse_preview_link(response: ApiResponse) -> Optional[str]:
    file_info = parse_file(response)
    return file_info.expiring_embed_link if file_info else None
