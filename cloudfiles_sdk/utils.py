"""
Utility functions for CloudFiles SDK.

Argument validation, digest helpers and small data helpers shared by the
request builders and clients.
"""

import hashlib
import mimetypes
from datetime import datetime
from typing import Any, BinaryIO, Dict, Iterator, Optional

from .exceptions import ValidationError


def require_not_none(value: Any, name: str) -> Any:
    """Raise ``ValidationError`` if ``value`` is None."""
    if value is None:
        raise ValidationError(f"{name} is required", field=name)
    return value


def require_not_blank(value: Optional[str], name: str) -> str:
    """Raise ``ValidationError`` if ``value`` is None, empty or whitespace."""
    if value is None or not str(value).strip():
        raise ValidationError(f"{name} must not be blank", field=name)
    return value


DEFAULT_CHUNK_SIZE = 8 * 1024 * 1024
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def chunk_file(file_obj: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
    """Yield the rest of ``file_obj`` in blocks of at most ``chunk_size`` bytes."""
    return iter(lambda: file_obj.read(chunk_size), b"")


def calculate_sha1(file_obj: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE) -> bytes:
    """
    SHA-1 digest of a seekable stream, suitable for ``content_md5`` on uploads.

    The stream is read from the start and rewound afterwards.
    """
    file_obj.seek(0)
    hasher = hashlib.sha1()
    for chunk in chunk_file(file_obj, chunk_size):
        hasher.update(chunk)
    file_obj.seek(0)
    return hasher.digest()


def hex_digest(digest: bytes) -> str:
    """Lower-case hex encoding of a raw digest."""
    return digest.hex()


def guess_mime_type(filename: Optional[str]) -> str:
    """Content type sent with an uploaded file part, from its extension."""
    if not filename:
        return DEFAULT_CONTENT_TYPE
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or DEFAULT_CONTENT_TYPE


def parse_datetime(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp from an API response."""
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    """Remove keys whose value is None."""
    return {k: v for k, v in data.items() if v is not None}
