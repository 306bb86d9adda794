"""
Data models for CloudFiles SDK.

Response models are built from API dictionaries with ``from_dict``;
request models serialize to the API's JSON shape with ``to_dict``.
"""

from datetime import datetime
from typing import Any, BinaryIO, Callable, Dict, Generic, List, Optional, TypeVar
from dataclasses import dataclass, field
from enum import Enum

from .utils import drop_none, format_datetime, parse_datetime

T = TypeVar("T")


class SharedLinkAccess(Enum):
    """Who can use a shared link."""
    OPEN = "open"
    COMPANY = "company"
    COLLABORATORS = "collaborators"


@dataclass
class UserReference:
    """Minimal user record embedded in other objects."""

    id: str
    name: Optional[str] = None
    login: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["UserReference"]:
        if not data:
            return None
        return cls(id=data["id"], name=data.get("name"), login=data.get("login"))


@dataclass
class FolderReference:
    """Parent folder of a file."""

    id: str
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["FolderReference"]:
        if not data:
            return None
        return cls(id=data["id"], name=data.get("name"))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id}


@dataclass
class SharedLink:
    """Shared link attached to a file."""

    url: str
    download_url: Optional[str] = None
    access: Optional[str] = None
    effective_access: Optional[str] = None
    unshared_at: Optional[datetime] = None
    is_password_enabled: bool = False
    download_count: int = 0
    preview_count: int = 0
    can_download: bool = True

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["SharedLink"]:
        if not data:
            return None
        permissions = data.get("permissions") or {}
        return cls(
            url=data["url"],
            download_url=data.get("download_url"),
            access=data.get("access"),
            effective_access=data.get("effective_access"),
            unshared_at=parse_datetime(data.get("unshared_at")),
            is_password_enabled=data.get("is_password_enabled", False),
            download_count=data.get("download_count", 0),
            preview_count=data.get("preview_count", 0),
            can_download=permissions.get("can_download", True),
        )

    @property
    def is_expired(self) -> bool:
        """Check if the shared link has expired."""
        if self.unshared_at is None:
            return False
        return datetime.now(self.unshared_at.tzinfo) > self.unshared_at


@dataclass
class FileLock:
    """Lock held on a file."""

    id: Optional[str] = None
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    is_download_prevented: bool = False
    created_by: Optional[UserReference] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["FileLock"]:
        if not data:
            return None
        return cls(
            id=data.get("id"),
            created_at=parse_datetime(data.get("created_at")),
            expires_at=parse_datetime(data.get("expires_at")),
            is_download_prevented=data.get("is_download_prevented", False),
            created_by=UserReference.from_dict(data.get("created_by")),
        )


@dataclass
class FileInfo:
    """Information about a file in cloud storage."""

    id: str
    name: Optional[str] = None
    etag: Optional[str] = None
    sequence_id: Optional[str] = None
    sha1: Optional[str] = None
    size: int = 0
    description: Optional[str] = None
    item_status: Optional[str] = None
    parent: Optional[FolderReference] = None
    shared_link: Optional[SharedLink] = None
    lock: Optional[FileLock] = None
    expiring_embed_link: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    trashed_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileInfo":
        """Create FileInfo from API response dictionary."""
        embed = data.get("expiring_embed_link") or {}
        return cls(
            id=data["id"],
            name=data.get("name"),
            etag=data.get("etag"),
            sequence_id=data.get("sequence_id"),
            sha1=data.get("sha1"),
            size=data.get("size", 0),
            description=data.get("description"),
            item_status=data.get("item_status"),
            parent=FolderReference.from_dict(data.get("parent")),
            shared_link=SharedLink.from_dict(data.get("shared_link")),
            lock=FileLock.from_dict(data.get("lock")),
            expiring_embed_link=embed.get("url"),
            tags=data.get("tags", []),
            created_at=parse_datetime(data.get("created_at")),
            modified_at=parse_datetime(data.get("modified_at")),
            trashed_at=parse_datetime(data.get("trashed_at")),
        )

    @property
    def is_trashed(self) -> bool:
        return self.item_status == "trashed"


@dataclass
class FileVersion:
    """Information about a specific version of a file."""

    id: str
    name: Optional[str] = None
    size: int = 0
    sha1: Optional[str] = None
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    trashed_at: Optional[datetime] = None
    modified_by: Optional[UserReference] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileVersion":
        """Create FileVersion from API response dictionary."""
        return cls(
            id=data["id"],
            name=data.get("name"),
            size=data.get("size", 0),
            sha1=data.get("sha1"),
            created_at=parse_datetime(data.get("created_at")),
            modified_at=parse_datetime(data.get("modified_at")),
            trashed_at=parse_datetime(data.get("trashed_at")),
            modified_by=UserReference.from_dict(data.get("modified_by")),
        )


@dataclass
class Comment:
    """A comment left on a file."""

    id: str
    message: Optional[str] = None
    is_reply_comment: bool = False
    created_by: Optional[UserReference] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Comment":
        return cls(
            id=data["id"],
            message=data.get("message"),
            is_reply_comment=data.get("is_reply_comment", False),
            created_by=UserReference.from_dict(data.get("created_by")),
            created_at=parse_datetime(data.get("created_at")),
        )


@dataclass
class Task:
    """A review or completion task attached to a file."""

    id: str
    action: Optional[str] = None
    message: Optional[str] = None
    is_completed: bool = False
    due_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Task":
        return cls(
            id=data["id"],
            action=data.get("action"),
            message=data.get("message"),
            is_completed=data.get("is_completed", False),
            due_at=parse_datetime(data.get("due_at")),
            created_at=parse_datetime(data.get("created_at")),
        )


@dataclass
class Collection(Generic[T]):
    """A page of items returned by a list endpoint."""

    entries: List[T] = field(default_factory=list)
    total_count: int = 0
    offset: int = 0
    limit: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], item_factory: Callable[[Dict[str, Any]], T]) -> "Collection[T]":
        entries = [item_factory(entry) for entry in data.get("entries", [])]
        return cls(
            entries=entries,
            total_count=data.get("total_count", len(entries)),
            offset=data.get("offset", 0),
            limit=data.get("limit"),
        )


@dataclass
class PreflightCheck:
    """Result of checking whether an upload would be accepted."""

    success: bool = False
    upload_url: Optional[str] = None
    upload_token: Optional[str] = None
    error: Any = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PreflightCheck":
        data = data or {}
        return cls(upload_url=data.get("upload_url"), upload_token=data.get("upload_token"))


@dataclass
class FilePreview:
    """
    One rendered page of a document preview.

    ``current_page`` always echoes the requested page. The stream and the
    total page count are only set when the server returned 200.
    """

    current_page: int
    returned_status_code: int
    preview_stream: Optional[BinaryIO] = None
    total_pages: int = 0


@dataclass
class FileRequest:
    """Attributes sent when creating, updating, copying or restoring a file."""

    id: Optional[str] = None
    name: Optional[str] = None
    parent: Optional[FolderReference] = None
    description: Optional[str] = None
    tags: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return drop_none({
            "id": self.id,
            "name": self.name,
            "parent": self.parent.to_dict() if self.parent else None,
            "description": self.description,
            "tags": self.tags,
        })


@dataclass
class SharedLinkRequest:
    """Settings for a new shared link."""

    access: Optional[SharedLinkAccess] = None
    password: Optional[str] = None
    unshared_at: Optional[datetime] = None
    can_download: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        permissions = None
        if self.can_download is not None:
            permissions = {"can_download": self.can_download}
        return drop_none({
            "access": self.access.value if self.access else None,
            "password": self.password,
            "unshared_at": format_datetime(self.unshared_at),
            "permissions": permissions,
        })


@dataclass
class LockRequest:
    expires_at: Optional[datetime] = None
    is_download_prevented: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return drop_none({
            "type": "lock",
            "expires_at": format_datetime(self.expires_at),
            "is_download_prevented": self.is_download_prevented,
        })


@dataclass
class FileLockRequest:
    """Body of a lock update."""

    lock: Optional[LockRequest] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"lock": self.lock.to_dict() if self.lock else None}


@dataclass
class PreflightCheckRequest:
    """Describes an upload to validate before sending any bytes."""

    name: Optional[str] = None
    size: int = 0
    parent: Optional[FolderReference] = None

    def to_dict(self) -> Dict[str, Any]:
        return drop_none({
            "name": self.name,
            "size": self.size,
            "parent": self.parent.to_dict() if self.parent else None,
        })
