"""
Response envelopes for CloudFiles SDK.

An ``ApiResponse`` pairs the raw status code and headers of one HTTP
response with its deserialized body. Classification into success,
processing or error depends on the status code alone.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Generic, Mapping, Optional, TypeVar

from requests.structures import CaseInsensitiveDict

T = TypeVar("T")

HTTP_ACCEPTED = 202


class ResponseStatus(Enum):
    """Classification of a response."""
    SUCCESS = "success"
    PROCESSING = "processing"
    ERROR = "error"


def classify_status(status_code: int) -> ResponseStatus:
    """202 means the asset is still being generated; other 2xx succeed."""
    if status_code == HTTP_ACCEPTED:
        return ResponseStatus.PROCESSING
    if 200 <= status_code < 300:
        return ResponseStatus.SUCCESS
    return ResponseStatus.ERROR


def freeze_headers(headers: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    """Return a read-only, case-insensitive view of ``headers``."""
    return MappingProxyType(CaseInsensitiveDict(headers or {}))


@dataclass(frozen=True)
class ApiResponse(Generic[T]):
    """Classified, header-accessible result of one API call."""

    status_code: int
    headers: Mapping[str, str] = field(default_factory=lambda: freeze_headers(None))
    body: Optional[T] = None
    error: Any = None

    def __post_init__(self):
        if not isinstance(self.headers, MappingProxyType):
            object.__setattr__(self, "headers", freeze_headers(self.headers))

    @property
    def status(self) -> ResponseStatus:
        return classify_status(self.status_code)

    @property
    def is_success(self) -> bool:
        return self.status is ResponseStatus.SUCCESS

    @property
    def is_processing(self) -> bool:
        return self.status is ResponseStatus.PROCESSING

    @property
    def is_error(self) -> bool:
        return self.status is ResponseStatus.ERROR

    @property
    def request_id(self) -> Optional[str]:
        return self.headers.get("X-Request-Id") or self.headers.get("request-id")

    @property
    def location(self) -> Optional[str]:
        return self.headers.get("Location")
