"""
Request descriptors for CloudFiles SDK.

An ``ApiRequest`` is the fully specified, not-yet-sent form of one API call.
Builders in ``files`` and ``assets`` produce them; executors send them.
Executors never modify a request, so the same object can be submitted
again when polling.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, BinaryIO, Dict, List, Optional, Union


class RequestMethod(str, Enum):
    """HTTP verbs used by the API."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"


class ResultType(Enum):
    """How the executor should hand back a successful body."""
    JSON = "json"
    STREAM = "stream"


@dataclass
class FormPart:
    """One part of a multipart/form-data body."""

    name: str
    value: Union[str, bytes, BinaryIO]
    filename: Optional[str] = None
    content_type: Optional[str] = None

    @property
    def is_file(self) -> bool:
        return self.filename is not None


@dataclass
class ApiRequest:
    """
    Descriptor for a single API call.

    Query parameters and headers given as ``None`` are dropped rather than
    sent empty. A request carries at most one kind of body: a JSON payload
    or a list of multipart form parts.
    """

    host: str
    path: Optional[str] = None
    method: RequestMethod = RequestMethod.GET
    parameters: Dict[str, str] = field(default_factory=dict)
    headers: Dict[str, str] = field(default_factory=dict)
    payload: Optional[str] = None
    content_type: Optional[str] = None
    form_parts: List[FormPart] = field(default_factory=list)
    timeout: Optional[float] = None
    follow_redirect: bool = True
    throttle: bool = True
    result_type: ResultType = ResultType.JSON

    @property
    def url(self) -> str:
        if not self.path:
            return self.host
        return f"{self.host.rstrip('/')}/{self.path.lstrip('/')}"

    @property
    def is_multipart(self) -> bool:
        return bool(self.form_parts)

    def with_method(self, method: RequestMethod) -> "ApiRequest":
        self.method = method
        return self

    def param(self, name: str, value: Any) -> "ApiRequest":
        """Add a query parameter; ``None`` values are omitted."""
        if value is None:
            self.parameters.pop(name, None)
            return self
        if isinstance(value, (list, tuple)):
            if not value:
                return self
            value = ",".join(str(v) for v in value)
        elif isinstance(value, bool):
            value = str(value).lower()
        self.parameters[name] = str(value)
        return self

    def header(self, name: str, value: Optional[str]) -> "ApiRequest":
        """Add a header; ``None`` values are omitted."""
        if value is None:
            return self
        self.headers[name] = str(value)
        return self

    def with_payload(self, payload: str, content_type: str = "application/json") -> "ApiRequest":
        if self.form_parts:
            raise ValueError("Request already has multipart form parts; a JSON payload cannot be added")
        self.payload = payload
        self.content_type = content_type
        return self

    def form_part(self, part: FormPart) -> "ApiRequest":
        if self.payload is not None:
            raise ValueError("Request already has a JSON payload; form parts cannot be added")
        self.form_parts.append(part)
        return self
