"""
Client configuration for CloudFiles SDK.

Values passed to ``ClientConfig`` win over ``CLOUDFILES_*`` environment
variables, which win over the defaults below.
"""

from typing import Any, Optional

from pydantic import Field, ValidationError as PydanticValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import __version__
from .exceptions import ConfigurationError
from .polling import DEFAULT_RETRY_DELAY

DEFAULT_BASE_URL = "https://api.cloudfiles.io/2.0/"
DEFAULT_UPLOAD_URL = "https://upload.cloudfiles.io/api/2.0/"

ENV_PREFIX = "CLOUDFILES_"


class ClientConfig(BaseSettings):
    """
    Settings shared by a client and its executor.

    Every field can also be set through the environment, e.g.
    ``CLOUDFILES_ACCESS_TOKEN`` or ``CLOUDFILES_MAX_POLL_ATTEMPTS``.

    Args:
        access_token: Bearer token
        base_url: API root for metadata requests
        upload_url: API root for uploads
        timeout: Default per-request timeout in seconds
        max_retries: Connection-level retries performed by the transport
        max_concurrent_requests: Limit applied to throttled requests
        default_retry_delay_ms: Poll delay used when no Retry-After is sent
        max_poll_attempts: Optional cap on submissions while an asset is processing
        as_user: Perform requests on behalf of this user id
        suppress_notifications: Ask the server not to send notifications
        user_agent: User-Agent header value
    """

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, case_sensitive=False)

    access_token: Optional[str] = Field(default=None, validate_default=True)
    base_url: str = DEFAULT_BASE_URL
    upload_url: str = DEFAULT_UPLOAD_URL
    timeout: float = Field(default=30.0, gt=0)
    max_retries: int = Field(default=3, ge=0)
    max_concurrent_requests: int = Field(default=10, ge=1)
    default_retry_delay_ms: int = Field(default=DEFAULT_RETRY_DELAY, ge=0)
    max_poll_attempts: Optional[int] = Field(default=None, ge=1)
    as_user: Optional[str] = None
    suppress_notifications: bool = False
    user_agent: str = f"CloudFiles-Python-SDK/{__version__}"

    def __init__(self, **values: Any):
        try:
            super().__init__(**values)
        except PydanticValidationError as e:
            error = e.errors()[0]
            config_key = ".".join(str(part) for part in error["loc"]) or None
            raise ConfigurationError(
                f"Invalid configuration for {config_key}: {error['msg']}",
                config_key=config_key,
            ) from e

    @field_validator("access_token")
    @classmethod
    def _require_token(cls, value: Optional[str]) -> str:
        if not value or not value.strip():
            raise ValueError(f"Access token is required. Provide it as parameter or {ENV_PREFIX}ACCESS_TOKEN env var.")
        return value

    @field_validator("base_url", "upload_url")
    @classmethod
    def _trailing_slash(cls, value: str) -> str:
        return value.rstrip("/") + "/"

    @property
    def files_endpoint(self) -> str:
        return f"{self.base_url}files/"

    @property
    def upload_endpoint(self) -> str:
        return f"{self.upload_url}files/"
