"""
Authentication headers for CloudFiles SDK.

The SDK does not obtain or refresh tokens. It attaches a caller-supplied
bearer token, plus the optional impersonation and notification headers,
to every request an executor sends.
"""

from typing import Dict, Optional

from .exceptions import ConfigurationError

AS_USER_HEADER = "As-User"
NOTIFICATIONS_HEADER = "X-Notifications"


class AuthManager:
    """
    Builds the default headers for authenticated requests.

    Args:
        access_token: Bearer token for the Authorization header
        as_user: Optional user id to act on behalf of
        suppress_notifications: Ask the server not to notify collaborators
    """

    def __init__(self, access_token: str, as_user: Optional[str] = None, suppress_notifications: bool = False):
        if not access_token or not access_token.strip():
            raise ConfigurationError("Access token is required for authentication", config_key="access_token")

        self.access_token = access_token
        self.as_user = as_user
        self.suppress_notifications = suppress_notifications

    def get_auth_headers(self) -> Dict[str, str]:
        headers = {"Authorization": f"Bearer {self.access_token}"}
        if self.as_user:
            headers[AS_USER_HEADER] = self.as_user
        if self.suppress_notifications:
            headers[NOTIFICATIONS_HEADER] = "off"
        return headers

    def update_token(self, access_token: str) -> None:
        """Swap in a token obtained elsewhere."""
        if not access_token or not access_token.strip():
            raise ConfigurationError("Access token is required for authentication", config_key="access_token")
        self.access_token = access_token

    @classmethod
    def from_config(cls, config) -> "AuthManager":
        return cls(config.access_token, config.as_user, config.suppress_notifications)
