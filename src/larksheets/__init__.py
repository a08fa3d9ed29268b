"""Lark open platform client for spreadsheets and user lookup."""

from .auth import TokenManager
from .client import LarkClient, check_response
from .config import AppCredentials, Settings, settings
from .errors import (
    AuthenticationError,
    HTTPStatusError,
    LarkError,
    RemoteServiceError,
    TransportError,
    UserNotFoundError,
)
from .transport import LarkTransport

__version__ = "0.1.0"

__all__ = [
    "LarkClient",
    "LarkTransport",
    "TokenManager",
    "check_response",
    "AppCredentials",
    "Settings",
    "settings",
    "LarkError",
    "TransportError",
    "HTTPStatusError",
    "RemoteServiceError",
    "AuthenticationError",
    "UserNotFoundError",
]
