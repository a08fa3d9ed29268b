"""Exceptions raised by the Lark client."""

from typing import Optional


class LarkError(Exception):
    """Base class for all larksheets errors."""

    pass


class TransportError(LarkError):
    """Exception raised when a request fails at the network level."""

    def __init__(self, method: str, path: str, reason: str):
        self.method = method
        self.path = path
        super().__init__(f"http error: {method} {path} | {reason}")


class HTTPStatusError(LarkError):
    """Exception raised when the API answers with a status other than 200."""

    def __init__(self, status_code: int, body: bytes = b""):
        self.status_code = status_code
        self.body = body
        text = body.decode("utf-8", errors="replace") if body else ""
        super().__init__(f"http error: code= {status_code} | {text}")


class RemoteServiceError(LarkError):
    """Exception raised when the response envelope carries a non-zero code."""

    def __init__(self, code: int, msg: Optional[str] = None):
        self.code = code
        self.msg = msg or ""
        super().__init__(f"remote service error: code = {code} | {self.msg}")


class AuthenticationError(LarkError):
    """Exception raised when a tenant access token cannot be obtained."""

    pass


class UserNotFoundError(LarkError):
    """Exception raised when no user id matches an email."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(f"no user found for email '{email}'")
