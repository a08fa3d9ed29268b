"""Tenant access token management."""

import logging
import threading
from typing import Optional

from pydantic import ValidationError

from .config import AppCredentials
from .errors import AuthenticationError, LarkError
from .models import TokenResponse
from .transport import LarkTransport

logger = logging.getLogger(__name__)

TOKEN_PATH = "/open-apis/auth/v3/tenant_access_token/internal"
DEFAULT_REFRESH_INTERVAL = 300.0  # 5 minutes


class TokenManager:
    """Holds the tenant access token and keeps it fresh.

    A token is fetched synchronously on construction, so a client that was
    built successfully always has one. A daemon thread then re-fetches it
    every ``refresh_interval`` seconds until ``stop()`` is called. A failed
    background refresh is logged and the previous token stays in use until
    the next tick.
    """

    def __init__(
        self,
        credentials: Optional[AppCredentials],
        transport: LarkTransport,
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        auto_start: bool = True,
    ):
        if credentials is None:
            raise ValueError("Lark app credentials are required")
        self.credentials = credentials
        self.transport = transport
        self.refresh_interval = refresh_interval

        self._lock = threading.Lock()
        self._token: Optional[str] = None
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.refresh()
        if auto_start:
            self.start()

    @property
    def token(self) -> str:
        with self._lock:
            return self._token or ""

    def get_token(self) -> str:
        return self.token

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def refresh(self) -> str:
        """Fetch a new token and return the one now in use.

        Raises:
            AuthenticationError: If the request fails, the endpoint reports an
                error, or no token has been issued yet.
        """
        try:
            status, body = self.transport.request(
                "POST",
                TOKEN_PATH,
                {
                    "app_id": self.credentials.app_id,
                    "app_secret": self.credentials.app_secret,
                },
                authenticated=False,
                content_type="application/json; charset=utf-8",
            )
        except LarkError as e:
            raise AuthenticationError(f"Failed to request tenant access token: {e}") from e

        if status != 200:
            raise AuthenticationError(f"Token endpoint returned HTTP {status}")

        try:
            response = TokenResponse.model_validate_json(body)
        except ValidationError as e:
            raise AuthenticationError(f"Malformed token endpoint response: {e}") from e
        if response.code != 0:
            raise AuthenticationError(
                f"Token endpoint error: code = {response.code} | {response.msg}"
            )
        new_token = response.tenant_access_token

        with self._lock:
            if new_token:
                self._token = new_token
            elif self._token is None:
                raise AuthenticationError("Token endpoint returned no tenant_access_token")
            else:
                logger.warning("Token endpoint returned no token, keeping the current one")
            current = self._token

        logger.debug("Tenant access token refreshed")
        return current

    def start(self):
        """Start the background refresher if it is not already running."""
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="lark-token-refresher", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = None):
        """Stop the background refresher."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self):
        while not self._stop.wait(self.refresh_interval):
            try:
                self.refresh()
            except LarkError:
                logger.exception("Tenant access token refresh failed, keeping the previous token")

    def __enter__(self) -> "TokenManager":
        self.start()
        return self

    def __exit__(self, *exc_info):
        self.stop()
