"""Pooled HTTP transport for the Lark open platform."""

import json
import logging
from typing import Any, Callable, Mapping, Optional

import httpx

from .config import Settings
from .errors import TransportError
from .models import to_payload

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


class LarkTransport:
    """Shared, connection-pooled HTTP client that signs requests with a bearer token.

    Every helper returns ``(status_code, body)`` and leaves status and envelope
    checks to the caller. Network failures and timeouts raise TransportError.
    """

    def __init__(
        self,
        base_url: str = "https://open.feishu.cn",
        timeout: float = 5.0,
        max_connections: int = 100,
        keepalive_expiry: float = 60.0,
        token_provider: Optional[Callable[[], str]] = None,
        http_transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url
        self.token_provider = token_provider
        self._client = httpx.Client(
            base_url=base_url,
            timeout=httpx.Timeout(timeout),
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max_connections,
                keepalive_expiry=keepalive_expiry,
            ),
            transport=http_transport,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, http_transport: Optional[httpx.BaseTransport] = None
    ) -> "LarkTransport":
        return cls(
            base_url=settings.base_url,
            timeout=settings.timeout_seconds,
            max_connections=settings.max_connections,
            keepalive_expiry=settings.keepalive_expiry_seconds,
            http_transport=http_transport,
        )

    def _headers(self, authenticated: bool, content_type: str) -> dict[str, str]:
        headers = {"Content-Type": content_type}
        if authenticated and self.token_provider is not None:
            headers["Authorization"] = f"Bearer {self.token_provider()}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        payload: Optional[Mapping[str, Any]] = None,
        params: Optional[Mapping[str, str]] = None,
        authenticated: bool = True,
        content_type: str = JSON_CONTENT_TYPE,
    ) -> tuple[int, bytes]:
        """Send one request and return the status code and raw body."""
        content = None
        if method != "GET":
            # An empty payload is still sent as a JSON object
            content = json.dumps(to_payload(dict(payload or {})), ensure_ascii=False).encode("utf-8")

        logger.debug(f"{method} {path}")
        try:
            response = self._client.request(
                method,
                path,
                content=content,
                params=dict(params) if params else None,
                headers=self._headers(authenticated, content_type),
            )
        except httpx.HTTPError as e:
            raise TransportError(method, path, str(e) or type(e).__name__) from e

        return response.status_code, response.content

    def get(self, path: str, params: Optional[Mapping[str, str]] = None) -> tuple[int, bytes]:
        return self.request("GET", path, params=params)

    def post(self, path: str, payload: Optional[Mapping[str, Any]] = None) -> tuple[int, bytes]:
        return self.request("POST", path, payload)

    def put(self, path: str, payload: Optional[Mapping[str, Any]] = None) -> tuple[int, bytes]:
        return self.request("PUT", path, payload)

    def delete(self, path: str, payload: Optional[Mapping[str, Any]] = None) -> tuple[int, bytes]:
        return self.request("DELETE", path, payload)

    def close(self):
        """Release pooled connections."""
        self._client.close()

    def __enter__(self) -> "LarkTransport":
        return self

    def __exit__(self, *exc_info):
        self.close()
