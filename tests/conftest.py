"""Pytest configuration and shared fixtures."""

import json
from typing import Optional

import httpx
import pytest

from larksheets.auth import TOKEN_PATH
from larksheets.client import LarkClient
from larksheets.config import AppCredentials
from larksheets.transport import LarkTransport


class FakeLark:
    """In-memory stand-in for the Lark open platform.

    Token requests always succeed with ``self.token`` unless ``token_status``
    or ``token_body`` is overridden. Other requests answer from ``routes`` or
    with an empty success envelope.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], tuple[int, object]] = {}
        self.token = "t-initial"
        self.token_status = 200
        self.token_body: Optional[dict] = None
        self.fail_with: Optional[Exception] = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            raise self.fail_with
        if request.url.path == TOKEN_PATH:
            body = self.token_body
            if body is None:
                body = {"code": 0, "msg": "ok", "tenant_access_token": self.token, "expire": 7200}
            return httpx.Response(self.token_status, json=body)

        status, body = self.routes.get(
            (request.method, request.url.path),
            (200, {"code": 0, "msg": "success", "data": {}}),
        )
        if isinstance(body, (bytes, str)):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=body)

    def reply(self, method: str, path: str, body: object, status: int = 200):
        self.routes[(method, path)] = (status, body)

    @property
    def api_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path != TOKEN_PATH]

    @property
    def token_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == TOKEN_PATH]

    @property
    def last(self) -> httpx.Request:
        return self.api_requests[-1]

    def last_json(self) -> dict:
        return json.loads(self.last.content)


@pytest.fixture
def fake_lark() -> FakeLark:
    return FakeLark()


@pytest.fixture
def credentials() -> AppCredentials:
    return AppCredentials(app_id="cli_test", app_secret="secret-123")


@pytest.fixture
def transport(fake_lark: FakeLark) -> LarkTransport:
    transport = LarkTransport(http_transport=httpx.MockTransport(fake_lark.handler))
    yield transport
    transport.close()


@pytest.fixture
def lark_client(credentials: AppCredentials, transport: LarkTransport) -> LarkClient:
    """A client whose token refresher is not running."""
    client = LarkClient(credentials, transport=transport, auto_refresh=False)
    yield client
    client.close()
