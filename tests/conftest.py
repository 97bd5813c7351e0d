"""Shared fixtures for tests."""

from __future__ import annotations

import datetime
import json
import threading
import time
from typing import Any

import pytest

from vault_appid_client.auth.credentials import Credentials
from vault_appid_client.auth.session import LoginSession, build_login_request
from vault_appid_client.config import ClientConfig, TransportConfig
from vault_appid_client.errors import TransportError
from vault_appid_client.transport.base import LoginRequest, TransportResponse

APP_ID = "01bd2fe7-e5ab-47c8-ad48-9888ae6348a5"
USER_ID = "0ecd7b5d-4885-45c1-a03f-5949e485c6bf"


def login_reply(token: str, lease_duration: int = 3600, status_code: int = 200) -> TransportResponse:
    """A canned App-ID login reply."""
    return TransportResponse(
        status_code=status_code,
        text=json.dumps({
            "lease_id": "",
            "renewable": False,
            "lease_duration": 0,
            "data": None,
            "auth": {
                "client_token": token,
                "policies": ["default", "app-policy"],
                "lease_duration": lease_duration,
                "renewable": True,
                "metadata": {"app-id": APP_ID, "user-id": USER_ID},
            },
        }),
    )


def error_reply(status_code: int, *errors: str) -> TransportResponse:
    return TransportResponse(status_code=status_code, text=json.dumps({"errors": list(errors)}))


class FakeClock:
    def __init__(self) -> None:
        self.current = datetime.datetime(2025, 1, 1, tzinfo=datetime.UTC)

    def __call__(self) -> datetime.datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += datetime.timedelta(seconds=seconds)


class FakeTransport:
    """In-memory ``Transport`` that stores secrets in a dict.

    Login replies are taken from ``replies`` in order; once the queue is
    empty each login issues a fresh token with ``lease_duration`` seconds.
    """

    def __init__(self, lease_duration: int = 3600, send_delay: float = 0.0) -> None:
        self.replies: list[TransportResponse] = []
        self.lease_duration = lease_duration
        self.send_delay = send_delay
        self.login_requests: list[LoginRequest] = []
        self.tokens_installed: list[str] = []
        self.secrets: dict[str, dict[str, Any]] = {}
        self.failure: Exception | None = None
        self.closed = False
        self._lock = threading.Lock()

    @property
    def login_calls(self) -> int:
        return len(self.login_requests)

    def send(self, request: LoginRequest) -> TransportResponse:
        if self.send_delay:
            time.sleep(self.send_delay)
        with self._lock:
            self.login_requests.append(request)
            if self.replies:
                return self.replies.pop(0)
            return login_reply(f"s.token-{len(self.login_requests)}", self.lease_duration)

    def set_token(self, token: str) -> None:
        self.tokens_installed.append(token)

    def list(self, path: str) -> dict[str, Any] | None:
        self._maybe_fail("list", path)
        prefix = path.rstrip("/") + "/"
        keys = sorted(p[len(prefix):] for p in self.secrets if p.startswith(prefix))
        return {"keys": keys} if keys else None

    def read(self, path: str) -> dict[str, Any] | None:
        self._maybe_fail("read", path)
        stored = self.secrets.get(path)
        return dict(stored) if stored is not None else None

    def write(self, path: str, data: dict[str, Any]) -> None:
        self._maybe_fail("write", path)
        self.secrets[path] = dict(data)

    def delete(self, path: str) -> None:
        self._maybe_fail("delete", path)
        self.secrets.pop(path, None)

    def close(self) -> None:
        self.closed = True

    def _maybe_fail(self, operation: str, path: str) -> None:
        if self.failure is not None:
            raise TransportError(f"{operation} failed: {self.failure}", operation, path) from self.failure


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def transport_config() -> TransportConfig:
    return TransportConfig(address="https://vault.test:8200")


@pytest.fixture
def client_config(transport_config: TransportConfig) -> ClientConfig:
    return ClientConfig(secrets_path="secret/myapp/", transport=transport_config)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(app_id=APP_ID, user_id=USER_ID)


@pytest.fixture
def login_session(transport: FakeTransport, transport_config: TransportConfig, clock: FakeClock) -> LoginSession:
    request = build_login_request(transport_config, APP_ID, USER_ID)
    return LoginSession(transport, request, now=clock)
