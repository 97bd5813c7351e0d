"""Login session: obtains, caches and refreshes the Vault client token.

Pattern: Lazy Token Refresh
----------------------------
The session owns one prepared App-ID login request.  Callers only ever ask
for ``get_token()``; the session decides whether the cached token can be
handed out or whether a fresh login is needed first.  There is no
background refresh: a token is renewed by the first call that finds it
expired.

Token state is explicit (``TokenStatus``) rather than inferred from an
unset expiry timestamp, so "never logged in" and "logged in with a token
that never expires" are different states.

A lock serialises check-and-refresh, so concurrent callers share a single
login exchange instead of racing each other.  A failed refresh leaves the
previous state untouched; nothing is retried automatically.
"""

from __future__ import annotations

import dataclasses
import datetime
import enum
import json
import logging
import threading
import urllib.parse
from typing import Any, Callable

from vault_appid_client.config import TransportConfig
from vault_appid_client.errors import (
    AuthenticationError,
    EmptyTokenError,
    ParseError,
    RequestBuildError,
)
from vault_appid_client.transport.base import LoginRequest, Transport

logger = logging.getLogger(__name__)

LOGIN_PATH = "/v1/auth/app-id/login"


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class TokenStatus(enum.Enum):
    NEVER_FETCHED = "never_fetched"
    VALID_UNTIL = "valid_until"
    VALID_INDEFINITELY = "valid_indefinitely"


@dataclasses.dataclass(frozen=True)
class LoginMetadata:
    app_id: str = ""
    user_id: str = ""


@dataclasses.dataclass(frozen=True)
class AuthBlock:
    """The ``auth`` section of a login reply."""

    client_token: str = ""
    policies: tuple[str, ...] = ()
    lease_duration: int = 0
    renewable: bool = False
    metadata: LoginMetadata = dataclasses.field(default_factory=LoginMetadata)


@dataclasses.dataclass(frozen=True)
class LoginResponse:
    """Parsed body of an App-ID login reply."""

    lease_id: str = ""
    renewable: bool = False
    lease_duration: int = 0
    data: Any = None
    auth: AuthBlock = dataclasses.field(default_factory=AuthBlock)
    errors: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LoginResponse:
        try:
            auth = data.get("auth") or {}
            metadata = auth.get("metadata") or {}
            return cls(
                lease_id=data.get("lease_id") or "",
                renewable=bool(data.get("renewable", False)),
                lease_duration=int(data.get("lease_duration") or 0),
                data=data.get("data"),
                auth=AuthBlock(
                    client_token=auth.get("client_token") or "",
                    policies=tuple(auth.get("policies") or ()),
                    lease_duration=int(auth.get("lease_duration") or 0),
                    renewable=bool(auth.get("renewable", False)),
                    metadata=LoginMetadata(
                        app_id=metadata.get("app-id") or "",
                        user_id=metadata.get("user-id") or "",
                    ),
                ),
                errors=tuple(data.get("errors") or ()),
            )
        except (AttributeError, TypeError, ValueError) as exc:
            raise ParseError(f"Login response has an unexpected shape: {exc}") from exc


def build_login_request(config: TransportConfig, app_id: str, user_id: str) -> LoginRequest:
    """Prepare the App-ID login request.  Performs no I/O.

    Raises ``RequestBuildError`` when ``config`` has no usable address.
    """
    address = (config.address or "").strip()
    parsed = urllib.parse.urlparse(address)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise RequestBuildError(f"Invalid Vault address: {config.address!r}")
    return LoginRequest(
        method="POST",
        path=LOGIN_PATH,
        body={"app_id": app_id, "user_id": user_id},
        address=address,
    )


class LoginSession:
    """Hands out a valid client token, logging in again when it has expired."""

    def __init__(
        self,
        transport: Transport,
        request: LoginRequest,
        now: Callable[[], datetime.datetime] | None = None,
    ) -> None:
        self._transport = transport
        self._request = request
        self._now = now or _utcnow
        self._lock = threading.Lock()
        self._response: LoginResponse | None = None
        self._status = TokenStatus.NEVER_FETCHED
        self._valid_until: datetime.datetime | None = None

    @property
    def status(self) -> TokenStatus:
        return self._status

    @property
    def valid_until(self) -> datetime.datetime | None:
        return self._valid_until

    @property
    def login_response(self) -> LoginResponse | None:
        return self._response

    @property
    def request(self) -> LoginRequest:
        return self._request

    def get_token(self) -> str:
        """Return a usable client token, logging in first if required.

        Raises ``AuthenticationError``, ``ParseError`` or ``TransportError``
        if a needed login fails, and ``EmptyTokenError`` if no token is held
        afterwards.
        """
        with self._lock:
            if self._needs_refresh():
                self._refresh()
            else:
                logger.debug("Reusing cached Vault token (status=%s)", self._status.value)

            token = self._response.auth.client_token if self._response else ""
            if not token:
                raise EmptyTokenError("Vault client token is blank")
            return token

    def invalidate(self) -> None:
        """Forget the cached token so the next ``get_token()`` logs in again."""
        with self._lock:
            self._response = None
            self._status = TokenStatus.NEVER_FETCHED
            self._valid_until = None

    # -- private helpers -----------------------------------------------------

    def _needs_refresh(self) -> bool:
        if self._status is TokenStatus.NEVER_FETCHED:
            return True
        if self._status is TokenStatus.VALID_UNTIL:
            return self._now() > self._valid_until
        return False

    def _refresh(self) -> None:
        logger.debug("Sending App-ID login request to %s", self._request.url)
        response = self._transport.send(self._request)

        if response.status_code != 200:
            errors = self._error_list(response.text)
            raise AuthenticationError(
                f"Did not get an HTTP 200 code on login, got {response.status_code} with message: {list(errors)}",
                status_code=response.status_code,
                errors=errors,
            )

        try:
            body = response.json()
        except json.JSONDecodeError as exc:
            raise ParseError(f"Login response is not valid JSON: {exc}") from exc
        if not isinstance(body, dict):
            raise ParseError("Login response must be a JSON object")

        login = LoginResponse.from_dict(body)
        if not login.auth.client_token:
            raise EmptyTokenError("Vault login succeeded but returned a blank client token")

        self._response = login
        if login.auth.lease_duration > 0:
            self._status = TokenStatus.VALID_UNTIL
            self._valid_until = self._now() + datetime.timedelta(seconds=login.auth.lease_duration)
        else:
            self._status = TokenStatus.VALID_INDEFINITELY
            self._valid_until = None

        logger.info(
            "Vault login succeeded for app_id=%s, policies=%s, lease_duration=%ss",
            self._request.body["app_id"],
            list(login.auth.policies),
            login.auth.lease_duration,
        )

    @staticmethod
    def _error_list(text: str) -> tuple[str, ...]:
        try:
            body = json.loads(text)
        except json.JSONDecodeError:
            return (text,) if text else ()
        if isinstance(body, dict) and isinstance(body.get("errors"), list):
            return tuple(str(e) for e in body["errors"])
        return ()
