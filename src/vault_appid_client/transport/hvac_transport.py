"""``Transport`` implementation backed by the hvac library.

One ``hvac.Client`` is built on first use and shared by every later call.
Secret operations go through the client's logical API.  The login request
goes through an ``hvac.adapters.RawAdapter`` that shares the client's
``requests`` session; it is called with ``raise_exception=False`` so the
login session sees the real status code and error list instead of an hvac
exception.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import hvac
import hvac.adapters
import hvac.exceptions
import requests

from vault_appid_client.config import TransportConfig
from vault_appid_client.errors import TransportError
from vault_appid_client.transport.base import LoginRequest, TransportResponse

logger = logging.getLogger(__name__)

_FAILURES = (hvac.exceptions.VaultError, requests.exceptions.RequestException)


class HvacTransport:
    """Talks to Vault with ``hvac``."""

    def __init__(self, config: TransportConfig) -> None:
        self._config = config
        self._client: hvac.Client | None = None
        self._login_adapter: hvac.adapters.RawAdapter | None = None
        self._lock = threading.Lock()

    @property
    def client(self) -> hvac.Client:
        """The shared ``hvac.Client``, created on first access."""
        with self._lock:
            if self._client is None:
                logger.debug("Creating hvac client for %s", self._config.address)
                self._client = hvac.Client(
                    url=self._config.address,
                    verify=self._config.tls_verify,
                    timeout=self._config.timeout,
                    namespace=self._config.namespace,
                )
            return self._client

    def send(self, request: LoginRequest) -> TransportResponse:
        adapter = self._get_login_adapter()
        try:
            response = adapter.request(
                request.method.lower(),
                request.path,
                json=request.body,
                raise_exception=False,
            )
        except requests.exceptions.RequestException as exc:
            raise TransportError(f"Login request to {request.url} failed: {exc}", "login", request.path) from exc
        return TransportResponse(status_code=response.status_code, text=response.text)

    def set_token(self, token: str) -> None:
        self.client.token = token

    def list(self, path: str) -> dict[str, Any] | None:
        return self._data(self._call("list", path, self.client.list, path))

    def read(self, path: str) -> dict[str, Any] | None:
        return self._data(self._call("read", path, self.client.read, path))

    def write(self, path: str, data: dict[str, Any]) -> None:
        self._call("write", path, self.client.write_data, path, data=data)

    def delete(self, path: str) -> None:
        self._call("delete", path, self.client.delete, path)

    def close(self) -> None:
        with self._lock:
            if self._client is not None:
                self._client.adapter.close()
                self._client = None
            self._login_adapter = None

    # -- private helpers -----------------------------------------------------

    def _get_login_adapter(self) -> hvac.adapters.RawAdapter:
        session = self.client.adapter.session
        with self._lock:
            if self._login_adapter is None:
                self._login_adapter = hvac.adapters.RawAdapter(
                    base_uri=self._config.address,
                    verify=self._config.tls_verify,
                    timeout=self._config.timeout,
                    namespace=self._config.namespace,
                    session=session,
                )
            return self._login_adapter

    @staticmethod
    def _call(operation: str, path: str, func: Any, *args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except _FAILURES as exc:
            raise TransportError(f"Vault {operation} failed at {path}: {exc}", operation, path) from exc

    @staticmethod
    def _data(response: Any) -> dict[str, Any] | None:
        if response is None:
            return None
        return response.get("data") or {}
