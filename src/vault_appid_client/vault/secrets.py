"""Secret CRUD scoped under a fixed path prefix.

Every operation follows the same steps: get a valid token from the
``LoginSession`` (logging in again if it expired), install it on the
transport, then run the operation on ``secrets_path + path``.  Failures
keep their type and carry the operation and full path, either as a note on
token errors or in the ``TransportError`` message.
"""

from __future__ import annotations

import contextlib
import datetime
import logging
from typing import Any, Callable, Iterator

from vault_appid_client.auth.credentials import Credentials
from vault_appid_client.auth.session import LoginSession, build_login_request
from vault_appid_client.config import ClientConfig
from vault_appid_client.errors import SecretNotFoundError, TransportError, VaultClientError
from vault_appid_client.transport.base import Transport
from vault_appid_client.transport.hvac_transport import HvacTransport

logger = logging.getLogger(__name__)


class SecretStoreClient:
    """App-ID authenticated access to the secrets under ``config.secrets_path``.

    By default the first login happens during construction, so unusable
    credentials fail immediately rather than on the first secret access.
    Pass ``login_on_init=False`` to defer it.
    """

    def __init__(
        self,
        config: ClientConfig,
        credentials: Credentials,
        transport: Transport | None = None,
        *,
        now: Callable[[], datetime.datetime] | None = None,
        login_on_init: bool = True,
    ) -> None:
        self._config = config
        if transport is None:
            transport = HvacTransport(config.transport)
        self._transport = transport

        user_id = credentials.ensure_user_id()
        request = build_login_request(config.transport, credentials.app_id, user_id)
        self._session = LoginSession(transport, request, now=now)

        if login_on_init:
            with self._context("login", request.url):
                self._transport.set_token(self._session.get_token())

    @property
    def session(self) -> LoginSession:
        return self._session

    def list(self, path: str) -> dict[str, Any]:
        """Return the listing at *path*, typically ``{"keys": [...]}``."""
        return self._fetch("list", path)

    def read(self, path: str) -> dict[str, Any]:
        """Return the data mapping of the secret at *path*."""
        return self._fetch("read", path)

    def write(self, path: str, data: dict[str, Any]) -> None:
        full_path = self._authorise("write", path)
        with self._context("write", full_path):
            self._transport.write(full_path, data)
        logger.debug("Wrote secret at %s", full_path)

    def delete(self, path: str) -> None:
        """Delete the secret at *path*.  Deleting an absent secret is not an error."""
        full_path = self._authorise("delete", path)
        with self._context("delete", full_path):
            self._transport.delete(full_path)
        logger.debug("Deleted secret at %s", full_path)

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> SecretStoreClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # -- private helpers -----------------------------------------------------

    def _fetch(self, operation: str, path: str) -> dict[str, Any]:
        full_path = self._authorise(operation, path)
        with self._context(operation, full_path):
            op = self._transport.list if operation == "list" else self._transport.read
            data = op(full_path)
        if data is None:
            raise SecretNotFoundError(full_path)
        logger.debug("%s secret at %s", operation.capitalize(), full_path)
        return data

    def _authorise(self, operation: str, path: str) -> str:
        """Install a valid token on the transport and return the full secret path."""
        full_path = self._config.secret_path(path)
        with self._context(operation, full_path):
            self._transport.set_token(self._session.get_token())
        return full_path

    @contextlib.contextmanager
    def _context(self, operation: str, full_path: str) -> Iterator[None]:
        try:
            yield
        except TransportError as exc:
            raise TransportError(
                f"Issue when performing {operation} on Vault at {full_path}: {exc}",
                operation,
                full_path,
            ) from exc
        except VaultClientError as exc:
            exc.add_note(f"while performing {operation} on Vault at {full_path}")
            raise
