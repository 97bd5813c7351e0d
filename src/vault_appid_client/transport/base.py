"""The narrow interface between the client and the network.

The login session and the secret-store facade never talk HTTP themselves.
They hand a ``LoginRequest`` to a ``Transport`` and get a
``TransportResponse`` back, and they ask the same transport to list, read,
write and delete secrets.  Production code uses ``HvacTransport``; tests use
an in-memory double.
"""

from __future__ import annotations

import dataclasses
import json
from typing import Any, Protocol


@dataclasses.dataclass(frozen=True)
class LoginRequest:
    """A prepared, not yet sent, login request."""

    method: str
    path: str
    body: dict[str, str]
    address: str

    @property
    def url(self) -> str:
        return self.address.rstrip("/") + self.path


@dataclasses.dataclass(frozen=True)
class TransportResponse:
    status_code: int
    text: str

    def json(self) -> Any:
        return json.loads(self.text)


class Transport(Protocol):
    """What the client needs from the network layer.

    Implementations raise ``TransportError`` for any failure to carry out a
    request.  ``read`` and ``list`` return ``None`` when nothing exists at
    the path.
    """

    def send(self, request: LoginRequest) -> TransportResponse: ...

    def set_token(self, token: str) -> None: ...

    def list(self, path: str) -> dict[str, Any] | None: ...

    def read(self, path: str) -> dict[str, Any] | None: ...

    def write(self, path: str, data: dict[str, Any]) -> None: ...

    def delete(self, path: str) -> None: ...

    def close(self) -> None: ...
