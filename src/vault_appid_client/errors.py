"""Exception hierarchy for the Vault App-ID client.

Every failure the client can report derives from ``VaultClientError`` so
callers can catch the whole family in one place, while the subclasses keep
configuration problems, login failures and secret-store failures apart.
"""

from __future__ import annotations

from typing import Sequence


class VaultClientError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(VaultClientError):
    """Required configuration is missing or invalid."""


class CredentialReadError(VaultClientError):
    """The user-ID credential file could not be opened or read."""


class ParseError(VaultClientError):
    """A credential file or login response is not the expected JSON shape."""


class RequestBuildError(VaultClientError):
    """The transport configuration cannot produce a login request."""


class AuthenticationError(VaultClientError):
    """The login exchange returned a non-success status."""

    def __init__(self, message: str, status_code: int | None = None, errors: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.errors = tuple(errors)


class EmptyTokenError(VaultClientError):
    """Login nominally succeeded but no client token was issued."""


class SecretNotFoundError(VaultClientError):
    """No secret exists at the requested path."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Secret not found in Vault at {path}")
        self.path = path


class TransportError(VaultClientError):
    """The transport failed to carry out a request."""

    def __init__(self, message: str, operation: str | None = None, path: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.path = path
