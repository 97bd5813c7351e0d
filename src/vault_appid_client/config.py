"""Client configuration and the YAML settings loader.

The settings file has three sections: ``vault`` (how to reach the server),
``secrets_path`` (the prefix every secret path is resolved under) and
``credentials`` (the App-ID login identifiers).  Only the loader interprets
the file; the rest of the package receives plain dataclasses.
"""

from __future__ import annotations

import dataclasses
import os
import pathlib
from typing import Any

import yaml

from vault_appid_client.auth.credentials import Credentials
from vault_appid_client.errors import ConfigurationError

DEFAULT_VAULT_ADDR = "http://127.0.0.1:8200"


@dataclasses.dataclass(frozen=True)
class TransportConfig:
    """Connection settings handed to the transport.

    Attributes:
        address:   Base URL of the Vault server.
        ca_cert:   Path to a CA bundle used to verify the server certificate.
        verify:    Set to ``False`` to disable TLS verification entirely.
        timeout:   Per-request timeout in seconds.
        namespace: Vault Enterprise namespace, if any.
    """

    address: str = DEFAULT_VAULT_ADDR
    ca_cert: str | None = None
    verify: bool = True
    timeout: int = 30
    namespace: str | None = None

    @property
    def tls_verify(self) -> bool | str:
        """Value for the ``verify`` argument of hvac / requests."""
        if not self.verify:
            return False
        return self.ca_cert or True


@dataclasses.dataclass(frozen=True)
class ClientConfig:
    secrets_path: str
    transport: TransportConfig = dataclasses.field(default_factory=TransportConfig)

    def secret_path(self, path: str) -> str:
        return self.secrets_path + path


def load_settings(path: str | pathlib.Path) -> tuple[ClientConfig, Credentials]:
    """Read a YAML settings file and return the client config and credentials.

    Raises ``ConfigurationError`` if the file is missing, unparsable or lacks
    a required key.
    """
    settings_path = pathlib.Path(path)
    if not settings_path.exists():
        raise ConfigurationError(f"Settings file not found: {settings_path}")
    try:
        with open(settings_path) as fh:
            data = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Settings file {settings_path} is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError("Settings file must contain a mapping at the top level")
    return config_from_mapping(data), Credentials.from_mapping(data.get("credentials") or {})


def config_from_mapping(data: dict[str, Any]) -> ClientConfig:
    vault_cfg: dict[str, Any] = data.get("vault") or {}
    secrets_path = data.get("secrets_path", data.get("SecretsPath"))
    if secrets_path is None:
        raise ConfigurationError("Settings must define 'secrets_path'")

    try:
        timeout = int(vault_cfg.get("timeout", 30))
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid vault timeout: {vault_cfg.get('timeout')!r}") from exc

    transport = TransportConfig(
        address=vault_cfg.get("address") or os.environ.get("VAULT_ADDR", DEFAULT_VAULT_ADDR),
        ca_cert=vault_cfg.get("ca_cert"),
        verify=bool(vault_cfg.get("verify", True)),
        timeout=timeout,
        namespace=vault_cfg.get("namespace"),
    )
    return ClientConfig(secrets_path=str(secrets_path), transport=transport)
