"""App-ID login credentials.

An App-ID login needs two identifiers: the application ID, which ships with
the application's configuration, and the user ID, which is usually
provisioned per machine and dropped into a small JSON file::

    {"UserID": "0ecd7b5d-4885-45c1-a03f-5949e485c6bf"}

``Credentials`` holds both and knows how to fill in the user ID from that
file when it was not supplied directly.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import pathlib
from typing import Any

from vault_appid_client.errors import ConfigurationError, CredentialReadError, ParseError

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class Credentials:
    """Identifiers used for the App-ID login exchange.

    Attributes:
        app_id:       Application identifier.
        user_id:      User identifier; may be left empty when ``user_id_file``
                      is given.
        user_id_file: JSON file holding the user identifier under ``UserID``.
    """

    app_id: str
    user_id: str = ""
    user_id_file: str | pathlib.Path | None = None

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> Credentials:
        """Build credentials from a settings mapping.

        Accepts both the snake_case keys used in the YAML settings and the
        ``AppID`` / ``UserID`` / ``UserIDFile`` keys of older JSON configs.
        """
        app_id = data.get("app_id", data.get("AppID"))
        if not app_id:
            raise ConfigurationError("Credentials must define 'app_id'")
        return cls(
            app_id=str(app_id),
            user_id=str(data.get("user_id", data.get("UserID")) or ""),
            user_id_file=data.get("user_id_file", data.get("UserIDFile")) or None,
        )

    def read_user_id(self) -> None:
        """Load ``user_id`` from ``user_id_file``.

        ``user_id`` is only assigned once the file has been read and parsed
        successfully.
        """
        if not self.user_id_file:
            raise ConfigurationError("Could not read UserID as no UserID file is configured")

        path = pathlib.Path(self.user_id_file)
        try:
            raw = path.read_text()
        except OSError as exc:
            raise CredentialReadError(f"Could not open UserID file at {path}: {exc}") from exc

        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ParseError(f"UserID file {path} could not be parsed: {exc}") from exc

        if not isinstance(payload, dict) or not isinstance(payload.get("UserID"), str):
            raise ParseError(f"UserID file {path} must be a JSON object with a string 'UserID' field")

        self.user_id = payload["UserID"]
        logger.debug("Loaded UserID from %s", path)

    def ensure_user_id(self) -> str:
        """Return a non-empty user ID, reading it from file if necessary."""
        if not self.user_id and self.user_id_file:
            self.read_user_id()
        if not self.user_id:
            raise ConfigurationError("No UserID available for the App-ID login")
        return self.user_id
