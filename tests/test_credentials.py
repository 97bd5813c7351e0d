"""Tests for App-ID credential resolution."""

from __future__ import annotations

import json
import pathlib

import pytest

from vault_appid_client.auth.credentials import Credentials
from vault_appid_client.errors import ConfigurationError, CredentialReadError, ParseError


def _user_id_file(tmp_path: pathlib.Path, content: str) -> pathlib.Path:
    path = tmp_path / "user-id.json"
    path.write_text(content)
    return path


class TestReadUserID:
    def test_reads_user_id_from_file(self, tmp_path: pathlib.Path) -> None:
        creds = Credentials(app_id="app", user_id_file=_user_id_file(tmp_path, '{"UserID": "abc-123"}'))
        creds.read_user_id()
        assert creds.user_id == "abc-123"

    def test_accepts_string_path(self, tmp_path: pathlib.Path) -> None:
        creds = Credentials(app_id="app", user_id_file=str(_user_id_file(tmp_path, '{"UserID": "abc-123"}')))
        creds.read_user_id()
        assert creds.user_id == "abc-123"

    def test_no_file_configured_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="no UserID file"):
            Credentials(app_id="app").read_user_id()

    def test_missing_file_raises_read_error(self, tmp_path: pathlib.Path) -> None:
        creds = Credentials(app_id="app", user_id_file=tmp_path / "absent.json")
        with pytest.raises(CredentialReadError, match="Could not open"):
            creds.read_user_id()
        assert creds.user_id == ""

    def test_invalid_json_raises_parse_error(self, tmp_path: pathlib.Path) -> None:
        creds = Credentials(app_id="app", user_id_file=_user_id_file(tmp_path, '{"UserID": '))
        with pytest.raises(ParseError):
            creds.read_user_id()
        assert creds.user_id == ""

    @pytest.mark.parametrize("content", ['["abc-123"]', '{"user_id": "abc-123"}', '{"UserID": 123}'])
    def test_wrong_shape_raises_parse_error(self, tmp_path: pathlib.Path, content: str) -> None:
        creds = Credentials(app_id="app", user_id_file=_user_id_file(tmp_path, content))
        with pytest.raises(ParseError, match="string 'UserID'"):
            creds.read_user_id()
        assert creds.user_id == ""


class TestEnsureUserID:
    def test_explicit_user_id_wins_over_file(self, tmp_path: pathlib.Path) -> None:
        creds = Credentials(
            app_id="app",
            user_id="explicit",
            user_id_file=_user_id_file(tmp_path, '{"UserID": "from-file"}'),
        )
        assert creds.ensure_user_id() == "explicit"

    def test_loads_from_file_when_empty(self, tmp_path: pathlib.Path) -> None:
        creds = Credentials(app_id="app", user_id_file=_user_id_file(tmp_path, json.dumps({"UserID": "abc-123"})))
        assert creds.ensure_user_id() == "abc-123"
        assert creds.user_id == "abc-123"

    def test_file_errors_propagate(self, tmp_path: pathlib.Path) -> None:
        creds = Credentials(app_id="app", user_id_file=_user_id_file(tmp_path, "not json"))
        with pytest.raises(ParseError):
            creds.ensure_user_id()

    def test_no_user_id_anywhere_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="No UserID"):
            Credentials(app_id="app").ensure_user_id()

    def test_empty_user_id_in_file_raises(self, tmp_path: pathlib.Path) -> None:
        creds = Credentials(app_id="app", user_id_file=_user_id_file(tmp_path, '{"UserID": ""}'))
        with pytest.raises(ConfigurationError):
            creds.ensure_user_id()


class TestFromMapping:
    def test_snake_case_keys(self) -> None:
        creds = Credentials.from_mapping({"app_id": "a", "user_id": "u"})
        assert creds == Credentials(app_id="a", user_id="u")

    def test_legacy_keys(self) -> None:
        creds = Credentials.from_mapping({"AppID": "a", "UserIDFile": "/etc/user-id.json"})
        assert creds.app_id == "a"
        assert creds.user_id == ""
        assert creds.user_id_file == "/etc/user-id.json"

    def test_missing_app_id_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="app_id"):
            Credentials.from_mapping({"user_id": "u"})
