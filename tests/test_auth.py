"""Tests for credentials and configuration."""

import json
from pathlib import Path

import pytest

from granola_cli.auth import extract_access_token, read_user_info
from granola_cli.config import Config, granola_dir
from granola_cli.errors import CredentialsError


def _write(tmp_path: Path, data) -> str:
    path = tmp_path / "supabase.json"
    path.write_text(json.dumps(data))
    return str(path)


class TestAccessToken:
    def test_workos_token(self, credentials_path: Path):
        assert extract_access_token(str(credentials_path)) == "tok-123"

    def test_falls_back_to_cognito(self, tmp_path: Path):
        path = _write(
            tmp_path,
            {
                "workos_tokens": "not json",
                "cognito_tokens": json.dumps({"access_token": "cog-1"}),
            },
        )
        assert extract_access_token(path) == "cog-1"

    def test_no_token(self, tmp_path: Path):
        path = _write(tmp_path, {"workos_tokens": json.dumps({"refresh_token": "r"})})
        with pytest.raises(CredentialsError, match="No valid access token"):
            extract_access_token(path)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(CredentialsError):
            extract_access_token(str(tmp_path / "missing.json"))


class TestUserInfo:
    def test_string_encoded(self, credentials_path: Path):
        assert read_user_info(str(credentials_path))["email"] == "me@example.com"

    def test_object(self, tmp_path: Path):
        path = _write(tmp_path, {"user_info": {"email": "obj@example.com"}})
        assert read_user_info(path) == {"email": "obj@example.com"}

    def test_unavailable(self, tmp_path: Path):
        assert read_user_info(str(tmp_path / "missing.json")) is None
        assert read_user_info(_write(tmp_path, {"user_info": "{broken"})) is None


class TestConfig:
    def test_env_overrides(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("GRANOLA_CACHE_PATH", str(tmp_path / "c.json"))
        monkeypatch.setenv("GRANOLA_CREDENTIALS", "~/creds.json")
        monkeypatch.setenv("GRANOLA_TIMEOUT", "0")

        config = Config()

        assert config.cache_path == str(tmp_path / "c.json")
        assert config.credentials_path == str(Path("~/creds.json").expanduser())
        assert config.timeout == 0

    def test_platform_dirs(self):
        assert granola_dir("linux") == "~/.config/Granola"
        assert granola_dir("win32") == "~/AppData/Roaming/Granola"
        assert granola_dir("sunos5") == "~/Library/Application Support/Granola"
