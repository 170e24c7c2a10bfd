# tests/test_config.py
"""Test configuration loading"""

import pytest
from pathlib import Path
from unittest.mock import patch

from yt_account_sync.core.config import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_REDIRECT_PORT,
    ENV_CLIENT_ID,
    ENV_CLIENT_SECRET,
    load_config,
)
from yt_account_sync.core.exceptions import ConfigError


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep real credentials and .env files out of these tests"""
    monkeypatch.delenv(ENV_CLIENT_ID, raising=False)
    monkeypatch.delenv(ENV_CLIENT_SECRET, raising=False)
    with patch("yt_account_sync.core.config.load_dotenv"):
        yield


def write_config(temp_dir: Path, content: str) -> Path:
    path = temp_dir / "config.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestLoadConfig:
    """Test load_config()"""

    def test_minimal_config_applies_defaults(self, temp_dir):
        """Only client_id is required"""
        path = write_config(temp_dir, "google:\n  client_id: abc.apps.googleusercontent.com\n")

        config = load_config(path)

        assert config.google.client_id == "abc.apps.googleusercontent.com"
        assert config.google.client_secret is None
        assert config.google.redirect_port == DEFAULT_REDIRECT_PORT
        assert config.http.timeout == DEFAULT_HTTP_TIMEOUT
        assert config.sign_in.wait_timeout is None
        assert config.storage.directory == (Path.home() / ".ytsync").resolve()

    def test_full_config(self, temp_dir):
        """Every section is parsed"""
        path = write_config(temp_dir, (
            "google:\n"
            "  client_id: abc\n"
            "  client_secret: shh\n"
            "  redirect_port: 9000\n"
            "storage:\n"
            f"  directory: \"{temp_dir.as_posix()}/data\"\n"
            "http:\n"
            "  timeout: 5\n"
            "sign_in:\n"
            "  wait_timeout: 120\n"
        ))

        config = load_config(path)

        assert config.google.client_secret == "shh"
        assert config.google.redirect_uri == "http://127.0.0.1:9000/oauth2callback"
        assert config.storage.database_path == (temp_dir / "data").resolve() / "database.db"
        assert config.storage.credentials_path.name == "credentials.json"
        assert config.http.timeout == 5.0
        assert config.sign_in.wait_timeout == 120.0

    def test_missing_file(self, temp_dir):
        """A missing config file is a ConfigError"""
        with pytest.raises(ConfigError, match="not found"):
            load_config(temp_dir / "nope.yaml")

    def test_invalid_yaml(self, temp_dir):
        """Broken YAML is a ConfigError"""
        path = write_config(temp_dir, "google: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_missing_client_id(self, temp_dir):
        """client_id must come from the file or the environment"""
        path = write_config(temp_dir, "google:\n  redirect_port: 8765\n")
        with pytest.raises(ConfigError, match="client_id"):
            load_config(path)

    def test_empty_file_with_environment(self, temp_dir, monkeypatch):
        """An empty file works when the client comes from the environment"""
        monkeypatch.setenv(ENV_CLIENT_ID, "env-client")
        monkeypatch.setenv(ENV_CLIENT_SECRET, "env-secret")
        path = write_config(temp_dir, "")

        config = load_config(path)

        assert config.google.client_id == "env-client"
        assert config.google.client_secret == "env-secret"

    def test_environment_overrides_file(self, temp_dir, monkeypatch):
        """Environment variables win over file values"""
        monkeypatch.setenv(ENV_CLIENT_ID, "env-client")
        path = write_config(temp_dir, "google:\n  client_id: file-client\n")

        assert load_config(path).google.client_id == "env-client"

    @pytest.mark.parametrize("port", [0, 70000, "8765", True])
    def test_invalid_redirect_port(self, temp_dir, port):
        """redirect_port must be an integer in range"""
        value = f"\"{port}\"" if isinstance(port, str) else str(port).lower()
        path = write_config(temp_dir, f"google:\n  client_id: abc\n  redirect_port: {value}\n")
        with pytest.raises(ConfigError, match="redirect_port"):
            load_config(path)

    def test_invalid_timeout(self, temp_dir):
        """http.timeout must be positive"""
        path = write_config(temp_dir, "google:\n  client_id: abc\nhttp:\n  timeout: 0\n")
        with pytest.raises(ConfigError, match="http.timeout"):
            load_config(path)

    def test_section_must_be_mapping(self, temp_dir):
        """Sections must be dictionaries"""
        path = write_config(temp_dir, "google:\n  client_id: abc\nstorage: /tmp\n")
        with pytest.raises(ConfigError, match="storage"):
            load_config(path)
