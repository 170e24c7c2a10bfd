"""
Configuration management for yt-account-sync.

This module handles loading, validating, and providing access to the
application configuration stored in config.yaml.

The configuration file contains:
    - Google OAuth client credentials (client_id, optional client_secret)
    - Loopback port used to capture the browser sign-in redirect
    - Storage directory for the local database, credentials and logs
    - HTTP timeout for every Google request
    - Optional limit on how long the CLI waits for the browser sign-in

Environment Overrides:
    A .env file in the working directory is loaded with python-dotenv.
    YTSYNC_GOOGLE_CLIENT_ID and YTSYNC_GOOGLE_CLIENT_SECRET take precedence
    over the values in config.yaml.

Example config.yaml:
    google:
      client_id: "1234-abc.apps.googleusercontent.com"
      client_secret: null
      redirect_port: 8765

    storage:
      directory: "~/.ytsync"

    http:
      timeout: 30

    sign_in:
      wait_timeout: null  # Seconds to wait for the browser redirect, null = forever
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from yt_account_sync.core.exceptions import ConfigError


# Default configuration file name (looked up in current working directory)
CONFIG_FILENAME = "config.yaml"

ENV_CLIENT_ID = "YTSYNC_GOOGLE_CLIENT_ID"
ENV_CLIENT_SECRET = "YTSYNC_GOOGLE_CLIENT_SECRET"

DEFAULT_STORAGE_DIRECTORY = "~/.ytsync"
DEFAULT_REDIRECT_PORT = 8765
DEFAULT_HTTP_TIMEOUT = 30.0

REDIRECT_HOST = "127.0.0.1"
REDIRECT_PATH = "/oauth2callback"


@dataclass(frozen=True)
class GoogleConfig:
    """
    Google OAuth client configuration.

    The client is created in the Google Cloud Console as a "Desktop app"
    OAuth client with the YouTube Data API v3 enabled.

    Attributes:
        client_id: The OAuth client ID ("....apps.googleusercontent.com").
        client_secret: The OAuth client secret, if the client type has one.
        redirect_port: Loopback port the sign-in redirect is captured on.
    """
    client_id: str
    client_secret: str | None
    redirect_port: int

    @property
    def redirect_uri(self) -> str:
        """The loopback redirect URI registered with Google."""
        return f"http://{REDIRECT_HOST}:{self.redirect_port}{REDIRECT_PATH}"


@dataclass(frozen=True)
class StorageConfig:
    """
    Storage locations.

    Attributes:
        directory: Expanded absolute path holding database.db,
                   credentials.json and the logs/ subdirectory.
    """
    directory: Path

    @property
    def database_path(self) -> Path:
        return self.directory / "database.db"

    @property
    def credentials_path(self) -> Path:
        return self.directory / "credentials.json"


@dataclass(frozen=True)
class HttpConfig:
    timeout: float


@dataclass(frozen=True)
class SignInConfig:
    """
    Sign-in behavior.

    Attributes:
        wait_timeout: Seconds the CLI waits for the browser redirect before
                      abandoning the attempt. None waits until interrupted.
    """
    wait_timeout: float | None


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Created by load_config() and treated as immutable.

    Example:
        config = load_config()
        print(f"Storing data in: {config.storage.directory}")
        print(f"Redirect URI: {config.google.redirect_uri}")
    """
    google: GoogleConfig
    storage: StorageConfig
    http: HttpConfig
    sign_in: SignInConfig


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml.

    Args:
        config_path: Optional explicit path to config file.
                     If None, looks for config.yaml in current working directory.

    Returns:
        Config: A frozen dataclass containing all configuration values.

    Raises:
        ConfigError: If the config file is not found, has invalid YAML syntax,
                     is missing required fields, or contains invalid values.

    Behavior:
        1. Load .env into the process environment (existing variables win)
        2. Locate config file (explicit path or CWD/config.yaml)
        3. Read and parse YAML content
        4. Validate each section, applying defaults for optional ones
        5. Apply environment overrides for the Google client credentials
    """
    load_dotenv()

    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME

    if not config_path.exists():
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except IOError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    # An empty file is allowed when everything comes from the environment
    if raw_config is None:
        raw_config = {}

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    _validate_sections(raw_config)

    return Config(
        google=_parse_google_config(raw_config.get("google") or {}),
        storage=_parse_storage_config(raw_config.get("storage")),
        http=_parse_http_config(raw_config.get("http")),
        sign_in=_parse_sign_in_config(raw_config.get("sign_in")),
    )


def _validate_sections(raw_config: dict[str, Any]) -> None:
    for section in ("google", "storage", "http", "sign_in"):
        value = raw_config.get(section)
        if value is not None and not isinstance(value, dict):
            raise ConfigError(
                f"Section '{section}' must be a dictionary",
                details={"section": section}
            )


def _parse_google_config(google_section: dict[str, Any]) -> GoogleConfig:
    """
    Parse the Google section, applying environment overrides.

    Raises:
        ConfigError: If no client_id is available or redirect_port is invalid.
    """
    client_id = os.environ.get(ENV_CLIENT_ID) or google_section.get("client_id", "")
    client_secret = os.environ.get(ENV_CLIENT_SECRET) or google_section.get("client_secret")

    if not isinstance(client_id, str) or not client_id.strip():
        raise ConfigError(
            f"'google.client_id' must be a non-empty string (or set {ENV_CLIENT_ID})",
            details={"field": "google.client_id"}
        )

    if client_secret is not None:
        if not isinstance(client_secret, str):
            raise ConfigError(
                "'google.client_secret' must be a string or null",
                details={"field": "google.client_secret"}
            )
        client_secret = client_secret.strip() or None

    redirect_port = google_section.get("redirect_port", DEFAULT_REDIRECT_PORT)
    if (
        isinstance(redirect_port, bool)
        or not isinstance(redirect_port, int)
        or not 1 <= redirect_port <= 65535
    ):
        raise ConfigError(
            "'google.redirect_port' must be an integer between 1 and 65535",
            details={"field": "google.redirect_port", "value": redirect_port}
        )

    return GoogleConfig(
        client_id=client_id.strip(),
        client_secret=client_secret,
        redirect_port=redirect_port
    )


def _parse_storage_config(storage_section: dict[str, Any] | None) -> StorageConfig:
    """
    Parse the storage section.

    Expands ~ to home directory and converts to absolute Path.
    Does NOT create the directory (the CLI does that at startup).
    """
    directory = DEFAULT_STORAGE_DIRECTORY

    if storage_section is not None:
        raw_directory = storage_section.get("directory", DEFAULT_STORAGE_DIRECTORY)
        if not isinstance(raw_directory, str) or not raw_directory.strip():
            raise ConfigError(
                "'storage.directory' must be a non-empty string",
                details={"field": "storage.directory"}
            )
        directory = raw_directory.strip()

    return StorageConfig(directory=Path(directory).expanduser().resolve())


def _parse_http_config(http_section: dict[str, Any] | None) -> HttpConfig:
    timeout = DEFAULT_HTTP_TIMEOUT

    if http_section is not None:
        raw_timeout = http_section.get("timeout", DEFAULT_HTTP_TIMEOUT)
        if (
            isinstance(raw_timeout, bool)
            or not isinstance(raw_timeout, (int, float))
            or raw_timeout <= 0
        ):
            raise ConfigError(
                "'http.timeout' must be a positive number of seconds",
                details={"field": "http.timeout", "value": raw_timeout}
            )
        timeout = float(raw_timeout)

    return HttpConfig(timeout=timeout)


def _parse_sign_in_config(sign_in_section: dict[str, Any] | None) -> SignInConfig:
    wait_timeout = None

    if sign_in_section is not None:
        raw_wait = sign_in_section.get("wait_timeout")
        if raw_wait is not None:
            if (
                isinstance(raw_wait, bool)
                or not isinstance(raw_wait, (int, float))
                or raw_wait <= 0
            ):
                raise ConfigError(
                    "'sign_in.wait_timeout' must be a positive number of seconds or null",
                    details={"field": "sign_in.wait_timeout", "value": raw_wait}
                )
            wait_timeout = float(raw_wait)

    return SignInConfig(wait_timeout=wait_timeout)
