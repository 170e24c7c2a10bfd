"""
Core module for yt-account-sync.

This module provides the foundational components used throughout the application:
    - exceptions: Custom exception classes for error handling
    - config: Configuration loading and validation
    - database: Thread-safe SQLite store for imported account data
    - kv_store: JSON key-value file holding the account credentials
    - logger: Logging system with console and file outputs

Usage:
    from yt_account_sync.core import (
        Config, load_config,
        Database,
        setup_logging, get_logger,
        AccountSyncError, ConfigError, DatabaseError
    )
"""

from yt_account_sync.core.config import (
    Config,
    GoogleConfig,
    HttpConfig,
    SignInConfig,
    StorageConfig,
    load_config,
)
from yt_account_sync.core.database import Database, LIKED_VIDEOS_KEY, WATCH_HISTORY_KEY
from yt_account_sync.core.exceptions import (
    AccountSyncError,
    AuthenticationRequiredError,
    ConfigError,
    CredentialStoreError,
    DatabaseError,
    TokenExchangeError,
    YouTubeApiError,
)
from yt_account_sync.core.kv_store import JsonKeyValueStore
from yt_account_sync.core.logger import get_logger, setup_logging, shutdown_logging

__all__ = [
    # Config
    "Config",
    "GoogleConfig",
    "StorageConfig",
    "HttpConfig",
    "SignInConfig",
    "load_config",
    # Storage
    "Database",
    "JsonKeyValueStore",
    "LIKED_VIDEOS_KEY",
    "WATCH_HISTORY_KEY",
    # Exceptions
    "AccountSyncError",
    "ConfigError",
    "DatabaseError",
    "CredentialStoreError",
    "TokenExchangeError",
    "AuthenticationRequiredError",
    "YouTubeApiError",
    # Logging
    "setup_logging",
    "get_logger",
    "shutdown_logging",
]
