"""
Exception classes for yt-account-sync.

This module defines all custom exceptions used throughout the application.
Each exception is designed to provide clear, actionable error messages
and to distinguish between different failure modes.

Exception Hierarchy:
    AccountSyncError (base)
        ConfigError - Configuration file issues
        DatabaseError - SQLite local store issues
        CredentialStoreError - Credentials file issues
        TokenExchangeError - Authorization code exchange failed in transport
        AuthenticationRequiredError - No valid Google credential available
        YouTubeApiError - YouTube Data API issues
"""


class AccountSyncError(Exception):
    """
    Base exception for all yt-account-sync errors.

    All custom exceptions in this project inherit from this class,
    allowing callers to catch every application error with a single
    except clause if desired.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (e.g., URLs, ids).

    Example:
        try:
            importer.import_subscriptions()
        except AccountSyncError as e:
            logger.error(f"Import failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description that will be shown to the user.
            details: Optional dictionary containing additional context about the error.
                     Common keys include:
                     - 'url': URL that caused the error
                     - 'status_code': HTTP status returned by Google
                     - 'original_error': The underlying exception if wrapping another error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(AccountSyncError):
    """
    Raised when there's an issue with the configuration file.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - config.yaml not found
        - config.yaml has invalid YAML syntax
        - google.client_id missing and not provided through the environment
        - Invalid field values (e.g., non-numeric port)
    """
    pass


class DatabaseError(AccountSyncError):
    """
    Raised when the SQLite local store cannot be opened or written.

    Common causes:
        - Storage directory missing or not writable
        - database.db created by an incompatible schema version
        - Disk full
    """
    pass


class CredentialStoreError(AccountSyncError):
    """
    Raised when the credentials file cannot be read or written.

    The file only holds four scalar values, so a corrupt file is reported
    instead of silently discarded: the user decides whether to delete it
    and sign in again.
    """
    pass


class TokenExchangeError(AccountSyncError):
    """
    Raised when exchanging an authorization code fails in transport.

    Only the authorization code exchange raises this. Refresh and
    identity assertion exchanges report failures through the error
    fields of the returned TokenResponse instead.

    Common causes:
        - Network unreachable or timeout
        - Token endpoint returned an empty body
        - Token endpoint returned something that is not JSON
    """
    pass


class AuthenticationRequiredError(AccountSyncError):
    """
    Raised when an authenticated operation runs without a valid credential.

    This is the signal for the caller to prompt the user to sign in
    again (``ytsync login``). It is never replaced by an empty result.
    """
    pass


class YouTubeApiError(AccountSyncError):
    """
    Raised when a YouTube Data API request fails.

    Attributes:
        status_code: HTTP status code, or None for transport failures.
        is_auth_error: True if Google rejected the bearer token (HTTP 401).
        is_rate_limit: True if the request hit a quota or rate limit.

    Example:
        raise YouTubeApiError(
            "Failed to list subscriptions: quotaExceeded",
            details={'url': url, 'status_code': 403},
            status_code=403,
            is_rate_limit=True
        )
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        status_code: int | None = None,
        is_auth_error: bool = False,
        is_rate_limit: bool = False
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code
        self.is_auth_error = is_auth_error
        self.is_rate_limit = is_rate_limit
