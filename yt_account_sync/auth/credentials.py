"""
Credential record persistence.

Projects token endpoint answers into the four persisted credential fields
and reads them back. Storage itself is a JsonKeyValueStore; this module
owns the key names and the projection rules:

    - access_token and expiry are always written together
    - expiry defaults to issue time + 3600 s when Google omits expires_in
    - refresh_token is only overwritten when the answer carries one
    - e-mail is only overwritten when the caller provides one
    - sign-out removes every key

Writes are serialized through write_lock(). Code that must read, decide
and write atomically (the token refresh) holds the lock for the whole
sequence; the lock is re-entrant so save_token_response() can be called
while holding it.
"""

import threading
import time
from contextlib import contextmanager
from typing import Callable, Generator

from yt_account_sync.auth.models import CredentialRecord, TokenResponse
from yt_account_sync.core.kv_store import JsonKeyValueStore
from yt_account_sync.core.logger import get_logger

logger = get_logger(__name__)


KEY_NAMESPACE = "google_auth."
ACCESS_TOKEN_KEY = KEY_NAMESPACE + "access_token"
REFRESH_TOKEN_KEY = KEY_NAMESPACE + "refresh_token"
EXPIRY_KEY = KEY_NAMESPACE + "expiry_ms"
EMAIL_KEY = KEY_NAMESPACE + "email"

ALL_KEYS = [ACCESS_TOKEN_KEY, REFRESH_TOKEN_KEY, EXPIRY_KEY, EMAIL_KEY]

# Lifetime assumed when the token endpoint omits expires_in
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600


def current_time_ms() -> int:
    return int(time.time() * 1000)


class CredentialStore:
    """
    Reads and writes the Google credential record.

    Attributes:
        clock: Callable returning the current epoch time in milliseconds.
               Injected by tests.
    """

    def __init__(
        self,
        kv_store: JsonKeyValueStore,
        clock: Callable[[], int] = current_time_ms
    ) -> None:
        self._kv_store = kv_store
        self._lock = threading.RLock()
        self.clock = clock

    @contextmanager
    def write_lock(self) -> Generator[None, None, None]:
        """Hold exclusive write access to the credential record."""
        with self._lock:
            yield

    def load(self) -> CredentialRecord:
        values = self._kv_store.get_many(ALL_KEYS)

        expiry_raw = values[EXPIRY_KEY]
        try:
            expiry_ms = int(expiry_raw) if expiry_raw is not None else None
        except ValueError:
            logger.warning("Stored token expiry is not a number, treating token as expired")
            expiry_ms = 0

        access_token = values[ACCESS_TOKEN_KEY]
        if access_token is not None and expiry_ms is None:
            # Token without expiry: force a refresh on next use
            expiry_ms = 0

        return CredentialRecord(
            access_token=access_token,
            refresh_token=values[REFRESH_TOKEN_KEY],
            expiry_ms=expiry_ms,
            email=values[EMAIL_KEY],
        )

    def save_token_response(
        self,
        response: TokenResponse,
        email: str | None = None,
        issued_at_ms: int | None = None
    ) -> CredentialRecord:
        """
        Persist a successful token response.

        Args:
            response: A response with is_success True.
            email: Account e-mail to store, or None to keep the current one.
            issued_at_ms: When the request was made. Defaults to now.

        Returns:
            The credential record as stored after the write.

        Raises:
            ValueError: If the response carries no access token.
        """
        if not response.access_token:
            raise ValueError("Cannot store a token response without an access token")

        if issued_at_ms is None:
            issued_at_ms = self.clock()

        lifetime = response.expires_in
        if lifetime is None:
            lifetime = DEFAULT_TOKEN_LIFETIME_SECONDS

        values: dict[str, str | None] = {
            ACCESS_TOKEN_KEY: response.access_token,
            EXPIRY_KEY: str(issued_at_ms + lifetime * 1000),
        }
        if response.refresh_token:
            values[REFRESH_TOKEN_KEY] = response.refresh_token
        if email is not None:
            values[EMAIL_KEY] = email

        with self._lock:
            self._kv_store.update(values)
            record = self.load()

        logger.debug(f"Stored new access token (expires at {record.expiry_ms})")
        return record

    def clear(self) -> None:
        """Remove every credential field (sign-out)."""
        with self._lock:
            self._kv_store.update({key: None for key in ALL_KEYS})
        logger.debug("Cleared stored Google credentials")

    def is_connected(self) -> bool:
        """True when an account has been signed in and not signed out."""
        return not self.load().is_empty
