"""
Access token supplier.

Hands callers a currently valid "Bearer <token>" value, refreshing the
stored token first when it has expired or expires within five minutes.
A failed refresh returns None and is not retried; the caller has to send
the user through sign-in again.
"""

from yt_account_sync.auth.credentials import CredentialStore
from yt_account_sync.auth.models import CredentialRecord
from yt_account_sync.auth.token_client import TokenExchangeClient
from yt_account_sync.core.logger import get_logger

logger = get_logger(__name__)


# Tokens closer than this to their expiry are refreshed before use
REFRESH_MARGIN_MS = 300_000


def bearer(access_token: str) -> str:
    return f"Bearer {access_token}"


def needs_refresh(record: CredentialRecord, now_ms: int) -> bool:
    """True if the record's access token is expired or about to expire."""
    expiry_ms = record.expiry_ms if record.expiry_ms is not None else 0
    return now_ms > expiry_ms - REFRESH_MARGIN_MS


class AccessTokenSupplier:
    """
    Produces valid bearer tokens from the credential store.

    The check, refresh and write run while holding the store's write lock,
    and the record is re-read once the lock is held, so a refresh never
    overwrites a sign-in that completed while it was waiting.
    """

    def __init__(self, store: CredentialStore, token_client: TokenExchangeClient) -> None:
        self._store = store
        self._token_client = token_client

    def get_valid_access_token(self, client_id: str) -> str | None:
        """
        Get a bearer value for the stored access token.

        Args:
            client_id: OAuth client ID used if a refresh is needed.

        Returns:
            "Bearer <token>", or None if no account is signed in or the
            refresh failed.
        """
        with self._store.write_lock():
            record = self._store.load()
            if not record.access_token:
                return None

            if needs_refresh(record, self._store.clock()):
                logger.debug("Access token expired or expiring soon, refreshing")
                return self._refresh(record, client_id)

            return bearer(record.access_token)

    def force_refresh(self, client_id: str) -> str | None:
        """
        Refresh regardless of the stored expiry.

        Used when Google rejects a token that still looked valid (HTTP 401).
        """
        with self._store.write_lock():
            record = self._store.load()
            if not record.access_token and not record.refresh_token:
                return None
            return self._refresh(record, client_id)

    def _refresh(self, record: CredentialRecord, client_id: str) -> str | None:
        if not record.refresh_token:
            logger.warning("No refresh token stored, sign-in required")
            return None

        issued_at_ms = self._store.clock()
        response = self._token_client.refresh(record.refresh_token, client_id)

        if not response.is_success:
            logger.warning(f"Token refresh failed: {response.failure_reason}")
            return None

        updated = self._store.save_token_response(response, issued_at_ms=issued_at_ms)
        logger.info("Google access token refreshed")
        return bearer(updated.access_token)
