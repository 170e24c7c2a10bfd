"""
Authentication session and its state machine.

AuthSession is the single entry point the CLI and the import engine use
for everything account related. It wires together the sign-in
orchestrator, the token exchange client, the credential store and the
access token supplier, and tracks where the account is in its lifecycle:

    UNAUTHENTICATED -> NATIVE_ATTEMPT -> AUTHENTICATED
                                      -> EXTERNAL_FLOW_PENDING -> AUTHENTICATED
                                                               -> UNAUTHENTICATED
    AUTHENTICATED -> TOKEN_EXPIRED_PENDING_REFRESH -> AUTHENTICATED
                                                   -> REFRESH_FAILED -> UNAUTHENTICATED

EXTERNAL_FLOW_PENDING has no timeout here: it ends when the redirect
arrives or when the caller calls cancel_external_flow().
"""

import threading
from enum import Enum

from yt_account_sync.auth.credentials import CredentialStore
from yt_account_sync.auth.models import (
    CredentialRecord,
    ExternalFlowStarted,
    Failed,
    NativeSuccess,
    SignInOutcome,
)
from yt_account_sync.auth.redirect import RedirectResult
from yt_account_sync.auth.sign_in import SignInOrchestrator
from yt_account_sync.auth.supplier import AccessTokenSupplier, needs_refresh
from yt_account_sync.auth.token_client import TokenExchangeClient
from yt_account_sync.core.exceptions import AuthenticationRequiredError, TokenExchangeError
from yt_account_sync.core.logger import get_logger

logger = get_logger(__name__)


class AuthState(Enum):
    UNAUTHENTICATED = "unauthenticated"
    NATIVE_ATTEMPT = "native_attempt"
    EXTERNAL_FLOW_PENDING = "external_flow_pending"
    AUTHENTICATED = "authenticated"
    TOKEN_EXPIRED_PENDING_REFRESH = "token_expired_pending_refresh"
    REFRESH_FAILED = "refresh_failed"


class AuthSession:
    """
    Google account session for one OAuth client.

    Attributes:
        client_id: OAuth client ID every token call is made for.
        redirect_uri: Redirect URI of the browser flow; the authorization
                      code exchange must use the same value.
    """

    def __init__(
        self,
        client_id: str,
        store: CredentialStore,
        token_client: TokenExchangeClient,
        orchestrator: SignInOrchestrator
    ) -> None:
        self.client_id = client_id
        self.redirect_uri = orchestrator.redirect_uri
        self._store = store
        self._token_client = token_client
        self._orchestrator = orchestrator
        self._supplier = AccessTokenSupplier(store, token_client)
        self._state_lock = threading.Lock()

        if store.load().access_token:
            self._state = AuthState.AUTHENTICATED
        else:
            self._state = AuthState.UNAUTHENTICATED

    @property
    def state(self) -> AuthState:
        return self._state

    def _transition(self, new_state: AuthState) -> None:
        with self._state_lock:
            old_state = self._state
            self._state = new_state
        if old_state != new_state:
            logger.debug(f"Auth state: {old_state.value} -> {new_state.value}")

    # =========================================================================
    # Sign-in
    # =========================================================================

    def sign_in(self, login_hint: str | None = None) -> SignInOutcome:
        """
        Start a sign-in attempt.

        A native identity token is exchanged for API tokens right away, so
        NativeSuccess is only returned once the account is usable. If that
        exchange fails the outcome is Failed.

        Returns:
            NativeSuccess, ExternalFlowStarted (wait for the redirect, then
            call complete_redirect) or Failed.
        """
        self._transition(AuthState.NATIVE_ATTEMPT)
        outcome = self._orchestrator.sign_in(self.client_id, login_hint)

        match outcome:
            case NativeSuccess(identity_assertion=assertion, email=email):
                return self._complete_native_sign_in(assertion, email)
            case ExternalFlowStarted():
                self._transition(AuthState.EXTERNAL_FLOW_PENDING)
                return outcome
            case Failed():
                self._transition(AuthState.UNAUTHENTICATED)
                return outcome
            case _:
                raise TypeError(f"Unknown sign-in outcome: {outcome!r}")

    def _complete_native_sign_in(self, assertion: str, email: str) -> SignInOutcome:
        issued_at_ms = self._store.clock()
        response = self._token_client.exchange_identity_assertion(assertion, self.client_id)

        if not response.is_success:
            logger.error(f"Identity token exchange failed: {response.failure_reason}")
            self._transition(AuthState.UNAUTHENTICATED)
            return Failed(reason=response.failure_reason)

        self._store.save_token_response(response, email=email, issued_at_ms=issued_at_ms)
        self._transition(AuthState.AUTHENTICATED)
        logger.info(f"Signed in as {email or 'unknown account'}")
        return NativeSuccess(identity_assertion=assertion, email=email)

    def complete_redirect(self, result: RedirectResult) -> bool:
        """
        Finish the browser flow with what the redirect listener captured.

        Args:
            result: The code or error from the redirect.

        Returns:
            True if the account is now signed in.
        """
        if result.error or not result.code:
            logger.error(f"Browser sign-in abandoned: {result.error or 'no authorization code'}")
            self._transition(AuthState.UNAUTHENTICATED)
            return False

        issued_at_ms = self._store.clock()
        try:
            response = self._token_client.exchange_authorization_code(
                result.code, self.client_id, self.redirect_uri
            )
        except TokenExchangeError as e:
            logger.error(f"Failed to exchange authorization code: {e.message}")
            self._transition(AuthState.UNAUTHENTICATED)
            return False

        if not response.is_success:
            logger.error(f"Authorization code exchange failed: {response.failure_reason}")
            self._transition(AuthState.UNAUTHENTICATED)
            return False

        email = self._token_client.fetch_account_email(response.access_token) or ""
        self._store.save_token_response(response, email=email, issued_at_ms=issued_at_ms)
        self._transition(AuthState.AUTHENTICATED)
        logger.info(f"Signed in as {email or 'unknown account'}")
        return True

    def cancel_external_flow(self) -> None:
        """Give up waiting for the browser redirect."""
        if self._state == AuthState.EXTERNAL_FLOW_PENDING:
            logger.info("Browser sign-in cancelled")
            self._transition(AuthState.UNAUTHENTICATED)

    def sign_out(self) -> None:
        self._store.clear()
        self._transition(AuthState.UNAUTHENTICATED)
        logger.info("Signed out of Google account")

    # =========================================================================
    # Tokens
    # =========================================================================

    def get_access_token(self) -> str | None:
        """
        Bearer value for API calls, refreshed if needed.

        Returns:
            "Bearer <token>", or None when the user has to sign in again.
        """
        record = self._store.load()
        if not record.access_token:
            self._transition(AuthState.UNAUTHENTICATED)
            return None

        refreshing = needs_refresh(record, self._store.clock())
        if refreshing:
            self._transition(AuthState.TOKEN_EXPIRED_PENDING_REFRESH)

        token = self._supplier.get_valid_access_token(self.client_id)
        self._after_token_lookup(token, refreshing)
        return token

    def require_access_token(self) -> str:
        """
        Like get_access_token(), but raises when no token is available.

        Raises:
            AuthenticationRequiredError: No account signed in or refresh failed.
        """
        token = self.get_access_token()
        if token is None:
            raise AuthenticationRequiredError(
                "Google account not connected or token expired",
                details={"client_id": self.client_id}
            )
        return token

    def force_refresh(self) -> str | None:
        """Refresh even though the stored token looked valid (HTTP 401)."""
        self._transition(AuthState.TOKEN_EXPIRED_PENDING_REFRESH)
        token = self._supplier.force_refresh(self.client_id)
        self._after_token_lookup(token, refreshing=True)
        return token

    def _after_token_lookup(self, token: str | None, refreshing: bool) -> None:
        if token is not None:
            self._transition(AuthState.AUTHENTICATED)
        elif refreshing:
            self._transition(AuthState.REFRESH_FAILED)
            self._transition(AuthState.UNAUTHENTICATED)
        else:
            self._transition(AuthState.UNAUTHENTICATED)

    # =========================================================================
    # Status
    # =========================================================================

    def credentials(self) -> CredentialRecord:
        return self._store.load()

    def is_connected(self) -> bool:
        return self._store.is_connected()

    @property
    def account_email(self) -> str | None:
        return self._store.load().email or None
