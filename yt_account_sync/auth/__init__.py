"""
Google account authentication for yt-account-sync.

This package acquires and keeps a valid OAuth access token:
    - models: TokenResponse, CredentialRecord and the SignInOutcome variants
    - token_client: Token endpoint grants, consent URL, userinfo lookup
    - credentials: Persistence of the credential record
    - supplier: Valid bearer tokens with transparent refresh
    - sign_in: Native provider first, browser consent flow as fallback
    - redirect: Loopback listener capturing the browser redirect
    - session: AuthSession tying it together, with AuthState

Usage:
    from yt_account_sync.auth import build_auth_session

    session = build_auth_session(config)
    outcome = session.sign_in()
"""

from yt_account_sync.auth.credentials import CredentialStore
from yt_account_sync.auth.models import (
    CredentialRecord,
    ExternalFlowStarted,
    Failed,
    NativeCredential,
    NativeSuccess,
    SignInOutcome,
    TokenResponse,
)
from yt_account_sync.auth.redirect import RedirectListener, RedirectResult, parse_redirect
from yt_account_sync.auth.session import AuthSession, AuthState
from yt_account_sync.auth.sign_in import (
    EnvironmentIdTokenProvider,
    NativeCredentialProvider,
    SignInOrchestrator,
)
from yt_account_sync.auth.supplier import AccessTokenSupplier
from yt_account_sync.auth.token_client import TokenExchangeClient, build_authorization_url
from yt_account_sync.core.config import Config
from yt_account_sync.core.kv_store import JsonKeyValueStore


def build_auth_session(config: Config) -> AuthSession:
    """Create an AuthSession from the application configuration."""
    store = CredentialStore(JsonKeyValueStore(config.storage.credentials_path))
    token_client = TokenExchangeClient(
        client_secret=config.google.client_secret,
        timeout=config.http.timeout
    )
    orchestrator = SignInOrchestrator(redirect_uri=config.google.redirect_uri)
    return AuthSession(config.google.client_id, store, token_client, orchestrator)


__all__ = [
    "AccessTokenSupplier",
    "AuthSession",
    "AuthState",
    "CredentialRecord",
    "CredentialStore",
    "EnvironmentIdTokenProvider",
    "ExternalFlowStarted",
    "Failed",
    "NativeCredential",
    "NativeCredentialProvider",
    "NativeSuccess",
    "RedirectListener",
    "RedirectResult",
    "SignInOrchestrator",
    "SignInOutcome",
    "TokenExchangeClient",
    "TokenResponse",
    "build_auth_session",
    "build_authorization_url",
    "parse_redirect",
]
