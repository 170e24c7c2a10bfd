"""
Sign-in orchestration.

Two strategies, tried in order:

1. Native credential provider (in-process). yt-account-sync ships an
   environment-based provider that picks up a Google identity token from
   YTSYNC_GOOGLE_ID_TOKEN (e.g. exported by a desktop credential helper).
   The identity token is later exchanged for API tokens with the JWT
   bearer grant.

2. Browser consent flow. The Google consent page is opened in the user's
   browser; the authorization code comes back later through the loopback
   redirect listener, not through this module.

Whatever happens, sign_in() returns exactly one SignInOutcome and never
raises: every native failure (provider missing, cancelled, unexpected
credential type, malformed token) falls back to the browser flow.
"""

import os
import webbrowser
from abc import ABC, abstractmethod
from typing import Any, Callable

import jwt

from yt_account_sync.auth.models import (
    GOOGLE_ID_TOKEN_CREDENTIAL_TYPE,
    ExternalFlowStarted,
    Failed,
    NativeCredential,
    NativeSuccess,
    SignInOutcome,
)
from yt_account_sync.auth.token_client import build_authorization_url
from yt_account_sync.core.exceptions import AccountSyncError
from yt_account_sync.core.logger import get_logger

logger = get_logger(__name__)


ENV_ID_TOKEN = "YTSYNC_GOOGLE_ID_TOKEN"


class NativeCredentialUnavailable(AccountSyncError):
    """The native provider has no credential to offer."""
    pass


class NativeCredentialProvider(ABC):
    """Source of credentials that does not need the browser."""

    @abstractmethod
    def get_credential(self, client_id: str) -> NativeCredential:
        """
        Return a credential for the given OAuth client.

        Raises:
            Exception: Any failure; the orchestrator treats it as "use the browser".
        """


class EnvironmentIdTokenProvider(NativeCredentialProvider):
    """
    Reads a Google identity token from the environment.

    The e-mail is taken from the token's unverified `email` claim; Google
    verifies the token itself when it is exchanged.
    """

    def __init__(self, variable: str = ENV_ID_TOKEN) -> None:
        self.variable = variable

    def get_credential(self, client_id: str) -> NativeCredential:
        id_token = os.environ.get(self.variable, "").strip()
        if not id_token:
            raise NativeCredentialUnavailable(
                f"{self.variable} is not set",
                details={"variable": self.variable}
            )

        claims = decode_jwt_claims(id_token)
        return NativeCredential(
            type=GOOGLE_ID_TOKEN_CREDENTIAL_TYPE,
            data={"id_token": id_token, "email": claims.get("email", "")},
        )


def decode_jwt_claims(token: str) -> dict[str, Any]:
    """
    Decode the payload segment of a JWT without verifying it.

    Raises:
        ValueError: If the token is not a JWT with a JSON object payload.
    """
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.InvalidTokenError as e:
        raise ValueError(f"Identity token is not a valid JWT: {e}") from e

    if not isinstance(claims, dict):
        raise ValueError("Identity token payload is not a JSON object")
    return claims


def process_credential_response(credential: Any) -> tuple[str, str] | None:
    """
    Extract (identity token, e-mail) from a native credential.

    Returns:
        The pair, or None if the credential is not a Google identity token.
    """
    if (
        not isinstance(credential, NativeCredential)
        or credential.type != GOOGLE_ID_TOKEN_CREDENTIAL_TYPE
    ):
        return None

    id_token = credential.data.get("id_token")
    if not isinstance(id_token, str) or not id_token:
        return None

    email = credential.data.get("email")
    return id_token, email if isinstance(email, str) else ""


class SignInOrchestrator:
    """
    Tries the native provider, then the browser.

    Attributes:
        redirect_uri: Redirect URI embedded in the consent page URL.
    """

    def __init__(
        self,
        redirect_uri: str,
        native_provider: NativeCredentialProvider | None = None,
        browser_launcher: Callable[[str], bool] = webbrowser.open
    ) -> None:
        self.redirect_uri = redirect_uri
        self._native_provider = native_provider or EnvironmentIdTokenProvider()
        self._browser_launcher = browser_launcher

    def sign_in(self, client_id: str, login_hint: str | None = None) -> SignInOutcome:
        """
        Run one sign-in attempt.

        Returns:
            NativeSuccess with the identity token, ExternalFlowStarted once
            the consent page is open, or Failed if no browser could be
            launched.
        """
        try:
            credential = self._native_provider.get_credential(client_id)
            result = process_credential_response(credential)
            if result is not None:
                identity_assertion, email = result
                logger.info("Obtained Google identity token from native provider")
                return NativeSuccess(identity_assertion=identity_assertion, email=email)

            credential_type = getattr(credential, "type", type(credential).__name__)
            logger.info(f"Unexpected credential type '{credential_type}', using browser sign-in")
        except Exception as e:
            logger.info(f"Native sign-in unavailable, using browser sign-in: {e}")

        return self.launch_browser_sign_in(client_id, login_hint)

    def launch_browser_sign_in(
        self,
        client_id: str,
        login_hint: str | None = None
    ) -> SignInOutcome:
        authorization_url = build_authorization_url(client_id, self.redirect_uri, login_hint)

        try:
            opened = self._browser_launcher(authorization_url)
        except Exception as e:
            logger.error(f"Browser sign-in could not be started: {e}")
            return Failed(reason=str(e) or "Browser sign-in could not be started")

        if not opened:
            logger.error("No web browser available for sign-in")
            return Failed(reason="No web browser available to open the Google sign-in page")

        return ExternalFlowStarted(authorization_url=authorization_url)
