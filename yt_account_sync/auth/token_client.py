"""
Google OAuth2 token endpoint client.

Stateless request/response wrapper around the three token grants used by
yt-account-sync, plus the helpers that sit next to them in the sign-in
flow (authorization URL construction and the userinfo e-mail lookup).

Grants:
    authorization_code - Browser flow, code captured by the redirect listener
    jwt-bearer         - Native flow, Google identity token as assertion
    refresh_token      - Renewal of an expired access token

Failure policy:
    Google's own error answers (HTTP 400 with an "error" field) always come
    back as a TokenResponse carrying error/error_description.

    refresh() and exchange_identity_assertion() never raise: transport and
    decode failures are folded into TokenResponse(error="exchange_failed").

    exchange_authorization_code() raises TokenExchangeError on transport
    failure or an empty/undecodable body. The caller decides; nothing here
    retries.
"""

import dataclasses
import urllib.parse
from typing import Any

import requests

from yt_account_sync.auth.models import TokenResponse
from yt_account_sync.core.exceptions import TokenExchangeError
from yt_account_sync.core.logger import get_logger

logger = get_logger(__name__)


TOKEN_ENDPOINT = "https://oauth2.googleapis.com/token"
AUTHORIZATION_ENDPOINT = "https://accounts.google.com/o/oauth2/v2/auth"
USERINFO_ENDPOINT = "https://www.googleapis.com/oauth2/v2/userinfo"

YOUTUBE_READONLY_SCOPE = "https://www.googleapis.com/auth/youtube.readonly"
JWT_BEARER_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"

DEFAULT_TIMEOUT = 30.0


def build_authorization_url(
    client_id: str,
    redirect_uri: str,
    login_hint: str | None = None
) -> str:
    """
    Build the Google consent page URL for the browser flow.

    access_type=offline and prompt=consent make Google return a refresh
    token even when the user granted access before.

    Args:
        client_id: OAuth client ID.
        redirect_uri: Must match a redirect URI registered for the client.
        login_hint: Optional e-mail to preselect the account.

    Returns:
        The full URL with every value percent-encoded.
    """
    params = [
        ("client_id", client_id),
        ("redirect_uri", redirect_uri),
        ("response_type", "code"),
        ("scope", YOUTUBE_READONLY_SCOPE),
        ("access_type", "offline"),
        ("prompt", "consent"),
    ]
    if login_hint:
        params.append(("login_hint", login_hint))

    query = urllib.parse.urlencode(params, quote_via=urllib.parse.quote, safe="")
    return f"{AUTHORIZATION_ENDPOINT}?{query}"


class TokenExchangeClient:
    """
    Performs form-encoded POSTs against Google's token endpoint.

    Attributes:
        client_secret: Sent with every grant when set. Google "Desktop app"
                       clients require it; installed mobile clients do not.
        timeout: Seconds before any request is abandoned.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        client_secret: str | None = None,
        timeout: float = DEFAULT_TIMEOUT
    ) -> None:
        self._session = session or requests.Session()
        self.client_secret = client_secret
        self.timeout = timeout

    def exchange_authorization_code(
        self,
        code: str,
        client_id: str,
        redirect_uri: str
    ) -> TokenResponse:
        """
        Exchange an authorization code from the browser flow for tokens.

        Args:
            code: The `code` query parameter captured by the redirect listener.
            client_id: OAuth client ID.
            redirect_uri: The exact redirect URI used for the consent page.

        Returns:
            TokenResponse. Google rejections (expired code, redirect mismatch)
            come back with error fields set.

        Raises:
            TokenExchangeError: Network failure or empty/undecodable body.
        """
        return self._post_form({
            "code": code,
            "client_id": client_id,
            "grant_type": "authorization_code",
            "redirect_uri": redirect_uri,
        })

    def exchange_identity_assertion(
        self,
        assertion: str,
        client_id: str,
        scope: str = YOUTUBE_READONLY_SCOPE
    ) -> TokenResponse:
        """
        Exchange a Google identity token for API tokens (JWT bearer grant).

        Never raises; failures are reported as error fields.
        """
        try:
            return self._post_form({
                "grant_type": JWT_BEARER_GRANT_TYPE,
                "assertion": assertion,
                "client_id": client_id,
                "scope": scope,
            })
        except TokenExchangeError as e:
            logger.warning(f"Identity assertion exchange failed: {e.message}")
            return TokenResponse.failure(e.message)

    def refresh(self, refresh_token: str, client_id: str) -> TokenResponse:
        """
        Obtain a new access token from a refresh token.

        Google normally omits refresh_token in the answer; callers must keep
        the one they already have. Never raises.
        """
        try:
            return self._post_form({
                "refresh_token": refresh_token,
                "client_id": client_id,
                "grant_type": "refresh_token",
            })
        except TokenExchangeError as e:
            logger.warning(f"Token refresh failed: {e.message}")
            return TokenResponse.failure(e.message)

    def fetch_account_email(self, access_token: str) -> str | None:
        """
        Look up the signed-in account's e-mail via the userinfo endpoint.

        Returns:
            The e-mail, or None if the lookup failed for any reason.
        """
        try:
            response = self._session.get(
                USERINFO_ENDPOINT,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=self.timeout
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Failed to fetch account e-mail: {e}")
            return None

        email = data.get("email") if isinstance(data, dict) else None
        return email if isinstance(email, str) and email else None

    def _post_form(self, form: dict[str, str]) -> TokenResponse:
        if self.client_secret:
            form = {**form, "client_secret": self.client_secret}

        grant_type = form["grant_type"]
        logger.debug(f"POST {TOKEN_ENDPOINT} (grant_type={grant_type})")

        try:
            response = self._session.post(
                TOKEN_ENDPOINT,
                data=form,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise TokenExchangeError(
                f"Token endpoint request failed: {e}",
                details={"grant_type": grant_type, "original_error": str(e)}
            ) from e

        if not response.content:
            raise TokenExchangeError(
                "Token endpoint returned an empty response body",
                details={"grant_type": grant_type, "status_code": response.status_code}
            )

        try:
            data: Any = response.json()
            if not isinstance(data, dict):
                raise ValueError("expected a JSON object")
            token = TokenResponse.from_json(data)
        except (ValueError, TypeError) as e:
            raise TokenExchangeError(
                f"Token endpoint returned an unreadable response: {e}",
                details={"grant_type": grant_type, "status_code": response.status_code}
            ) from e

        if not response.ok and token.error is None:
            token = dataclasses.replace(
                token,
                access_token=None,
                error=f"http_{response.status_code}",
                error_description=response.reason or None
            )

        if token.error:
            logger.debug(f"Token endpoint error for {grant_type}: {token.error}")

        return token
