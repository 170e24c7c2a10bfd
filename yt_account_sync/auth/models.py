"""
Data contracts shared by the authentication components.

    TokenResponse     - Transient result of a token endpoint call
    CredentialRecord  - The four persisted credential fields
    NativeCredential  - What a native credential provider hands back
    SignInOutcome     - NativeSuccess | ExternalFlowStarted | Failed

All classes are frozen dataclasses. SignInOutcome is a plain Union so that
call sites can consume it with an exhaustive ``match`` statement.
"""

from dataclasses import dataclass, field
from typing import Any, Union


# Credential type produced by Google identity providers
GOOGLE_ID_TOKEN_CREDENTIAL_TYPE = "google_id_token"

# Error code used when an exchange fails before Google answers
EXCHANGE_FAILED = "exchange_failed"


@dataclass(frozen=True)
class TokenResponse:
    """
    Result of any token endpoint call.

    Never persisted in this shape; CredentialStore projects it into the
    credential record.

    Attributes:
        access_token: New access token, absent on failure.
        refresh_token: Present on first consent, usually absent on refresh.
        expires_in: Lifetime of access_token in seconds.
        token_type: Normally "Bearer".
        id_token: Identity token, when the openid scope was granted.
        error: OAuth error code ("invalid_grant", "exchange_failed", ...).
        error_description: Human-readable explanation of error.
    """
    access_token: str | None = None
    refresh_token: str | None = None
    expires_in: int | None = None
    token_type: str | None = None
    id_token: str | None = None
    error: str | None = None
    error_description: str | None = None

    @property
    def is_success(self) -> bool:
        return self.error is None and bool(self.access_token)

    @property
    def failure_reason(self) -> str:
        """Short description of why this response is not a success."""
        if self.error_description:
            return self.error_description
        if self.error:
            return self.error
        return "Token endpoint returned no access token"

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> "TokenResponse":
        """Build from the decoded token endpoint JSON, ignoring unknown keys."""
        expires_in = data.get("expires_in")
        if expires_in is not None:
            expires_in = int(expires_in)

        return cls(
            access_token=data.get("access_token"),
            refresh_token=data.get("refresh_token"),
            expires_in=expires_in,
            token_type=data.get("token_type"),
            id_token=data.get("id_token"),
            error=data.get("error"),
            error_description=data.get("error_description"),
        )

    @classmethod
    def failure(cls, description: str, error: str = EXCHANGE_FAILED) -> "TokenResponse":
        return cls(error=error, error_description=description)


@dataclass(frozen=True)
class CredentialRecord:
    """
    Persisted credential fields. Every field may be absent.

    Invariant: whenever access_token is present, expiry_ms is set.

    Attributes:
        access_token: Current OAuth access token.
        refresh_token: Long-lived token used to renew access_token.
        expiry_ms: Absolute expiry of access_token, epoch milliseconds.
        email: Google account e-mail shown to the user.
    """
    access_token: str | None = None
    refresh_token: str | None = None
    expiry_ms: int | None = None
    email: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.access_token is None and self.refresh_token is None


@dataclass(frozen=True)
class NativeCredential:
    """
    Credential returned by a native (in-process) credential provider.

    Attributes:
        type: Credential type identifier. Only GOOGLE_ID_TOKEN_CREDENTIAL_TYPE
              is accepted for sign-in.
        data: Provider payload. For Google ID tokens: 'id_token' and 'email'.
    """
    type: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NativeSuccess:
    """The native provider produced an identity assertion."""
    identity_assertion: str
    email: str


@dataclass(frozen=True)
class ExternalFlowStarted:
    """
    The browser consent page was opened.

    Completion arrives later through the redirect listener, never through
    the sign-in call. authorization_url is informational (e.g. to print it
    for the user to copy into another browser).
    """
    authorization_url: str | None = None


@dataclass(frozen=True)
class Failed:
    """Neither strategy could be started."""
    reason: str


SignInOutcome = Union[NativeSuccess, ExternalFlowStarted, Failed]
