"""Typed, immutable records used by the Casdoor client."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from casdoor_client.clock import Clock, default_clock
from casdoor_client.errors import MalformedResponseError, MissingRefreshTokenError
from casdoor_client.pkce import code_challenge_s256, generate_code_verifier, generate_nonce


class AuthType(str, Enum):
    """Values Casdoor returns in ``data`` after a web sign-in."""

    MFA = "NextMfa"
    SOCIAL_LOGIN = "SocialLogin"
    LOGIN = "Login"


class MfaType(str, Enum):
    """Delivery channels for verification codes."""

    EMAIL = "email"
    PHONE = "phone"
    APP = "app"
    SMS = "sms"


class FlowState(str, Enum):
    """Position of a :class:`~casdoor_client.client.CasdoorClient` in the login flow."""

    IDLE = "idle"
    AWAITING_AUTHORIZATION = "awaiting_authorization"
    AWAITING_CODE_EXCHANGE = "awaiting_code_exchange"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"
    LOGGED_OUT = "logged_out"


@dataclass(frozen=True, slots=True)
class PkceChallenge:
    """Verifier, S256 challenge and nonce for one authorization attempt.

    The verifier must be kept until the matching code exchange.  Generating a
    new challenge supersedes the previous one.
    """

    code_verifier: str
    code_challenge: str
    nonce: str

    @classmethod
    def generate(cls) -> "PkceChallenge":
        verifier = generate_code_verifier()
        return cls(
            code_verifier=verifier,
            code_challenge=code_challenge_s256(verifier),
            nonce=generate_nonce(),
        )

    @classmethod
    def from_verifier(cls, verifier: str, nonce: str | None = None) -> "PkceChallenge":
        """Rebuild a challenge from a verifier the caller kept elsewhere."""
        return cls(
            code_verifier=verifier,
            code_challenge=code_challenge_s256(verifier),
            nonce=nonce or generate_nonce(),
        )


@dataclass(frozen=True, slots=True)
class TokenPair:
    """Snapshot of an OAuth access/refresh token pair returned by Casdoor."""

    access_token: str
    refresh_token: str
    token_type: str
    expires_in: int
    obtained_at: int
    id_token: str | None = None
    scope: str | None = None
    expires_at: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "expires_at", self.obtained_at + self.expires_in)

    @property
    def ttl(self) -> int:
        """Seconds between *obtained_at* and *expires_at*."""
        return self.expires_at - self.obtained_at

    def is_expired(self, *, clock: Clock = default_clock, grace_seconds: int = 0) -> bool:
        """Return *True* once fewer than *grace_seconds* of validity remain."""
        return (self.expires_at - clock()) <= grace_seconds

    @classmethod
    def from_payload(
        cls, payload: Mapping[str, Any], *, clock: Clock = default_clock
    ) -> "TokenPair":
        """Decode a token-endpoint JSON body.

        Raises
        ------
        MalformedResponseError
            If ``access_token`` is absent or not a string.
        MissingRefreshTokenError
            If ``refresh_token`` is absent or empty; Casdoor then carries its
            error text in ``access_token``.
        """
        access_token = payload.get("access_token")
        if not isinstance(access_token, str):
            raise MalformedResponseError("token response missing access_token")

        refresh_token = payload.get("refresh_token")
        if not isinstance(refresh_token, str) or not refresh_token:
            raise MissingRefreshTokenError(access_token)

        try:
            expires_in = int(payload.get("expires_in") or 0)
        except (TypeError, ValueError):
            raise MalformedResponseError("token response has invalid expires_in") from None

        return cls(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type=str(payload.get("token_type") or "Bearer"),
            expires_in=expires_in,
            obtained_at=int(clock()),
            id_token=payload.get("id_token") or None,
            scope=payload.get("scope") or None,
        )
