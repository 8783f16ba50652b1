"""Exception types raised by the Casdoor client.

Only lightweight, **data-carrying** exceptions live here so that callers can
turn them into HTTP responses or user-friendly messages.  ``to_payload()``
never includes secrets: tokens, codes and verifiers are not stored on any
exception.
"""

from __future__ import annotations


class CasdoorError(RuntimeError):
    """Base class for every failure surfaced by :mod:`casdoor_client`."""

    kind: str = "casdoor_error"

    def to_payload(self) -> dict[str, str]:
        """Return a JSON-serialisable payload **without secrets**."""
        return {"error": self.kind, "message": str(self)}


class InvalidURLError(CasdoorError):
    """Raised when a request URL cannot be assembled."""

    kind = "invalid_url"

    def __init__(self, url: str | None = None, message: str | None = None) -> None:
        super().__init__(message or "Invalid URL.")
        self.url: str | None = url


class ResponseError(CasdoorError):
    """Raised when the provider envelope reports ``status == "error"``."""

    kind = "response_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message: str = message


class MissingRefreshTokenError(CasdoorError):
    """Raised when a token endpoint answers without a refresh token.

    Casdoor reports token-endpoint failures by putting the error text into the
    ``access_token`` field, so that value becomes the message.
    """

    kind = "missing_refresh_token"

    def __init__(self, message: str) -> None:
        super().__init__(message or "Token response did not include a refresh token.")
        self.message: str = message


class MalformedResponseError(CasdoorError):
    """Raised when a response body cannot be decoded into its expected shape."""

    kind = "malformed_response"


class MissingVerifierError(CasdoorError, ValueError):
    """Raised when a PKCE-bound request is made before any verifier exists."""

    kind = "missing_verifier"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message or "No PKCE verifier available. Build a sign-in URL first."
        )


class TransportError(CasdoorError):
    """Raised for network failures and non-2xx responses without an envelope."""

    kind = "transport_error"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code: int | None = status_code

    def to_payload(self) -> dict[str, str]:
        payload = super().to_payload()
        if self.status_code is not None:
            payload["status_code"] = str(self.status_code)
        return payload
