"""PKCE values for the Casdoor authorize / token exchange.

Casdoor is always called with ``code_challenge_method=S256``, so the plain
method is not offered.  Three values come out of here for each sign-in
attempt:

``code_verifier``
    Kept by the client and sent only to ``login/oauth/access_token``.
``code_challenge``
    ``BASE64URL(SHA256(verifier))`` without ``=`` padding; goes in the
    authorize URL and the web sign-in / sign-up query.
``nonce``
    Opaque value echoed back in the ID token; independent of the verifier.

Verifier and nonce are drawn from the RFC 7636 unreserved alphabet.  None of
these values are logged here.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
import string
from typing import Final

DEFAULT_LENGTH: Final[int] = 64
# RFC 7636 §4.1 bounds
MIN_LENGTH: Final[int] = 43
MAX_LENGTH: Final[int] = 128
UNRESERVED: Final[str] = string.ascii_letters + string.digits + "-._~"


def _random_unreserved(length: int) -> str:
    if not MIN_LENGTH <= length <= MAX_LENGTH:
        raise ValueError(f"length must be {MIN_LENGTH}-{MAX_LENGTH} characters, got {length}")
    return "".join(secrets.choice(UNRESERVED) for _ in range(length))


def generate_code_verifier(length: int = DEFAULT_LENGTH) -> str:
    """Return a fresh code verifier.

    Parameters
    ----------
    length:
        Number of characters, 43 to 128 inclusive.

    Raises
    ------
    ValueError
        If *length* is outside the RFC 7636 bounds.
    """
    return _random_unreserved(length)


def code_challenge_s256(verifier: str) -> str:
    """Derive the S256 code challenge for *verifier*.

    The verifier is hashed as UTF-8, so the result for the RFC 7636 appendix B
    verifier is ``E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM``.
    """
    digest = hashlib.sha256(verifier.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def generate_nonce(length: int = DEFAULT_LENGTH) -> str:
    """Return a random nonce for the authorize URL."""
    return _random_unreserved(length)
