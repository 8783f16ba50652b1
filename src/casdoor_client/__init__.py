"""Async client SDK for the Casdoor identity provider.

Sub-modules
-----------
clock
    Injectable time source (`Clock`, `fixed_clock`).
pkce
    Proof-Key for Code Exchange helpers (verifier, S256 challenge, nonce).
config
    Immutable :class:`CasdoorConfig`, optionally loaded from the environment.
models
    Immutable dataclasses for PKCE state and token pairs.
responses
    Casdoor ``{status, msg, data, data2}`` envelope decoding.
endpoints
    Pure mapping from logical operations to HTTP requests.
cookies
    Per-host cookie jar replayed across a provider session.
session
    ``httpx`` transport owner carrying the cookie jar.
client
    :class:`CasdoorClient` façade orchestrating the flows.
errors
    Exception types raised by the client.
log_utils
    Secret masking and the context-carrying client logger.

The names most callers need are re-exported below.
"""

from __future__ import annotations

from .clock import Clock, default_clock, fixed_clock  # noqa: F401
from .pkce import code_challenge_s256, generate_code_verifier, generate_nonce  # noqa: F401
from .config import CasdoorConfig  # noqa: F401
from .models import AuthType, FlowState, MfaType, PkceChallenge, TokenPair  # noqa: F401
from .responses import (  # noqa: F401
    AuthCodeResponse,
    DefaultResponse,
    EmailAndPhone,
    EmailAndPhoneResponse,
    LoginResponse,
    NoDataResponse,
    ProviderResponse,
)
from .endpoints import BodyEncoding, Endpoint, EndpointRequest  # noqa: F401
from .cookies import CookieJar  # noqa: F401
from .session import CasdoorSession  # noqa: F401
from .client import CasdoorClient  # noqa: F401
from .errors import (  # noqa: F401
    CasdoorError,
    InvalidURLError,
    MalformedResponseError,
    MissingRefreshTokenError,
    MissingVerifierError,
    ResponseError,
    TransportError,
)
from .log_utils import get_client_logger, mask_sensitive  # noqa: F401

__all__ = [
    # clock
    "Clock",
    "default_clock",
    "fixed_clock",
    # pkce
    "generate_code_verifier",
    "code_challenge_s256",
    "generate_nonce",
    # config / models
    "CasdoorConfig",
    "AuthType",
    "FlowState",
    "MfaType",
    "PkceChallenge",
    "TokenPair",
    # responses
    "ProviderResponse",
    "NoDataResponse",
    "DefaultResponse",
    "AuthCodeResponse",
    "LoginResponse",
    "EmailAndPhone",
    "EmailAndPhoneResponse",
    # request building / transport
    "BodyEncoding",
    "Endpoint",
    "EndpointRequest",
    "CookieJar",
    "CasdoorSession",
    "CasdoorClient",
    # errors
    "CasdoorError",
    "InvalidURLError",
    "MalformedResponseError",
    "MissingRefreshTokenError",
    "MissingVerifierError",
    "ResponseError",
    "TransportError",
    # logging helpers
    "get_client_logger",
    "mask_sensitive",
]
