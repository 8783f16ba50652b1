"""Mapping from logical Casdoor operations to concrete HTTP requests.

Each operation is a frozen dataclass deriving from :class:`Endpoint`.  A
variant only carries the parameters of its operation; everything tenant
specific (client id, organization, application, redirect URI) comes from the
:class:`~casdoor_client.config.CasdoorConfig` passed to :meth:`Endpoint.build`.

Building a request is pure: no network access happens here and the only
randomness is the multipart boundary, which callers may pin.

Encodings
---------
``NONE``       no body (GET)
``JSON``       ``application/json`` body
``FORM``       ``application/x-www-form-urlencoded`` body (OAuth endpoints)
``MULTIPART``  ``multipart/form-data`` body, fields written in insertion order::

    --<boundary>\\r\\n
    Content-Disposition: form-data; name="<key>"\\r\\n\\r\\n
    <value>\\r\\n
    ...
    --<boundary>--\\r\\n
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Final, Literal, Mapping
from urllib.parse import urlencode, urlparse

import httpx

from casdoor_client.config import CasdoorConfig
from casdoor_client.errors import InvalidURLError
from casdoor_client.models import PkceChallenge

if TYPE_CHECKING:  # pragma: no cover
    from casdoor_client.cookies import CookieJar

RESPONSE_TYPE_CODE: Final[str] = "code"
CHALLENGE_METHOD: Final[str] = "S256"
DEFAULT_AUTHORIZE_SCOPE: Final[str] = "profile"
DEFAULT_RENEW_SCOPE: Final[str] = "read"

JSON_HEADERS: Final[Mapping[str, str]] = {
    "accept": "application/json",
    "Content-Type": "application/json",
}


class BodyEncoding(str, Enum):
    NONE = "none"
    JSON = "json"
    FORM = "form"
    MULTIPART = "multipart"


def generate_boundary() -> str:
    """Return a fresh ``Boundary-<uuid>`` multipart boundary."""
    return f"Boundary-{uuid.uuid4()}"


def encode_multipart(fields: Mapping[str, Any], boundary: str) -> bytes:
    """Serialise *fields* as ``multipart/form-data`` with *boundary*."""
    parts: list[str] = []
    for key, value in fields.items():
        parts.append(f"--{boundary}\r\n")
        parts.append(f'Content-Disposition: form-data; name="{key}"\r\n\r\n')
        parts.append(f"{value}\r\n")
    parts.append(f"--{boundary}--\r\n")
    return "".join(parts).encode("utf-8")


# --------------------------------------------------------------------------- #
# Request descriptor                                                          #
# --------------------------------------------------------------------------- #
@dataclass(frozen=True, slots=True)
class EndpointRequest:
    """Fully-formed HTTP request, ready to hand to the transport."""

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    content: bytes | None = field(default=None, repr=False)

    @property
    def host(self) -> str | None:
        return urlparse(self.url).hostname

    def with_header(self, name: str, value: str) -> "EndpointRequest":
        """Return a copy with *name* set, replacing any case-insensitive match."""
        headers = {k: v for k, v in self.headers.items() if k.lower() != name.lower()}
        headers[name] = value
        return replace(self, headers=headers)

    def to_httpx(self) -> httpx.Request:
        return httpx.Request(
            self.method, self.url, headers=dict(self.headers), content=self.content
        )


def _assemble_url(base: str, path: str, query: Mapping[str, str] | None) -> str:
    url = f"{base}{path}"
    if query:
        url = f"{url}?{urlencode(query)}"
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidURLError(url)
    return url


def _login_query(config: CasdoorConfig, pkce: PkceChallenge) -> dict[str, str]:
    """Query shared by the web sign-in / sign-up endpoints."""
    return {
        "clientId": config.client_id,
        "responseType": RESPONSE_TYPE_CODE,
        "redirectUri": config.redirect_uri,
        "scope": DEFAULT_AUTHORIZE_SCOPE,
        "code_challenge_method": CHALLENGE_METHOD,
        "code_challenge": pkce.code_challenge,
    }


# --------------------------------------------------------------------------- #
# Endpoint base                                                               #
# --------------------------------------------------------------------------- #
class Endpoint:
    """Base for one logical Casdoor operation."""

    __slots__ = ()

    path: ClassVar[str] = ""
    method: ClassVar[str] = "POST"
    encoding: ClassVar[BodyEncoding] = BodyEncoding.NONE
    base: ClassVar[Literal["endpoint", "api_endpoint"]] = "api_endpoint"

    def url_path(self) -> str:
        return self.path

    def headers(self) -> dict[str, str]:
        return {}

    def body(self, config: CasdoorConfig) -> Mapping[str, Any] | None:
        return None

    def query(self, config: CasdoorConfig) -> Mapping[str, str] | None:
        return None

    def build(self, config: CasdoorConfig, *, boundary: str | None = None) -> EndpointRequest:
        """Return the :class:`EndpointRequest` for this operation.

        Raises
        ------
        InvalidURLError
            If the assembled URL is not absolute.
        """
        url = _assemble_url(getattr(config, self.base), self.url_path(), self.query(config))
        headers = self.headers()
        body = self.body(config)
        content: bytes | None = None

        if body is not None:
            if self.encoding is BodyEncoding.MULTIPART:
                boundary = boundary or generate_boundary()
                headers["Content-Type"] = f"multipart/form-data; boundary={boundary}"
                content = encode_multipart(body, boundary)
            elif self.encoding is BodyEncoding.FORM:
                headers["Content-Type"] = "application/x-www-form-urlencoded"
                content = urlencode(body).encode("ascii")
            elif self.encoding is BodyEncoding.JSON:
                headers.setdefault("Content-Type", "application/json")
                content = json.dumps(body).encode("utf-8")

        return EndpointRequest(method=self.method, url=url, headers=headers, content=content)

    def get_request(
        self,
        config: CasdoorConfig,
        cookie_jar: "CookieJar | None" = None,
        *,
        boundary: str | None = None,
    ) -> EndpointRequest:
        """Build the request and attach cookies recorded for its host."""
        request = self.build(config, boundary=boundary)
        if cookie_jar is not None:
            request = cookie_jar.apply_to(request)
        return request


# --------------------------------------------------------------------------- #
# OAuth endpoints                                                             #
# --------------------------------------------------------------------------- #
@dataclass(frozen=True, slots=True)
class Authorize(Endpoint):
    """Browser authorize page; ``signup=True`` targets the sign-up page."""

    pkce: PkceChallenge = field(repr=False)
    scope: str | None = None
    state: str | None = None
    signup: bool = False

    method: ClassVar[str] = "GET"
    base: ClassVar[Literal["endpoint", "api_endpoint"]] = "endpoint"

    def url_path(self) -> str:
        return "signup/oauth/authorize" if self.signup else "login/oauth/authorize"

    def query(self, config: CasdoorConfig) -> Mapping[str, str]:
        return {
            "client_id": config.client_id,
            "redirect_uri": config.redirect_uri,
            "response_type": RESPONSE_TYPE_CODE,
            "scope": self.scope or DEFAULT_AUTHORIZE_SCOPE,
            "state": self.state or config.application_name,
            "nonce": self.pkce.nonce,
            "code_challenge_method": CHALLENGE_METHOD,
            "code_challenge": self.pkce.code_challenge,
        }


def _with_secret(config: CasdoorConfig, form: dict[str, str]) -> dict[str, str]:
    if config.client_secret:
        form["client_secret"] = config.client_secret
    return form


@dataclass(frozen=True, slots=True)
class ExchangeToken(Endpoint):
    code: str = field(repr=False)
    code_verifier: str = field(repr=False)

    path: ClassVar[str] = "login/oauth/access_token"
    encoding: ClassVar[BodyEncoding] = BodyEncoding.FORM

    def body(self, config: CasdoorConfig) -> Mapping[str, str]:
        return _with_secret(
            config,
            {
                "client_id": config.client_id,
                "code": self.code,
                "code_verifier": self.code_verifier,
                "grant_type": "authorization_code",
            },
        )


@dataclass(frozen=True, slots=True)
class RenewToken(Endpoint):
    refresh_token: str = field(repr=False)
    scope: str | None = None

    path: ClassVar[str] = "login/oauth/refresh_token"
    encoding: ClassVar[BodyEncoding] = BodyEncoding.FORM

    def body(self, config: CasdoorConfig) -> Mapping[str, str]:
        return _with_secret(
            config,
            {
                "client_id": config.client_id,
                "grant_type": "refresh_token",
                "scope": self.scope or DEFAULT_RENEW_SCOPE,
                "refresh_token": self.refresh_token,
            },
        )


@dataclass(frozen=True, slots=True)
class Logout(Endpoint):
    id_token: str = field(repr=False)
    state: str | None = None

    path: ClassVar[str] = "login/oauth/logout"
    encoding: ClassVar[BodyEncoding] = BodyEncoding.FORM

    def body(self, config: CasdoorConfig) -> Mapping[str, str]:
        return {
            "id_token_hint": self.id_token,
            "state": self.state or config.application_name,
        }


# --------------------------------------------------------------------------- #
# Account / verification endpoints                                            #
# --------------------------------------------------------------------------- #
@dataclass(frozen=True, slots=True)
class SendVerificationCode(Endpoint):
    """Ask Casdoor to deliver a one-time code to *dest*.

    Sent as multipart, matching the provider's web form.  ``checkUser`` names
    the account whose contact details must own *dest*; it is only meaningful
    for ``method="forget"``.
    """

    dest: str
    method_name: str
    dest_type: str = "email"
    country_code: str = ""

    path: ClassVar[str] = "send-verification-code"
    encoding: ClassVar[BodyEncoding] = BodyEncoding.MULTIPART

    def body(self, config: CasdoorConfig) -> Mapping[str, str]:
        return {
            "captchaType": "none",
            "captchaToken": "undefined",
            "clientSecret": "undefined",
            "method": self.method_name,
            "countryCode": self.country_code,
            "dest": self.dest,
            "type": self.dest_type,
            "applicationId": config.application_id,
            "checkUser": self.dest if self.method_name == "forget" else "",
        }


@dataclass(frozen=True, slots=True)
class GetEmailAndPhone(Endpoint):
    username: str

    path: ClassVar[str] = "get-email-and-phone"
    method: ClassVar[str] = "GET"

    def headers(self) -> dict[str, str]:
        return dict(JSON_HEADERS)

    def query(self, config: CasdoorConfig) -> Mapping[str, str]:
        return {"organization": config.organization_name, "username": self.username}


@dataclass(frozen=True, slots=True)
class VerifyCode(Endpoint):
    username: str
    code: str = field(repr=False)

    path: ClassVar[str] = "verify-code"
    encoding: ClassVar[BodyEncoding] = BodyEncoding.JSON

    def headers(self) -> dict[str, str]:
        return dict(JSON_HEADERS)

    def body(self, config: CasdoorConfig) -> Mapping[str, str]:
        return {
            "application": config.application_name,
            "organization": config.organization_name,
            "username": self.username,
            "name": self.username,
            "code": self.code,
            "type": "login",
        }


@dataclass(frozen=True, slots=True)
class SetPassword(Endpoint):
    """Replace the password of *username* after a successful code check.

    Casdoor ignores ``oldPassword`` when a verification code is supplied; the
    web client sends the new password in both fields.
    """

    username: str
    password: str = field(repr=False)
    code: str = field(repr=False)

    path: ClassVar[str] = "set-password"
    encoding: ClassVar[BodyEncoding] = BodyEncoding.MULTIPART

    def body(self, config: CasdoorConfig) -> Mapping[str, str]:
        return {
            "userOwner": config.organization_name,
            "userName": self.username,
            "oldPassword": self.password,
            "newPassword": self.password,
            "code": self.code,
        }


# --------------------------------------------------------------------------- #
# Web sign-in / sign-up endpoints                                             #
# --------------------------------------------------------------------------- #
@dataclass(frozen=True, slots=True)
class SignUp(Endpoint):
    email_code: str = field(repr=False)
    email: str
    name: str
    password: str = field(repr=False)
    pkce: PkceChallenge = field(repr=False)

    path: ClassVar[str] = "signup"
    encoding: ClassVar[BodyEncoding] = BodyEncoding.JSON

    def body(self, config: CasdoorConfig) -> Mapping[str, str]:
        return {
            "emailCode": self.email_code,
            "organization": config.organization_name,
            "application": config.application_name,
            "email": self.email,
            "name": self.name,
            "password": self.password,
        }

    def query(self, config: CasdoorConfig) -> Mapping[str, str]:
        return _login_query(config, self.pkce)


@dataclass(frozen=True, slots=True)
class ContinueSignUp(Endpoint):
    """Second leg of an interactive sign-up: trade the session for a code."""

    pkce: PkceChallenge = field(repr=False)

    path: ClassVar[str] = "login"
    encoding: ClassVar[BodyEncoding] = BodyEncoding.JSON

    def body(self, config: CasdoorConfig) -> Mapping[str, str]:
        return {"application": config.application_name, "type": "code"}

    def query(self, config: CasdoorConfig) -> Mapping[str, str]:
        return _login_query(config, self.pkce)


@dataclass(frozen=True, slots=True)
class SignIn(Endpoint):
    """Password (or MFA) sign-in with a caller-supplied body."""

    payload: Mapping[str, Any] = field(repr=False)
    pkce: PkceChallenge = field(repr=False)

    path: ClassVar[str] = "login"
    encoding: ClassVar[BodyEncoding] = BodyEncoding.JSON

    def headers(self) -> dict[str, str]:
        return dict(JSON_HEADERS)

    def body(self, config: CasdoorConfig) -> Mapping[str, Any]:
        return dict(self.payload)

    def query(self, config: CasdoorConfig) -> Mapping[str, str]:
        return _login_query(config, self.pkce)
