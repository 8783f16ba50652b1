"""CasdoorClient – façade orchestrating the Casdoor authentication flows.

Interactive login flow::

    IDLE -> AWAITING_AUTHORIZATION   get_signin_url() / get_signup_url()
         -> AWAITING_CODE_EXCHANGE   caller reports the redirect via
                                     request_oauth_access_token(code)
         -> AUTHENTICATED            TokenPair returned
         -> REFRESHING -> AUTHENTICATED   renew_token()
         -> LOGGED_OUT               logout()

PKCE state
----------
``get_signin_url`` stores the freshly generated :class:`PkceChallenge` on the
client (last one wins) and ``request_oauth_access_token`` reads it back.
Callers running several authorization attempts at once use
:meth:`CasdoorClient.create_signin_request` instead and thread the returned
challenge into ``request_oauth_access_token(code, pkce=...)``.

The web sign-in / sign-up and password-recovery operations go through the
shared :class:`~casdoor_client.session.CasdoorSession` so provider cookies
carry over between steps.  The recovery steps are *not* chained: the caller
sequences ``forgot_password`` -> ``verify_code`` -> ``set_password``.

SECURITY NOTE
-------------
No raw secrets (codes, verifiers, access / refresh tokens, passwords) are
ever logged; see :func:`casdoor_client.log_utils.mask_sensitive`.
"""

from __future__ import annotations

from types import TracebackType
from typing import Any, Mapping, TypeVar

import httpx

from casdoor_client.clock import Clock, default_clock
from casdoor_client.config import CasdoorConfig
from casdoor_client.endpoints import (
    Authorize,
    ContinueSignUp,
    Endpoint,
    ExchangeToken,
    GetEmailAndPhone,
    Logout,
    RenewToken,
    SendVerificationCode,
    SetPassword,
    SignIn,
    SignUp,
    VerifyCode,
)
from casdoor_client.errors import (
    InvalidURLError,
    MalformedResponseError,
    MissingVerifierError,
    TransportError,
)
from casdoor_client.log_utils import get_client_logger, mask_sensitive
from casdoor_client.models import FlowState, MfaType, PkceChallenge, TokenPair
from casdoor_client.responses import (
    AuthCodeResponse,
    DefaultResponse,
    EmailAndPhone,
    EmailAndPhoneResponse,
    LoginResponse,
    NoDataResponse,
    ProviderResponse,
)
from casdoor_client.session import CasdoorSession

R = TypeVar("R", bound=ProviderResponse)

_LOGIN_PATH = "/login/oauth/authorize"
_SIGNUP_PATH = "/signup/oauth/authorize"


def _decode_json(response: httpx.Response, *, envelope: bool) -> Any:
    """Return the parsed JSON body of *response*.

    A non-2xx answer is only decoded when it still carries a provider body
    (an envelope with ``status`` or a token response); anything else is a
    :class:`TransportError`.
    """
    try:
        payload = response.json()
    except ValueError:
        if response.is_success:
            raise MalformedResponseError("response body is not valid JSON") from None
        raise TransportError(
            f"HTTP {response.status_code} from {response.request.url.path}",
            status_code=response.status_code,
        ) from None

    if not response.is_success:
        marker = "status" if envelope else "access_token"
        if not isinstance(payload, dict) or marker not in payload:
            raise TransportError(
                f"HTTP {response.status_code} from {response.request.url.path}",
                status_code=response.status_code,
            )
    return payload


class CasdoorClient:
    """Async Casdoor SDK entry point."""

    def __init__(
        self,
        config: CasdoorConfig,
        *,
        session: CasdoorSession | None = None,
        clock: Clock = default_clock,
    ) -> None:
        self.config = config
        self.session = session or CasdoorSession()
        self._clock = clock
        self._pkce: PkceChallenge | None = None
        self.flow_state: FlowState = FlowState.IDLE
        self._log = get_client_logger(
            base_logger_name="casdoor-client.client",
            application=config.application_name,
            organization=config.organization_name,
        )

    # ------------------------------------------------------------------ #
    # PKCE state                                                         #
    # ------------------------------------------------------------------ #
    @property
    def pkce(self) -> PkceChallenge | None:
        """Challenge of the most recent authorization attempt, if any."""
        return self._pkce

    @property
    def code_verifier(self) -> str | None:
        return self._pkce.code_verifier if self._pkce else None

    def setup_session(self) -> PkceChallenge:
        """Start a fresh web sign-in attempt; recorded cookies are kept."""
        self._pkce = PkceChallenge.generate()
        return self._pkce

    def _require_pkce(self, pkce: PkceChallenge | None = None) -> PkceChallenge:
        pkce = pkce or self._pkce
        if pkce is None:
            raise MissingVerifierError()
        return pkce

    # ------------------------------------------------------------------ #
    # Authorize URLs                                                     #
    # ------------------------------------------------------------------ #
    def create_signin_request(
        self, scope: str | None = None, state: str | None = None
    ) -> tuple[str, PkceChallenge]:
        """Return ``(authorize_url, pkce)`` without touching client state."""
        pkce = PkceChallenge.generate()
        request = Authorize(pkce=pkce, scope=scope, state=state).build(self.config)
        return request.url, pkce

    def get_signin_url(self, scope: str | None = None, state: str | None = None) -> str:
        """Build the authorize URL and remember its PKCE challenge.

        The URL is not fetched; the caller redirects the browser to it.

        Raises
        ------
        InvalidURLError
            If the URL cannot be assembled.
        """
        url, pkce = self.create_signin_request(scope=scope, state=state)
        self._pkce = pkce
        self.flow_state = FlowState.AWAITING_AUTHORIZATION
        self._log.debug("Built sign-in URL challenge=%s", mask_sensitive(pkce.code_challenge, 6))
        return url

    def get_signup_url(self, scope: str | None = None, state: str | None = None) -> str:
        """Like :meth:`get_signin_url` but targeting the sign-up page."""
        url = self.get_signin_url(scope=scope, state=state).replace(
            _LOGIN_PATH, _SIGNUP_PATH, 1
        )
        if _SIGNUP_PATH not in url:
            raise InvalidURLError(url, "sign-up URL could not be derived")
        return url

    # ------------------------------------------------------------------ #
    # OAuth token endpoints                                              #
    # ------------------------------------------------------------------ #
    async def _request_tokens(self, endpoint: Endpoint) -> TokenPair:
        request = endpoint.get_request(self.config, self.session.cookie_jar)
        response = await self.session.send(request)
        payload = _decode_json(response, envelope=False)
        if not isinstance(payload, dict):
            raise MalformedResponseError("token response is not a JSON object")
        return TokenPair.from_payload(payload, clock=self._clock)

    async def request_oauth_access_token(
        self, code: str, *, pkce: PkceChallenge | None = None
    ) -> TokenPair:
        """Exchange an authorization *code* for tokens.

        Uses *pkce* when given, otherwise the challenge stored by the last
        :meth:`get_signin_url` / :meth:`setup_session` call.

        Raises
        ------
        MissingVerifierError
            If no PKCE challenge is available.
        MissingRefreshTokenError
            If Casdoor answered without a refresh token.
        """
        challenge = self._require_pkce(pkce)
        self.flow_state = FlowState.AWAITING_CODE_EXCHANGE
        self._log.info("Exchanging authorization code=%s", mask_sensitive(code))
        tokens = await self._request_tokens(
            ExchangeToken(code=code, code_verifier=challenge.code_verifier)
        )
        if pkce is None or pkce is self._pkce:
            self._pkce = None
        self.flow_state = FlowState.AUTHENTICATED
        self._log.info("Obtained tokens (expires in %ss)", tokens.expires_in)
        return tokens

    async def renew_token(self, refresh_token: str, scope: str | None = None) -> TokenPair:
        """Trade *refresh_token* for a new :class:`TokenPair`."""
        previous = self.flow_state
        self.flow_state = FlowState.REFRESHING
        self._log.info("Refreshing token refresh_token=%s", mask_sensitive(refresh_token))
        try:
            tokens = await self._request_tokens(
                RenewToken(refresh_token=refresh_token, scope=scope)
            )
        except BaseException:
            self.flow_state = previous
            raise
        self.flow_state = FlowState.AUTHENTICATED
        return tokens

    async def logout(self, id_token: str, state: str | None = None) -> bool:
        """End the provider session; return *True* when Casdoor reports ``Affected``."""
        result = await self._execute(Logout(id_token=id_token, state=state), NoDataResponse)
        self.flow_state = FlowState.LOGGED_OUT
        self._pkce = None
        self._log.info("Logged out affected=%s", result.affected)
        return result.affected

    # ------------------------------------------------------------------ #
    # Envelope endpoints                                                 #
    # ------------------------------------------------------------------ #
    async def _execute(self, endpoint: Endpoint, model: type[R]) -> R:
        request = endpoint.get_request(self.config, self.session.cookie_jar)
        response = await self.session.send(request)
        result = model.from_payload(_decode_json(response, envelope=True))
        result.ensure_ok()
        return result

    async def sign_in(
        self,
        body: Mapping[str, Any],
        response_model: type[R] = LoginResponse,  # type: ignore[assignment]
    ) -> R:
        """POST *body* to Casdoor's web ``login`` endpoint.

        A new PKCE challenge is generated first; a code returned in ``data``
        is then redeemed with :meth:`request_oauth_access_token`.
        """
        pkce = self.setup_session()
        self._log.info("Signing in")
        return await self._execute(SignIn(payload=body, pkce=pkce), response_model)

    async def sign_up(self, code: str, email: str, name: str, password: str) -> DefaultResponse:
        """Create an account using the emailed verification *code*."""
        pkce = self._pkce or self.setup_session()
        self._log.info("Signing up email=%s", mask_sensitive(email))
        return await self._execute(
            SignUp(email_code=code, email=email, name=name, password=password, pkce=pkce),
            DefaultResponse,
        )

    async def continue_sign_up(self) -> str:
        """Finish an interactive sign-up; return the authorization code."""
        pkce = self._require_pkce()
        result = await self._execute(ContinueSignUp(pkce=pkce), AuthCodeResponse)
        self.flow_state = FlowState.AWAITING_CODE_EXCHANGE
        return result.code

    async def get_email_and_phone(self, username: str) -> EmailAndPhone | None:
        """Look up the masked contact details Casdoor holds for *username*."""
        result = await self._execute(GetEmailAndPhone(username=username), EmailAndPhoneResponse)
        return result.data

    async def send_verification_code(
        self,
        dest: str,
        method: str,
        dest_type: str = MfaType.EMAIL.value,
        country_code: str = "",
    ) -> None:
        """Ask Casdoor to deliver a verification code to *dest*."""
        self._log.info(
            "Sending verification code method=%s type=%s dest=%s",
            method,
            dest_type,
            mask_sensitive(dest),
        )
        await self._execute(
            SendVerificationCode(
                dest=dest, method_name=method, dest_type=dest_type, country_code=country_code
            ),
            NoDataResponse,
        )

    async def forgot_password(self, dest: str, dest_type: MfaType = MfaType.EMAIL) -> None:
        """First step of password recovery: send a ``forget`` code to *dest*."""
        await self.send_verification_code(dest=dest, method="forget", dest_type=dest_type.value)

    async def verify_code(self, username: str, code: str) -> None:
        """Check the recovery *code* Casdoor sent to *username*."""
        await self._execute(VerifyCode(username=username, code=code), NoDataResponse)

    async def set_password(self, username: str, password: str, code: str) -> None:
        """Set a new password after :meth:`verify_code` succeeded."""
        self._log.info("Setting new password user=%s", mask_sensitive(username))
        await self._execute(
            SetPassword(username=username, password=password, code=code), NoDataResponse
        )

    # ------------------------------------------------------------------ #
    # Lifecycle                                                          #
    # ------------------------------------------------------------------ #
    async def aclose(self) -> None:
        await self.session.aclose()

    async def __aenter__(self) -> "CasdoorClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
