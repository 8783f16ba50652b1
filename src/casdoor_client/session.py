"""Transport owner for one logical Casdoor session.

:class:`CasdoorSession` bundles the ``httpx.AsyncClient`` settings (TLS
verification, timeout, optional injected transport) with the
:class:`~casdoor_client.cookies.CookieJar`, so a multi-request web flow
(sign-up -> continue-sign-up, send-code -> verify -> set-password) keeps its
provider session without re-establishing identity.

Cookies are attached by the request builder
(:meth:`~casdoor_client.endpoints.Endpoint.get_request`) from this session's
jar.  Requests go out through ``AsyncClient.send`` so the client's own cookie
store is never merged in.
"""

from __future__ import annotations

import logging
from types import TracebackType

import httpx

from casdoor_client.config import verify_ssl_from_env
from casdoor_client.cookies import CookieJar
from casdoor_client.endpoints import EndpointRequest
from casdoor_client.errors import TransportError

_LOG = logging.getLogger("casdoor-client.session")

DEFAULT_TIMEOUT = httpx.Timeout(10.0, connect=5.0)


class CasdoorSession:
    """Cookie-carrying wrapper around an ``httpx.AsyncClient``.

    Parameters
    ----------
    verify:
        TLS verification flag; ``None`` reads ``CASDOOR_VERIFY_SSL``.
    timeout:
        Forwarded to ``httpx.AsyncClient``.
    transport:
        Optional ``httpx.AsyncBaseTransport`` (e.g. ``httpx.MockTransport``).
    client:
        Pre-built client; the session will not close a client it did not create.
    cookie_jar:
        Existing jar to continue a session with.
    """

    def __init__(
        self,
        *,
        verify: bool | None = None,
        timeout: httpx.Timeout | float | None = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
        client: httpx.AsyncClient | None = None,
        cookie_jar: CookieJar | None = None,
    ) -> None:
        self.verify = verify_ssl_from_env() if verify is None else verify
        self.timeout = timeout
        self.cookie_jar = cookie_jar or CookieJar()
        self._transport = transport
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                verify=self.verify,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def send(self, request: EndpointRequest) -> httpx.Response:
        """Send *request* and record the cookies set by the reply.

        Raises
        ------
        TransportError
            On any ``httpx`` network / protocol failure.
        """
        try:
            response = await self.client.send(request.to_httpx())
        except httpx.HTTPError as exc:
            _LOG.warning("Request %s %s failed: %s", request.method, request.url, exc)
            raise TransportError(f"{request.method} {request.url} failed: {exc}") from exc

        self.cookie_jar.record_from_response(response)
        _LOG.debug(
            "%s %s -> %s", request.method, request.url.split("?", 1)[0], response.status_code
        )
        return response

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "CasdoorSession":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()
