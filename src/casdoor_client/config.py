"""Static client configuration.

A :class:`CasdoorConfig` is supplied once, at client construction, and never
changes afterwards.  It can be built explicitly or loaded from ``CASDOOR_*``
environment variables:

``CASDOOR_ENDPOINT``
    Base URL of the Casdoor web UI (authorize / signup pages).
``CASDOOR_API_ENDPOINT``
    Base URL of the Casdoor API. Defaults to ``CASDOOR_ENDPOINT`` + ``api/``.
``CASDOOR_CLIENT_ID`` / ``CASDOOR_CLIENT_SECRET``
    OAuth client credentials (the secret is optional).
``CASDOOR_ORGANIZATION_NAME`` / ``CASDOOR_APPLICATION_NAME``
    Tenant identifiers.
``CASDOOR_APPLICATION_OWNER``
    Owner part of the ``applicationId`` (default ``admin``).
``CASDOOR_REDIRECT_URI``
    Registered OAuth callback URL.
``CASDOOR_VERIFY_SSL``
    Transport setting read by :func:`verify_ssl_from_env` (default ``true``).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Final, Tuple
from urllib.parse import urlparse

from casdoor_client.errors import InvalidURLError

_LOG = logging.getLogger("casdoor-client.config")

_TRUTHY: Final[Tuple[str, ...]] = ("true", "1", "yes", "y", "on")

_REQUIRED_ENV: Final[Tuple[str, ...]] = (
    "CASDOOR_ENDPOINT",
    "CASDOOR_CLIENT_ID",
    "CASDOOR_ORGANIZATION_NAME",
    "CASDOOR_APPLICATION_NAME",
    "CASDOOR_REDIRECT_URI",
)


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in _TRUTHY


def _normalise_base_url(name: str, url: str) -> str:
    """Return *url* with a trailing ``/``; reject anything not absolute."""
    parsed = urlparse(url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidURLError(url, f"{name} must be an absolute http(s) URL")
    return url if url.endswith("/") else f"{url}/"


@dataclass(frozen=True, slots=True)
class CasdoorConfig:
    """Immutable connection settings for one Casdoor application."""

    endpoint: str
    api_endpoint: str
    client_id: str
    organization_name: str
    application_name: str
    redirect_uri: str
    client_secret: str | None = None
    application_owner: str = "admin"

    def __post_init__(self) -> None:
        # frozen: normalise through object.__setattr__
        object.__setattr__(
            self, "endpoint", _normalise_base_url("endpoint", self.endpoint)
        )
        object.__setattr__(
            self, "api_endpoint", _normalise_base_url("api_endpoint", self.api_endpoint)
        )
        if not self.client_id:
            raise ValueError("client_id must not be empty")

    @property
    def application_id(self) -> str:
        """``<owner>/<application>`` identifier used by verification endpoints."""
        return f"{self.application_owner}/{self.application_name}"

    @classmethod
    def from_env(cls) -> "CasdoorConfig":
        """Build a config from ``CASDOOR_*`` environment variables.

        Raises
        ------
        ValueError
            If one or more required variables are missing.
        """
        missing = [name for name in _REQUIRED_ENV if not os.getenv(name)]
        if missing:
            raise ValueError(
                "Casdoor environment not configured; missing " + ", ".join(missing)
            )

        endpoint = os.environ["CASDOOR_ENDPOINT"]
        api_endpoint = os.getenv("CASDOOR_API_ENDPOINT") or (
            endpoint.rstrip("/") + "/api/"
        )
        config = cls(
            endpoint=endpoint,
            api_endpoint=api_endpoint,
            client_id=os.environ["CASDOOR_CLIENT_ID"],
            client_secret=os.getenv("CASDOOR_CLIENT_SECRET") or None,
            organization_name=os.environ["CASDOOR_ORGANIZATION_NAME"],
            application_name=os.environ["CASDOOR_APPLICATION_NAME"],
            application_owner=os.getenv("CASDOOR_APPLICATION_OWNER") or "admin",
            redirect_uri=os.environ["CASDOOR_REDIRECT_URI"],
        )
        _LOG.debug(
            "Loaded Casdoor config from environment endpoint=%s application=%s",
            config.endpoint,
            config.application_name,
        )
        return config


def verify_ssl_from_env(default: bool = True) -> bool:
    """Return the ``CASDOOR_VERIFY_SSL`` flag (unset -> *default*)."""
    raw = os.getenv("CASDOOR_VERIFY_SSL")
    if raw is None:
        return default
    return _truthy(raw)
