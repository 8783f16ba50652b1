"""Per-host cookie store carried across one logical Casdoor session.

The Casdoor web flow (sign-in, sign-up, continue-sign-up, password recovery)
is tied together by the provider's session cookie.  :class:`CookieJar` keeps
the cookies each response sets, keyed by the response host, and replays them
as a single ``Cookie`` header on later requests to the same host.

* Last write wins per ``(host, name)``.
* ``Max-Age<=0`` or an ``Expires`` date in the past deletes the cookie.
* A ``Set-Cookie`` value that cannot be parsed is skipped, never fatal.

Cookie values are never logged, only names.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import timezone
from email.utils import parsedate_to_datetime
from typing import Iterable

import httpx

from casdoor_client.clock import Clock, default_clock
from casdoor_client.endpoints import EndpointRequest

_LOG = logging.getLogger("casdoor-client.cookies")


@dataclass(frozen=True, slots=True)
class StoredCookie:
    name: str
    value: str = field(repr=False)
    attributes: dict[str, str] = field(default_factory=dict)


def _is_deletion(attrs: dict[str, str], clock: Clock) -> bool:
    max_age = attrs.get("max-age")
    if max_age:
        try:
            return int(max_age) <= 0
        except ValueError:
            return False
    expires = attrs.get("expires")
    if expires:
        try:
            when = parsedate_to_datetime(expires)
        except (TypeError, ValueError):
            return False
        # "-0000" dates come back naive; cookie dates are always GMT
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        return when.timestamp() <= clock()
    return False


def parse_set_cookie(header: str) -> list[StoredCookie]:
    """Parse one ``Set-Cookie`` header value; unparsable input yields ``[]``.

    The first ``name=value`` pair is the cookie; every ``;``-separated item
    after it is an attribute (``Path=/``, ``Secure``, ``Partitioned``,
    ``Priority=High``...).  Attribute names are lower-cased and flags map to
    ``""``.  Attributes are never sent back as cookies.
    """
    pair, *attrs = header.split(";")
    name, sep, value = pair.partition("=")
    name, value = name.strip(), value.strip()
    if not sep or not name or not name.isprintable() or any(c.isspace() for c in name):
        _LOG.debug("Skipping malformed Set-Cookie header")
        return []

    attributes: dict[str, str] = {}
    for item in attrs:
        key, _, attr_value = item.partition("=")
        key = key.strip().lower()
        if key:
            attributes[key] = attr_value.strip()
    return [StoredCookie(name=name, value=value, attributes=attributes)]


class CookieJar:
    """Thread-safe ``host -> {name: cookie}`` mapping."""

    def __init__(self, *, clock: Clock = default_clock) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._store: dict[str, dict[str, StoredCookie]] = {}

    # ------------------------------------------------------------------ #
    # recording                                                          #
    # ------------------------------------------------------------------ #
    def record(self, host: str, set_cookie_headers: Iterable[str]) -> None:
        """Merge the cookies in *set_cookie_headers* into *host*'s entry."""
        cookies = [c for header in set_cookie_headers for c in parse_set_cookie(header)]
        if not cookies:
            return
        with self._lock:
            bucket = self._store.setdefault(host, {})
            for cookie in cookies:
                if _is_deletion(cookie.attributes, self._clock):
                    bucket.pop(cookie.name, None)
                else:
                    bucket[cookie.name] = cookie
        _LOG.debug(
            "Recorded cookies host=%s names=%s", host, [c.name for c in cookies]
        )

    def record_from_response(self, response: httpx.Response) -> None:
        """Record every ``Set-Cookie`` header of *response* under its URL host."""
        host = response.request.url.host
        if not host:
            return
        self.record(host, response.headers.get_list("set-cookie"))

    # ------------------------------------------------------------------ #
    # replay                                                             #
    # ------------------------------------------------------------------ #
    def cookies_for(self, host: str | None) -> list[StoredCookie]:
        if not host:
            return []
        with self._lock:
            return list(self._store.get(host, {}).values())

    def header_for(self, host: str | None) -> str | None:
        """Return the ``Cookie`` header value for *host* (``None`` if empty)."""
        cookies = self.cookies_for(host)
        if not cookies:
            return None
        return "; ".join(f"{c.name}={c.value}" for c in cookies)

    def apply_to(self, request: EndpointRequest) -> EndpointRequest:
        """Return *request* with the host's cookies attached (no-op if none)."""
        header = self.header_for(request.host)
        if header is None:
            return request
        return request.with_header("Cookie", header)

    def clear(self, host: str | None = None) -> None:
        with self._lock:
            if host is None:
                self._store.clear()
            else:
                self._store.pop(host, None)

    def __len__(self) -> int:
        with self._lock:
            return sum(len(bucket) for bucket in self._store.values())
