"""Time source for token and cookie bookkeeping.

Two places in casdoor_client look at the wall clock:

* :class:`~casdoor_client.models.TokenPair` stamps ``obtained_at`` and derives
  ``expires_at`` / :meth:`~casdoor_client.models.TokenPair.is_expired`.
* :class:`~casdoor_client.cookies.CookieJar` compares a ``Set-Cookie``
  ``Expires`` date against "now" to decide whether the cookie is a deletion.

Both take an injected :class:`Clock` so tests can pin time with
:func:`fixed_clock` instead of patching :func:`time.time`.

>>> from casdoor_client.clock import fixed_clock
>>> fixed_clock(1_672_531_200.0)()
1672531200.0
"""

from __future__ import annotations

import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    """Zero-argument callable returning UNIX seconds as ``float``."""

    def __call__(self) -> float: ...


def default_clock() -> float:
    """Wall-clock time from :func:`time.time`."""
    return time.time()


def fixed_clock(now: float) -> Clock:
    """Return a clock frozen at *now*."""

    def _clock() -> float:
        return now

    return _clock
