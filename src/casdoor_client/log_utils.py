"""Logging helpers shared by the Casdoor client modules.

Module loggers live under ``casdoor-client.<area>``.  The client itself logs
through :func:`get_client_logger`, whose adapter adds a fixed, non-secret set
of attributes to every record:

``application`` / ``organization``
    Tenant identifiers from :class:`~casdoor_client.config.CasdoorConfig`.
``correlation_id``
    Optional caller value, truncated to its first 8 characters.

Anything else a caller passes in is dropped.  Codes, verifiers, tokens,
passwords and e-mail addresses are passed through :func:`mask_sensitive`
before they reach a log call.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, MutableMapping

ROOT_LOGGER_NAME = "casdoor-client"


def mask_sensitive(value: str | None, keep: int = 4) -> str:
    """Return *value* with everything after the first *keep* chars hidden."""
    if not value:
        return "<empty>"
    if len(value) <= keep:
        return "*" * len(value)
    return f"{value[:keep]}****"


class _ClientLoggerAdapter(logging.LoggerAdapter):
    """Attach the tenant context of one :class:`CasdoorClient` to each record."""

    allowed_keys = ("application", "organization", "correlation_id")
    correlation_id_len = 8

    def __init__(self, logger: logging.Logger, context: Mapping[str, Any] | None = None):
        context = context or {}
        kept: dict[str, Any] = {
            key: context[key] for key in self.allowed_keys if context.get(key) is not None
        }
        if "correlation_id" in kept:
            kept["correlation_id"] = str(kept["correlation_id"])[: self.correlation_id_len]
        super().__init__(logger, kept)

    def process(self, msg: str, kwargs: MutableMapping[str, Any]):
        # call-site extras win over the adapter's context
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_client_logger(
    *,
    base_logger_name: str = ROOT_LOGGER_NAME,
    application: str | None = None,
    organization: str | None = None,
    correlation_id: str | None = None,
) -> logging.LoggerAdapter:
    """Return a logger for *base_logger_name* carrying the given client context."""
    return _ClientLoggerAdapter(
        logging.getLogger(base_logger_name),
        dict(application=application, organization=organization, correlation_id=correlation_id),
    )
