"""Decoding of the Casdoor ``{status, msg, data, data2}`` envelope.

Every non-OAuth Casdoor endpoint answers with the same wrapper.  ``data`` is
the primary payload and ``data2`` is a secondary payload whose JSON type
depends on the endpoint (boolean, object, array or string).

``data2`` is modelled as a small tagged union.  Each response class lists the
shapes it accepts, in the order they are tried; the first decoder that accepts
the raw value wins and a value that matches none of them fails closed with
:class:`~casdoor_client.errors.MalformedResponseError`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Mapping, Tuple, TypeVar, Union

from casdoor_client.errors import MalformedResponseError, ResponseError
from casdoor_client.models import AuthType

STATUS_ERROR = "error"
AFFECTED = "Affected"


# --------------------------------------------------------------------------- #
# data2 tagged union                                                          #
# --------------------------------------------------------------------------- #
@dataclass(frozen=True, slots=True)
class BoolData2:
    value: bool


@dataclass(frozen=True, slots=True)
class MfaProps:
    """One MFA method offered to the user after a password sign-in."""

    enabled: bool
    is_preferred: bool
    mfa_type: str
    secret: str | None = None
    country_code: str | None = None


@dataclass(frozen=True, slots=True)
class MfaListData2:
    items: Tuple[MfaProps, ...]


@dataclass(frozen=True, slots=True)
class ObjectData2:
    fields: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class TextData2:
    value: str


Data2 = Union[BoolData2, MfaListData2, ObjectData2, TextData2]


class _NoMatch(ValueError):
    """Raised by a data2 decoder that does not accept the raw value."""


def _as_bool(raw: Any) -> BoolData2:
    if not isinstance(raw, bool):
        raise _NoMatch
    return BoolData2(raw)


def _as_mfa_props(raw: Any) -> MfaProps:
    if not isinstance(raw, Mapping):
        raise _NoMatch
    enabled = raw.get("enabled")
    is_preferred = raw.get("isPreferred")
    mfa_type = raw.get("mfaType")
    if not isinstance(enabled, bool) or not isinstance(is_preferred, bool):
        raise _NoMatch
    if not isinstance(mfa_type, str):
        raise _NoMatch
    secret = raw.get("secret")
    country_code = raw.get("countryCode")
    return MfaProps(
        enabled=enabled,
        is_preferred=is_preferred,
        mfa_type=mfa_type,
        secret=secret if isinstance(secret, str) else None,
        country_code=country_code if isinstance(country_code, str) else None,
    )


def _as_mfa_list(raw: Any) -> MfaListData2:
    if not isinstance(raw, list):
        raise _NoMatch
    return MfaListData2(tuple(_as_mfa_props(item) for item in raw))


def _as_object(raw: Any) -> ObjectData2:
    if not isinstance(raw, Mapping):
        raise _NoMatch
    return ObjectData2(dict(raw))


def _as_text(raw: Any) -> TextData2:
    if not isinstance(raw, str):
        raise _NoMatch
    return TextData2(raw)


Data2Decoder = Callable[[Any], Data2]


def decode_data2(raw: Any, decoders: Tuple[Data2Decoder, ...]) -> Data2 | None:
    """Try *decoders* in order; ``None`` stays ``None``.

    Raises
    ------
    MalformedResponseError
        If *raw* is present but no decoder accepts it.
    """
    if raw is None:
        return None
    for decoder in decoders:
        try:
            return decoder(raw)
        except _NoMatch:
            continue
    raise MalformedResponseError(
        f"data2 has unexpected type {type(raw).__name__}"
    )


# --------------------------------------------------------------------------- #
# Envelope                                                                    #
# --------------------------------------------------------------------------- #
R = TypeVar("R", bound="ProviderResponse")


@dataclass(frozen=True, slots=True)
class ProviderResponse:
    """Generic Casdoor envelope.

    ``ok`` is *True* iff ``status`` is anything but ``"error"``.  Subclasses
    narrow ``data`` / ``data2`` by overriding :meth:`_decode_data` and
    ``DATA2_DECODERS``; ``DATA2_REQUIRED`` makes an absent ``data2`` a
    decoding failure reported by :meth:`ensure_ok`.
    """

    status: str
    msg: str = ""
    data: Any = None
    data2: Data2 | None = None

    DATA2_DECODERS: ClassVar[Tuple[Data2Decoder, ...]] = (
        _as_bool,
        _as_mfa_list,
        _as_object,
        _as_text,
    )
    DATA2_REQUIRED: ClassVar[bool] = False

    @property
    def ok(self) -> bool:
        return self.status != STATUS_ERROR

    def ensure_ok(self) -> None:
        """Raise unless the envelope reports success.

        Raises
        ------
        ResponseError
            If ``status == "error"``; carries ``msg``.
        MalformedResponseError
            If this response type requires ``data2`` and it is absent.
        """
        if not self.ok:
            raise ResponseError(self.msg)
        if self.DATA2_REQUIRED and self.data2 is None:
            raise MalformedResponseError("data2 is missing or invalid")

    @classmethod
    def _decode_data(cls, raw: Any) -> Any:
        return raw

    @classmethod
    def from_payload(cls: type[R], payload: Any) -> R:
        """Decode a parsed JSON body into this response type.

        An ``"error"`` envelope keeps only ``status`` and ``msg`` so that
        :meth:`ensure_ok` can report the provider message whatever the shape
        of ``data`` / ``data2``.
        """
        if not isinstance(payload, Mapping):
            raise MalformedResponseError("response body is not a JSON object")
        status = payload.get("status")
        if not isinstance(status, str):
            raise MalformedResponseError("response missing status")
        msg = payload.get("msg")
        if status == STATUS_ERROR:
            return cls(status=status, msg=msg if isinstance(msg, str) else "")
        if msg is not None and not isinstance(msg, str):
            raise MalformedResponseError("response msg is not a string")
        return cls(
            status=status,
            msg=msg or "",
            data=cls._decode_data(payload.get("data")),
            data2=decode_data2(payload.get("data2"), cls.DATA2_DECODERS),
        )


def _optional_str(raw: Any) -> str | None:
    if raw is None or isinstance(raw, str):
        return raw
    raise MalformedResponseError(f"data has unexpected type {type(raw).__name__}")


@dataclass(frozen=True, slots=True)
class NoDataResponse(ProviderResponse):
    """Envelope whose ``data`` is an optional status string (logout, verify, set-password)."""

    DATA2_DECODERS: ClassVar[Tuple[Data2Decoder, ...]] = (_as_bool, _as_object, _as_text)

    @classmethod
    def _decode_data(cls, raw: Any) -> str | None:
        return _optional_str(raw)

    @property
    def affected(self) -> bool:
        return self.data == AFFECTED


@dataclass(frozen=True, slots=True)
class DefaultResponse(ProviderResponse):
    """Envelope with string ``data`` and boolean ``data2`` (sign-up)."""

    DATA2_DECODERS: ClassVar[Tuple[Data2Decoder, ...]] = (_as_bool,)

    @classmethod
    def _decode_data(cls, raw: Any) -> str | None:
        return _optional_str(raw)


@dataclass(frozen=True, slots=True)
class AuthCodeResponse(DefaultResponse):
    """Sign-in continuation; ``data`` carries the authorization code."""

    @property
    def code(self) -> str:
        return self.data or ""


@dataclass(frozen=True, slots=True)
class LoginResponse(ProviderResponse):
    """Web sign-in result.

    ``data`` is either an authorization code or one of :class:`AuthType`;
    ``data2`` (required) is a boolean or the list of MFA methods on offer.
    """

    DATA2_DECODERS: ClassVar[Tuple[Data2Decoder, ...]] = (_as_bool, _as_mfa_list)
    DATA2_REQUIRED: ClassVar[bool] = True

    @classmethod
    def _decode_data(cls, raw: Any) -> str | None:
        return _optional_str(raw)

    @property
    def requires_mfa(self) -> bool:
        return self.data == AuthType.MFA.value

    @property
    def mfa_options(self) -> Tuple[MfaProps, ...]:
        if isinstance(self.data2, MfaListData2):
            return self.data2.items
        return ()


@dataclass(frozen=True, slots=True)
class EmailAndPhone:
    name: str
    email: str


def _as_email_and_phone(raw: Any) -> EmailAndPhone | None:
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise MalformedResponseError("data is not an object")
    name, email = raw.get("name"), raw.get("email")
    if not isinstance(name, str) or not isinstance(email, str):
        raise MalformedResponseError("data missing name/email")
    return EmailAndPhone(name=name, email=email)


@dataclass(frozen=True, slots=True)
class EmailAndPhoneResponse(ProviderResponse):
    """Answer of ``get-email-and-phone``.

    ``data`` is ``{name, email}`` when present; ``data2`` is a plain string.
    """

    DATA2_DECODERS: ClassVar[Tuple[Data2Decoder, ...]] = (_as_text,)

    @classmethod
    def _decode_data(cls, raw: Any) -> EmailAndPhone | None:
        return _as_email_and_phone(raw)
