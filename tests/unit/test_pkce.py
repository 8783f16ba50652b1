"""
Unit tests for the PKCE helpers and PkceChallenge.

These tests are CI-safe (no network), cover:
* Code-verifier / nonce generation and length bounds
* S256 challenge against the RFC 7636 appendix B vector
* PkceChallenge construction
"""

from __future__ import annotations

import base64
import re
from hashlib import sha256

import pytest

from casdoor_client.models import PkceChallenge
from casdoor_client.pkce import code_challenge_s256, generate_code_verifier, generate_nonce

ALLOWED_CHARS_RE = re.compile(r"^[A-Za-z0-9\-._~]+$")  # RFC-7636
B64URL_RE = re.compile(r"^[A-Za-z0-9_\-]+$")

RFC_VERIFIER = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
RFC_CHALLENGE = "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"


# --------------------------------------------------------------------------- #
# Verifier / nonce                                                            #
# --------------------------------------------------------------------------- #
def test_generate_code_verifier_default_length() -> None:
    verifier = generate_code_verifier()
    assert len(verifier) == 64
    assert ALLOWED_CHARS_RE.match(verifier), "Verifier contains non-RFC chars"


@pytest.mark.parametrize("length", [43, 50, 128])
def test_generate_code_verifier_custom_length(length: int) -> None:
    assert len(generate_code_verifier(length)) == length


def test_generate_code_verifier_invalid_len() -> None:
    with pytest.raises(ValueError):
        _ = generate_code_verifier(42)  # below minimum
    with pytest.raises(ValueError):
        _ = generate_code_verifier(129)  # above maximum


def test_verifiers_are_not_repeated() -> None:
    assert len({generate_code_verifier() for _ in range(20)}) == 20


def test_generate_nonce_alphabet() -> None:
    nonce = generate_nonce()
    assert len(nonce) == 64
    assert ALLOWED_CHARS_RE.match(nonce)


# --------------------------------------------------------------------------- #
# S256 challenge                                                              #
# --------------------------------------------------------------------------- #
def test_code_challenge_s256_rfc_vector() -> None:
    assert code_challenge_s256(RFC_VERIFIER) == RFC_CHALLENGE


def test_code_challenge_s256_matches_reference() -> None:
    verifier = generate_code_verifier()
    digest = sha256(verifier.encode("ascii")).digest()
    expected = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    challenge = code_challenge_s256(verifier)
    assert challenge == expected
    assert len(challenge) == 43
    assert B64URL_RE.match(challenge), "Challenge must be unpadded base64url"


# --------------------------------------------------------------------------- #
# PkceChallenge                                                               #
# --------------------------------------------------------------------------- #
def test_pkce_challenge_generate_is_consistent() -> None:
    pkce = PkceChallenge.generate()
    assert pkce.code_challenge == code_challenge_s256(pkce.code_verifier)
    assert pkce.nonce != pkce.code_verifier


def test_pkce_challenge_from_verifier() -> None:
    pkce = PkceChallenge.from_verifier(RFC_VERIFIER, nonce="n" * 43)
    assert pkce.code_challenge == RFC_CHALLENGE
    assert pkce.nonce == "n" * 43


def test_pkce_challenge_is_immutable() -> None:
    pkce = PkceChallenge.generate()
    with pytest.raises(AttributeError):
        pkce.code_verifier = "x"  # type: ignore[misc]
