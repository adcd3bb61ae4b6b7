"""Unit tests for the JWT codec (no registry involved)."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from sessionguard.services.tokens import TokenCodec, TokenFailure, TokenSettings, TokenType
from tests.helpers.auth import last_signature_char_variants, tamper_signature


def test_encode_then_extract_subject(codec) -> None:
    token = codec.encode("test@example.com", TokenType.ACCESS, 60)

    assert token.count(".") == 2
    assert codec.extract_subject(token) == "test@example.com"


def test_decode_returns_claims(codec, freeze_time) -> None:
    with freeze_time("2024-01-01 00:00:00.750"):
        token = codec.encode("a@example.com", TokenType.REFRESH, 3600)
        claims = codec.decode(token)

    assert not isinstance(claims, TokenFailure)
    assert claims.token_type is TokenType.REFRESH
    # whole-second timestamps
    assert claims.issued_at == datetime(2024, 1, 1, tzinfo=UTC)
    assert claims.expires_at - claims.issued_at == timedelta(seconds=3600)


def test_identical_inputs_in_same_second_give_identical_tokens(codec, freeze_time) -> None:
    with freeze_time():
        first = codec.encode("a@example.com", TokenType.ACCESS, 60)
        second = codec.encode("a@example.com", TokenType.ACCESS, 60)

    assert first == second


def test_token_valid_through_expiry_instant(codec, freeze_time) -> None:
    with freeze_time() as frozen:
        token = codec.encode("a@example.com", TokenType.ACCESS, 60)
        frozen.tick(60)
        assert codec.extract_subject(token) == "a@example.com"
        frozen.tick(1)
        assert codec.decode(token) is TokenFailure.EXPIRED


def test_zero_ttl_expires_one_second_later(codec, freeze_time) -> None:
    with freeze_time() as frozen:
        token = codec.encode("a@example.com", TokenType.ACCESS, 0)
        assert codec.extract_subject(token) == "a@example.com"
        frozen.tick(1)
        assert codec.extract_subject(token) is TokenFailure.EXPIRED


def test_peek_ignores_expiry_but_checks_signature(codec, freeze_time) -> None:
    with freeze_time() as frozen:
        token = codec.encode("a@example.com", TokenType.ACCESS, 10)
        frozen.tick(3600)
        claims = codec.peek(token)
        assert not isinstance(claims, TokenFailure)
        assert claims.subject == "a@example.com"
        assert codec.peek(tamper_signature(token)) is TokenFailure.BAD_SIGNATURE


def test_tampered_signature_is_bad_signature(codec) -> None:
    token = codec.encode("a@example.com", TokenType.ACCESS, 60)

    assert codec.decode(tamper_signature(token)) is TokenFailure.BAD_SIGNATURE


def test_any_change_to_last_signature_char_is_bad_signature(codec) -> None:
    token = codec.encode("a@example.com", TokenType.ACCESS, 60)
    variants = last_signature_char_variants(token)

    assert len(variants) == 63
    assert {codec.decode(v) for v in variants} == {TokenFailure.BAD_SIGNATURE}


def test_unreadable_payload_stays_malformed(codec) -> None:
    head, _, signature = codec.encode("a@example.com", TokenType.ACCESS, 60).split(".")

    assert codec.decode(f"{head}.%%%.{signature}") is TokenFailure.MALFORMED
    assert codec.decode(f"{head}.bm90LWpzb24.{signature}") is TokenFailure.MALFORMED


def test_other_secret_is_bad_signature(codec) -> None:
    other_settings = TokenSettings(
        secret=b"another-secret-with-enough-entropy-0123456789",
        access_ttl_seconds=60,
        refresh_ttl_seconds=120,
    )
    other = TokenCodec(other_settings)
    token = other.encode("a@example.com", TokenType.ACCESS, 60)

    assert codec.decode(token) is TokenFailure.BAD_SIGNATURE


def test_unexpected_algorithm_is_bad_signature(codec, settings) -> None:
    token = jwt.encode(
        {"sub": "a@example.com", "type": "access", "iat": 0, "exp": 4102444800},
        settings.secret,
        algorithm="HS512",
    )

    assert codec.decode(token) is TokenFailure.BAD_SIGNATURE


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "not-a-token",
        "a.b",
        "a.b.c.d",
        "!!!.@@@.###",
    ],
)
def test_structurally_broken_input_is_malformed(codec, raw) -> None:
    assert codec.decode(raw) is TokenFailure.MALFORMED


@pytest.mark.parametrize(
    "payload",
    [
        {"type": "access", "iat": 0, "exp": 4102444800},
        {"sub": "a@example.com", "iat": 0, "exp": 4102444800},
        {"sub": "a@example.com", "type": "session", "iat": 0, "exp": 4102444800},
        {"sub": "", "type": "access", "iat": 0, "exp": 4102444800},
        {"sub": "a@example.com", "type": "access", "iat": 10, "exp": 5},
    ],
)
def test_well_signed_but_invalid_claims_are_malformed(codec, settings, payload) -> None:
    token = jwt.encode(payload, settings.secret, algorithm="HS256")

    assert codec.decode(token) is TokenFailure.MALFORMED


def test_encode_rejects_negative_ttl_and_empty_subject(codec) -> None:
    with pytest.raises(ValueError):
        codec.encode("a@example.com", TokenType.ACCESS, -1)
    with pytest.raises(ValueError):
        codec.encode("", TokenType.ACCESS, 60)
