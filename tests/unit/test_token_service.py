# tests/unit/test_token_service.py
"""Unit tests for TokenService wired to in-memory doubles."""

from __future__ import annotations

from dataclasses import replace

import pytest

from sessionguard.services._shared.errors import RegistryUnavailableError
from sessionguard.services.tokens import TokenCodec, TokenFailure, TokenPair, TokenService, TokenType
from tests.helpers.auth import last_signature_char_variants, tamper_signature
from tests.helpers.registry import BrokenRegistry

# ------------------------------ Issuance ---------------------------------- #


def test_issue_then_validate_both_tokens(service) -> None:
    pair = service.issue_access_and_refresh("test@example.com")

    assert isinstance(pair, TokenPair)
    assert service.validate(pair.access_token) == "test@example.com"
    assert service.validate(pair.refresh_token) == "test@example.com"
    assert service.validate(pair.access_token, TokenType.ACCESS) == "test@example.com"
    assert service.validate(pair.refresh_token, TokenType.REFRESH) == "test@example.com"


def test_issue_records_both_tokens_in_registry(service, registry) -> None:
    pair = service.issue_access_and_refresh("test@example.com")

    assert registry.get(pair.access_token) == "test@example.com"
    assert registry.get(pair.refresh_token) == "test@example.com"


def test_refresh_expiry_is_later_than_access_expiry(service) -> None:
    pair = service.issue_access_and_refresh("test@example.com")

    assert service.get_token_expiry(pair.refresh_token) > service.get_token_expiry(pair.access_token)


def test_issue_propagates_registry_outage(codec, users) -> None:
    broken = TokenService(codec, BrokenRegistry(), users)

    with pytest.raises(RegistryUnavailableError):
        broken.issue_access_and_refresh("test@example.com")


# ----------------------------- Validation --------------------------------- #


def test_validate_reports_codec_failure_unchanged(service, freeze_time) -> None:
    with freeze_time() as frozen:
        pair = service.issue_access_and_refresh("test@example.com")
        tampered = tamper_signature(pair.access_token)

        assert service.validate(tampered) is service.codec.decode(tampered)
        assert service.validate(tampered) is TokenFailure.BAD_SIGNATURE
        assert service.validate("garbage") is TokenFailure.MALFORMED

        frozen.tick(61)
        assert service.codec.decode(pair.access_token) is TokenFailure.EXPIRED
        assert service.validate(pair.access_token) is TokenFailure.EXPIRED


def test_validate_rejects_every_last_char_signature_change(service) -> None:
    pair = service.issue_access_and_refresh("test@example.com")

    outcomes = {service.validate(v) for v in last_signature_char_variants(pair.access_token)}

    assert outcomes == {TokenFailure.BAD_SIGNATURE}
    assert service.validate(pair.access_token) == "test@example.com"


def test_validate_wrong_type_is_cross_type(service) -> None:
    pair = service.issue_access_and_refresh("test@example.com")

    assert service.validate(pair.refresh_token, TokenType.ACCESS) is TokenFailure.CROSS_TYPE
    assert service.validate(pair.access_token, TokenType.REFRESH) is TokenFailure.CROSS_TYPE


def test_unregistered_token_is_revoked(service, codec) -> None:
    token = codec.encode("test@example.com", TokenType.ACCESS, 60)

    assert service.validate(token) is TokenFailure.REVOKED


def test_registry_subject_mismatch_is_revoked(service, codec, registry) -> None:
    token = codec.encode("test@example.com", TokenType.ACCESS, 60)
    registry.put(token, "someone-else@example.com", 60)

    assert service.validate(token) is TokenFailure.REVOKED


def test_validate_with_unreachable_registry(codec, users) -> None:
    broken = TokenService(codec, BrokenRegistry(), users)
    token = codec.encode("test@example.com", TokenType.ACCESS, 60)

    assert broken.validate(token) is TokenFailure.REGISTRY_UNAVAILABLE
    # codec failures still win over the outage
    assert broken.validate(tamper_signature(token)) is TokenFailure.BAD_SIGNATURE


# ----------------------------- Revocation --------------------------------- #


def test_revoke_invalidates_before_expiry(service) -> None:
    pair = service.issue_access_and_refresh("test@example.com")

    service.revoke(pair.access_token)

    assert service.validate(pair.access_token) is TokenFailure.REVOKED
    # the companion token is untouched
    assert service.validate(pair.refresh_token) == "test@example.com"


def test_revoke_is_idempotent(service) -> None:
    pair = service.issue_access_and_refresh("test@example.com")

    service.revoke(pair.access_token)
    service.revoke(pair.access_token)
    service.revoke("never-issued")

    assert service.validate(pair.access_token) is TokenFailure.REVOKED


def test_revoke_raises_when_registry_unreachable(codec, users) -> None:
    broken = TokenService(codec, BrokenRegistry(), users)

    with pytest.raises(RegistryUnavailableError):
        broken.revoke("whatever")


def test_revoke_all_logs_out_every_session(service, freeze_time) -> None:
    with freeze_time() as frozen:
        first = service.issue_access_and_refresh("test@example.com")
        frozen.tick(1)
        second = service.issue_access_and_refresh("test@example.com")
        other = service.issue_access_and_refresh("other@example.com")

        assert service.revoke_all("test@example.com") == 4

        for token in (*_tokens(first), *_tokens(second)):
            assert service.validate(token) is TokenFailure.REVOKED
        assert service.validate(other.access_token) == "other@example.com"


def _tokens(pair: TokenPair) -> tuple[str, str]:
    return pair.access_token, pair.refresh_token


# ------------------------------- Refresh ---------------------------------- #


def test_refresh_mints_new_access_token(service, freeze_time) -> None:
    with freeze_time() as frozen:
        pair = service.issue_access_and_refresh("test@example.com")
        frozen.tick(5)

        result = service.refresh_access_token(pair.refresh_token)

        assert isinstance(result, TokenPair)
        assert result.access_token != pair.access_token
        assert result.refresh_token == pair.refresh_token
        assert service.validate(result.access_token, TokenType.ACCESS) == "test@example.com"
        new_claims = service.codec.decode(result.access_token)
        old_claims = service.codec.decode(pair.access_token)
        assert new_claims.issued_at > old_claims.issued_at


def test_refresh_with_access_token_is_cross_type(service) -> None:
    pair = service.issue_access_and_refresh("test@example.com")

    assert service.refresh_access_token(pair.access_token) is TokenFailure.CROSS_TYPE


def test_refresh_after_revocation_fails(service) -> None:
    pair = service.issue_access_and_refresh("test@example.com")
    service.revoke(pair.refresh_token)

    assert service.refresh_access_token(pair.refresh_token) is TokenFailure.REVOKED


def test_refresh_with_expired_refresh_token(service, freeze_time) -> None:
    with freeze_time() as frozen:
        pair = service.issue_access_and_refresh("test@example.com")
        frozen.tick(3601)

        assert service.refresh_access_token(pair.refresh_token) is TokenFailure.EXPIRED


def test_refresh_for_deleted_user_is_unknown_subject(service, users) -> None:
    pair = service.issue_access_and_refresh("test@example.com")
    users.remove("test@example.com")

    assert service.refresh_access_token(pair.refresh_token) is TokenFailure.UNKNOWN_SUBJECT


def test_rotating_refresh_replaces_old_token(codec, registry, users, freeze_time) -> None:
    rotating = TokenService(TokenCodec(replace(codec.settings, rotate_refresh=True)), registry, users)
    with freeze_time() as frozen:
        pair = rotating.issue_access_and_refresh("test@example.com")
        frozen.tick(1)

        result = rotating.refresh_access_token(pair.refresh_token)

        assert isinstance(result, TokenPair)
        assert result.refresh_token != pair.refresh_token
        assert rotating.validate(result.refresh_token, TokenType.REFRESH) == "test@example.com"
        assert rotating.validate(pair.refresh_token) is TokenFailure.REVOKED
        assert rotating.refresh_access_token(pair.refresh_token) is TokenFailure.REVOKED


# ---------------------------- Introspection ------------------------------- #


def test_get_token_expiry_works_after_expiry(service, freeze_time) -> None:
    with freeze_time() as frozen:
        pair = service.issue_access_and_refresh("test@example.com")
        expected = service.codec.decode(pair.access_token).expires_at
        frozen.tick(600)

        assert service.get_token_expiry(pair.access_token) == expected
        assert service.get_token_expiry("garbage") is TokenFailure.MALFORMED


def test_remaining_seconds(service, freeze_time) -> None:
    with freeze_time() as frozen:
        pair = service.issue_access_and_refresh("test@example.com")
        assert service.remaining_seconds(pair.access_token) == 60
        frozen.tick(45)
        assert service.remaining_seconds(pair.access_token) == 15
        frozen.tick(100)
        assert service.remaining_seconds(pair.access_token) == 0
        assert service.remaining_seconds("garbage") == 0


# ------------------------------- Scenario --------------------------------- #


def test_login_like_flow_for_known_user(service, freeze_time) -> None:
    """Issue, use, refresh, log out, then fail for test@example.com."""

    with freeze_time() as frozen:
        pair = service.issue_access_and_refresh("test@example.com")
        assert service.validate(pair.access_token, TokenType.ACCESS) == "test@example.com"

        frozen.tick(61)
        assert service.validate(pair.access_token, TokenType.ACCESS) is TokenFailure.EXPIRED

        refreshed = service.refresh_access_token(pair.refresh_token)
        assert isinstance(refreshed, TokenPair)
        assert service.validate(refreshed.access_token, TokenType.ACCESS) == "test@example.com"

        service.revoke(refreshed.access_token)
        assert service.validate(refreshed.access_token, TokenType.ACCESS) is TokenFailure.REVOKED
