# sessionguard/services/tokens/codec.py
"""
Compact JWT codec for access/refresh tokens.

Pure and side-effect free: no registry access, no shared mutable state. The
only inputs are the immutable :class:`TokenSettings` and an injectable clock.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt.exceptions import (
    DecodeError,
    InvalidAlgorithmError,
    InvalidSignatureError,
    InvalidTokenError,
)
from jwt.utils import base64url_decode, base64url_encode

from sessionguard.services.tokens.dto import TokenClaims, TokenFailure, TokenSettings, TokenType

REQUIRED_CLAIMS = ["sub", "type", "iat", "exp"]

# Expiry and issuance are checked here, against whole-second timestamps.
_DECODE_OPTIONS: dict[str, Any] = {
    "verify_signature": True,
    "verify_exp": False,
    "verify_iat": False,
    "verify_nbf": False,
    "require": REQUIRED_CLAIMS,
}


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(UTC)


def _header_and_payload_readable(token: str) -> bool:
    """True when the first two segments are base64url JSON objects."""
    header, payload, _ = token.split(".")
    try:
        return all(isinstance(json.loads(base64url_decode(part)), dict) for part in (header, payload))
    except ValueError:
        return False


def _canonical_signature(token: str) -> bool:
    """
    Reject signatures whose unused trailing bits are set.

    Lenient base64 decoding maps several final characters to the same MAC,
    so such a string is an altered signature even when the bytes verify.
    """
    signature = token.rsplit(".", 1)[1]
    return base64url_encode(base64url_decode(signature)).decode("ascii") == signature


class TokenCodec:
    """
    Encode claims into signed tokens and verify them back.

    :param settings: Immutable token settings (secret, algorithm).
    :param clock: Callable returning the current aware UTC datetime.
    """

    def __init__(
        self,
        settings: TokenSettings,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.settings = settings
        self._clock = clock or utc_now

    def now(self) -> datetime:
        """Current instant truncated to whole seconds."""
        return self._clock().astimezone(UTC).replace(microsecond=0)

    # ------------------------------------------------------------------ #
    # Encoding
    # ------------------------------------------------------------------ #

    def encode(self, subject: str, token_type: TokenType, ttl_seconds: int) -> str:
        """
        Build and sign a token valid for ``ttl_seconds`` from now.

        Identical inputs within the same second yield the identical string;
        registry records are keyed by the full token, so that is harmless.

        :raises ValueError: On an empty subject or a negative TTL.
        """
        if not subject:
            raise ValueError("Token subject must not be empty.")
        if ttl_seconds < 0:
            raise ValueError("Token TTL must not be negative.")

        issued_at = self.now()
        expires_at = issued_at + timedelta(seconds=int(ttl_seconds))
        payload = {
            "sub": subject,
            "type": TokenType(token_type).value,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(payload, self.settings.secret, algorithm=self.settings.algorithm)

    # ------------------------------------------------------------------ #
    # Decoding
    # ------------------------------------------------------------------ #

    def decode(self, token: str) -> TokenClaims | TokenFailure:
        """
        Verify structure, signature and expiry.

        :returns: Claims, or ``MALFORMED`` / ``BAD_SIGNATURE`` / ``EXPIRED``.
        """
        claims = self.peek(token)
        if isinstance(claims, TokenFailure):
            return claims
        if claims.is_expired(self.now()):
            return TokenFailure.EXPIRED
        return claims

    def peek(self, token: str) -> TokenClaims | TokenFailure:
        """
        Verify structure and signature but not expiry.

        Useful to read the expiry of a token that may already be past it.
        """
        if not isinstance(token, str) or token.count(".") != 2:
            return TokenFailure.MALFORMED
        try:
            payload = jwt.decode(
                token,
                self.settings.secret,
                algorithms=[self.settings.algorithm],
                options=_DECODE_OPTIONS,
            )
        except (InvalidSignatureError, InvalidAlgorithmError):
            return TokenFailure.BAD_SIGNATURE
        except DecodeError:
            # an unreadable signature under a readable header and payload
            if _header_and_payload_readable(token):
                return TokenFailure.BAD_SIGNATURE
            return TokenFailure.MALFORMED
        except InvalidTokenError:
            return TokenFailure.MALFORMED
        if not _canonical_signature(token):
            return TokenFailure.BAD_SIGNATURE
        return self._claims_from_payload(payload)

    def extract_subject(self, token: str) -> str | TokenFailure:
        """Return the subject of a live token."""
        claims = self.decode(token)
        if isinstance(claims, TokenFailure):
            return claims
        return claims.subject

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _claims_from_payload(payload: dict[str, Any]) -> TokenClaims | TokenFailure:
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            return TokenFailure.MALFORMED
        try:
            token_type = TokenType(payload["type"])
            issued_at = datetime.fromtimestamp(int(payload["iat"]), tz=UTC)
            expires_at = datetime.fromtimestamp(int(payload["exp"]), tz=UTC)
            return TokenClaims(
                subject=subject,
                token_type=token_type,
                issued_at=issued_at,
                expires_at=expires_at,
            )
        except (TypeError, ValueError, OverflowError, OSError):
            return TokenFailure.MALFORMED
