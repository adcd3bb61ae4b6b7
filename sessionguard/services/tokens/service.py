# sessionguard/services/tokens/service.py
"""
Token lifecycle: issue, validate, refresh, revoke.

A token is accepted only when the codec (signature, structure, expiry) and the
session registry (not revoked) agree. Failures are returned as
:class:`TokenFailure` values; only infrastructure errors during commands are
raised.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sessionguard.services._shared.errors import RegistryUnavailableError
from sessionguard.services._shared.ports import SessionRegistry, UserStore
from sessionguard.services.tokens.codec import TokenCodec
from sessionguard.services.tokens.dto import TokenFailure, TokenPair, TokenType

logger = logging.getLogger(__name__)


class TokenService:
    """
    Application service coordinating the codec, the registry and the user store.

    :param codec: Pure encoder/decoder holding the immutable settings.
    :param registry: Shared session registry.
    :param users: Collaborator used to confirm subjects on refresh.
    """

    def __init__(self, codec: TokenCodec, registry: SessionRegistry, users: UserStore) -> None:
        self.codec = codec
        self.registry = registry
        self.users = users
        self.settings = codec.settings

    # ------------------------------------------------------------------ #
    # Issuance
    # ------------------------------------------------------------------ #

    def _mint(self, subject: str, token_type: TokenType) -> str:
        ttl = self.settings.ttl_for(token_type)
        token = self.codec.encode(subject, token_type, ttl)
        self.registry.put(token, subject, ttl)
        return token

    def issue_access_and_refresh(self, subject: str) -> TokenPair:
        """
        Mint an access/refresh pair and record both in the registry.

        :raises RegistryUnavailableError: When the registry cannot record them.
        """
        pair = TokenPair(
            access_token=self._mint(subject, TokenType.ACCESS),
            refresh_token=self._mint(subject, TokenType.REFRESH),
        )
        logger.info("Issued token pair", extra={"event": "issue"})
        return pair

    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #

    def validate(self, token: str, expected_type: TokenType | None = None) -> str | TokenFailure:
        """
        Return the subject of a live, unrevoked token.

        :param expected_type: When set, a token of the other type yields
            ``CROSS_TYPE``.
        """
        claims = self.codec.decode(token)
        if isinstance(claims, TokenFailure):
            return self._reject(claims)
        if expected_type is not None and claims.token_type is not expected_type:
            return self._reject(TokenFailure.CROSS_TYPE)

        try:
            recorded = self.registry.get(token)
        except RegistryUnavailableError as exc:
            logger.error("Session registry unreachable during validation: %s", exc.reason)
            return TokenFailure.REGISTRY_UNAVAILABLE

        if recorded is None or recorded != claims.subject:
            return self._reject(TokenFailure.REVOKED)
        return claims.subject

    @staticmethod
    def _reject(failure: TokenFailure) -> TokenFailure:
        logger.info("Token rejected", extra={"event": "validate", "failure": failure.value})
        return failure

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    def refresh_access_token(self, refresh_token: str) -> TokenPair | TokenFailure:
        """
        Exchange a valid refresh token for a new access token.

        Without rotation the returned pair carries the same refresh token.
        With ``rotate_refresh`` the old refresh token is replaced atomically
        and stops working immediately.

        :raises RegistryUnavailableError: When the new token cannot be recorded.
        """
        subject = self.validate(refresh_token, TokenType.REFRESH)
        if isinstance(subject, TokenFailure):
            return subject
        if self.users.find_subject(subject) is None:
            return self._reject(TokenFailure.UNKNOWN_SUBJECT)

        access_token = self._mint(subject, TokenType.ACCESS)
        if not self.settings.rotate_refresh:
            return TokenPair(access_token=access_token, refresh_token=refresh_token)

        ttl = self.settings.refresh_ttl_seconds
        new_refresh = self.codec.encode(subject, TokenType.REFRESH, ttl)
        self.registry.replace(refresh_token, new_refresh, subject, ttl)
        return TokenPair(access_token=access_token, refresh_token=new_refresh)

    # ------------------------------------------------------------------ #
    # Revocation
    # ------------------------------------------------------------------ #

    def revoke(self, token: str) -> None:
        """
        Remove the token's registry record. Idempotent.

        :raises RegistryUnavailableError: When the registry cannot be reached.
        """
        self.registry.delete(token)

    def revoke_all(self, subject: str) -> int:
        """Revoke every recorded token of ``subject``; return how many."""
        removed = self.registry.delete_all_for_subject(subject)
        logger.info("Revoked all sessions", extra={"event": "revoke_all"})
        return removed

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def get_token_expiry(self, token: str) -> datetime | TokenFailure:
        """Return the expiry of a correctly signed token, even if past it."""
        claims = self.codec.peek(token)
        if isinstance(claims, TokenFailure):
            return claims
        return claims.expires_at

    def remaining_seconds(self, token: str) -> int:
        """Whole seconds left before expiry, ``0`` for unusable tokens."""
        expires_at = self.get_token_expiry(token)
        if isinstance(expires_at, TokenFailure):
            return 0
        return max(0, int((expires_at - self.codec.now()).total_seconds()))
