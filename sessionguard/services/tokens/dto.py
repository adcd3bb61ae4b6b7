# sessionguard/services/tokens/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

# ------------------------------ Enums ------------------------------------- #


class TokenType(str, Enum):
    """Kind of credential carried in the ``type`` claim."""

    ACCESS = "access"
    REFRESH = "refresh"


class TokenFailure(Enum):
    """
    Tagged outcome for a token that cannot be accepted.

    Returned (never raised) by the codec and the token service so callers can
    branch on the reason. All members surface to HTTP clients as the same 401;
    the distinction is kept for logs only.
    """

    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"
    REVOKED = "revoked"
    REGISTRY_UNAVAILABLE = "registry_unavailable"
    CROSS_TYPE = "cross_type"
    UNKNOWN_SUBJECT = "unknown_subject"


# ---------------------------- Value objects ------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """
    Decoded token payload.

    :param subject: User identifier (email).
    :type subject: str
    :param token_type: Access or refresh.
    :type token_type: TokenType
    :param issued_at: Issuance instant (UTC, whole seconds).
    :type issued_at: datetime
    :param expires_at: Expiry instant (UTC, whole seconds). The token is
        still valid *at* this instant and invalid right after it.
    :type expires_at: datetime
    """

    subject: str
    token_type: TokenType
    issued_at: datetime
    expires_at: datetime

    def __post_init__(self) -> None:
        if self.expires_at < self.issued_at:
            raise ValueError("expires_at must not precede issued_at.")

    def is_expired(self, now: datetime) -> bool:
        """Return ``True`` strictly after ``expires_at``."""
        return now > self.expires_at


@dataclass(frozen=True, slots=True)
class TokenPair:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    access_token: str
    refresh_token: str


# ------------------------------ Settings ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenSettings:
    """
    Token emission configuration, built once at startup.

    :param secret: HMAC signing secret.
    :type secret: bytes
    :param access_ttl_seconds: Access token lifetime.
    :type access_ttl_seconds: int
    :param refresh_ttl_seconds: Refresh token lifetime, strictly longer.
    :type refresh_ttl_seconds: int
    :param algorithm: JWS algorithm (HMAC family).
    :type algorithm: str
    :param rotate_refresh: Replace the refresh token on every refresh.
    :type rotate_refresh: bool
    """

    secret: bytes
    access_ttl_seconds: int = 86400
    refresh_ttl_seconds: int = 1209600
    algorithm: str = "HS256"
    rotate_refresh: bool = False

    def __post_init__(self) -> None:
        if not self.secret:
            raise ValueError("Token signing secret must not be empty.")
        if not self.algorithm.startswith("HS"):
            raise ValueError("Only HMAC (HS*) algorithms are supported.")
        if self.access_ttl_seconds < 0:
            raise ValueError("Access token TTL must not be negative.")
        if self.refresh_ttl_seconds <= self.access_ttl_seconds:
            raise ValueError("Refresh token TTL must be greater than the access token TTL.")

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> TokenSettings:
        """Build settings from a Flask config mapping."""
        secret = config.get("JWT_SECRET_KEY") or ""
        return cls(
            secret=secret.encode("utf-8") if isinstance(secret, str) else bytes(secret),
            access_ttl_seconds=int(config.get("JWT_ACCESS_TTL_SECONDS", 86400)),
            refresh_ttl_seconds=int(config.get("JWT_REFRESH_TTL_SECONDS", 1209600)),
            algorithm=str(config.get("JWT_ALGORITHM", "HS256")),
            rotate_refresh=bool(config.get("JWT_ROTATE_REFRESH", False)),
        )

    def ttl_for(self, token_type: TokenType) -> int:
        """Return the lifetime configured for ``token_type``."""
        if token_type is TokenType.REFRESH:
            return self.refresh_ttl_seconds
        return self.access_ttl_seconds
