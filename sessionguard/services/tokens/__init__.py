"""Token lifecycle package: DTOs, codec and service."""

from __future__ import annotations

from .codec import TokenCodec
from .dto import TokenClaims, TokenFailure, TokenPair, TokenSettings, TokenType
from .service import TokenService

__all__ = [
    "TokenCodec",
    "TokenClaims",
    "TokenFailure",
    "TokenPair",
    "TokenSettings",
    "TokenType",
    "TokenService",
]
