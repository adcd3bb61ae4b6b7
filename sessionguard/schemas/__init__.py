"""Marshmallow schemas for request/response payloads."""

from __future__ import annotations

from .auth import CredentialsSchema, MeSchema, SignUpSchema, TokenResponseSchema, UserSchema

__all__ = [
    "CredentialsSchema",
    "SignUpSchema",
    "TokenResponseSchema",
    "UserSchema",
    "MeSchema",
]
