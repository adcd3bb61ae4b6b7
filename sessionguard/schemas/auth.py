"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class CredentialsSchema(Schema):
    """Email/password pair decoded from an ``Authorization: Basic`` header."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=8, max=128))


class SignUpSchema(CredentialsSchema):
    """Sign-up payload: Basic credentials merged with the JSON body."""

    nickname = fields.String(required=True, validate=validate.Length(min=1, max=50))


class TokenResponseSchema(Schema):
    """Token pair returned to native app clients."""

    access_token = fields.String(required=True)
    expires_in = fields.Integer(required=True)
    refresh_token = fields.String(required=True)
    token_type = fields.String(dump_default="Bearer")


class UserSchema(Schema):
    """Public representation of a user."""

    email = fields.Email(required=True)
    nickname = fields.String(required=True)


class MeSchema(Schema):
    """Identity of the authenticated caller."""

    email = fields.String(required=True)
