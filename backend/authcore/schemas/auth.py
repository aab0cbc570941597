"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate


class LoginSchema(Schema):
    """Input payload for authenticating a user.

    Only presence is validated here: every credential failure must surface as
    the same 401, so format checks on email/password would leak information.
    """

    class Meta:
        unknown = EXCLUDE

    email = fields.String(required=True, validate=validate.Length(min=1, max=254))
    password = fields.String(required=True, validate=validate.Length(max=1024))


class RefreshTokenSchema(Schema):
    """Input payload carrying a raw refresh secret (optional: cookie fallback)."""

    class Meta:
        unknown = EXCLUDE

    refresh_token = fields.String(load_default=None, validate=validate.Length(max=4096))


class UserPublicSchema(Schema):
    id = fields.Integer(required=True)
    email = fields.String(required=True)
    username = fields.String()
    active = fields.Boolean()
    email_verified = fields.Boolean()


class TokenPairSchema(Schema):
    """Response payload with an access/refresh pair."""

    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)
    token_type = fields.String(dump_default="bearer")
    expires_in = fields.Integer()


class LoginResponseSchema(TokenPairSchema):
    user = fields.Nested(UserPublicSchema)


class LogoutResponseSchema(Schema):
    user_id = fields.Integer(required=True)


class WhoAmISchema(Schema):
    """Identity resolved from a verified access token."""

    user_id = fields.Integer(required=True)
    fresh = fields.Boolean()
    jti = fields.String()
