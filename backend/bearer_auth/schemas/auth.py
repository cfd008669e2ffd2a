"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from typing import Any

from marshmallow import EXCLUDE, Schema, fields, post_load, pre_load, validate

PASSWORD_MIN_LENGTH = 9


class CredentialsSchema(Schema):
    """Input payload for signup and login."""

    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(
        required=True, validate=validate.Length(min=PASSWORD_MIN_LENGTH, max=128)
    )

    @post_load
    def _normalize(self, data: dict[str, Any], **_: Any) -> dict[str, Any]:
        data["email"] = data["email"].strip().lower()
        return data


class RefreshSchema(Schema):
    """Input payload for an explicit refresh.

    ``refreshToken`` is accepted as an alias of ``token``.
    """

    class Meta:
        unknown = EXCLUDE

    token = fields.String(required=True, validate=validate.Length(min=1))

    @pre_load
    def _alias(self, data: Any, **_: Any) -> Any:
        if isinstance(data, dict) and "token" not in data and "refreshToken" in data:
            data = {**data, "token": data["refreshToken"]}
        return data


class LogoutSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    all_sessions = fields.Boolean(load_default=False, data_key="allSessions")


class TokenResponseSchema(Schema):
    """Response payload with the issued tokens."""

    access_token = fields.String(required=True, data_key="accessToken")
    refresh_token = fields.String(data_key="refreshToken")


class WhoAmISchema(Schema):
    """Identity of the authenticated user."""

    email = fields.Email(required=True)
    refreshed = fields.Boolean()
