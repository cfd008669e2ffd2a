"""Authentication endpoints using the service layer."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from bearer_auth.api.deps import current_auth, json_response, require_auth, timing
from bearer_auth.schemas import (
    CredentialsSchema,
    LogoutSchema,
    RefreshSchema,
    TokenResponseSchema,
    WhoAmISchema,
)
from bearer_auth.services.auth.dto import CredentialsIn, IssuedTokens, LogoutIn
from bearer_auth.services.wiring import get_auth_service

bp = Blueprint("auth", __name__)

credentials_schema = CredentialsSchema()
refresh_schema = RefreshSchema()
logout_schema = LogoutSchema()
token_schema = TokenResponseSchema()
whoami_schema = WhoAmISchema()


def _json_body() -> dict[str, Any]:
    return request.get_json(silent=True) or {}


def _tokens_body(tokens: IssuedTokens) -> dict[str, Any]:
    data: dict[str, Any] = {"access_token": tokens.access_token}
    if tokens.refresh_token is not None:
        data["refresh_token"] = tokens.refresh_token
    return token_schema.dump(data)


@bp.post("/signup")
@timing
def signup():
    """Register a user and return their first token(s)."""

    data = credentials_schema.load(_json_body())
    tokens = get_auth_service().signup(CredentialsIn(**data))
    return json_response(_tokens_body(tokens), status=201)


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and issue fresh token(s)."""

    data = credentials_schema.load(_json_body())
    tokens = get_auth_service().login(CredentialsIn(**data))
    return json_response(_tokens_body(tokens), status=201)


@bp.post("/refresh")
@timing
def refresh():
    """Exchange a token for new one(s); see :meth:`AuthService.refresh`."""

    data = refresh_schema.load(_json_body())
    tokens = get_auth_service().refresh(data["token"])
    return json_response(_tokens_body(tokens), status=201)


@bp.post("/logout")
@require_auth
@timing
def logout():
    """Revoke the caller's token, or all of their tokens with ``allSessions``."""

    data = logout_schema.load(_json_body())
    auth = current_auth()
    get_auth_service().logout(LogoutIn(token=auth.token, all_sessions=data["all_sessions"]))
    return "", 204


@bp.get("/whoami")
@require_auth
@timing
def whoami():
    """Return the identity behind the bearer token."""

    auth = current_auth()
    user = get_auth_service().whoami(auth.user_id)
    return json_response(whoami_schema.dump({"email": user.email, "refreshed": auth.refreshed}))
