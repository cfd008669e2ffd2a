"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar, cast

from flask import Response, current_app, g, jsonify, make_response, request

from bearer_auth.core.errors import Forbidden
from bearer_auth.services.auth.dto import AuthResult
from bearer_auth.services.wiring import get_auth_service

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "bearer"


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request.endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]


def bearer_token() -> str:
    """
    Extract the bearer token from the ``Authorization`` header.

    :raises Forbidden: When the header is missing or not a bearer credential.
    """
    header = request.headers.get("Authorization", "").strip()
    if not header:
        raise Forbidden("Token not provided", code="token_missing")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != BEARER_PREFIX or not token.strip():
        raise Forbidden("Malformed Authorization header", code="token_missing")
    return token.strip()


def current_auth() -> AuthResult:
    """Return the :class:`AuthResult` stored by :func:`require_auth`."""
    return cast(AuthResult, g.auth)


def require_auth(func: F) -> F:
    """
    Authenticate the request with its bearer token.

    The result is stored on ``g.auth``. When the presented token had expired
    and was reissued, the new token is returned in the ``NEW_TOKEN_HEADER``
    response header.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token = bearer_token()
        result = get_auth_service().authenticate(token)
        g.auth = result
        response = make_response(func(*args, **kwargs))
        if result.refreshed:
            header = current_app.config.get("NEW_TOKEN_HEADER", "X-New-Token")
            response.headers[header] = result.token
        return response

    return wrapper  # type: ignore[return-value]
