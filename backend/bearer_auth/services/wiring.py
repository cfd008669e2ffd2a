"""
Process-level composition of the service graph.

Stores and providers are built once per application from its config and
handed to the services through their constructors. Request handlers fetch
the ready-made :class:`AuthService` with :func:`get_auth_service`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, cast

from flask import Flask, current_app

from bearer_auth.infra.jwt import PyJWTTokenProvider
from bearer_auth.infra.redis import RedisTokenRecordStore
from bearer_auth.infra.sql import SqlCredentialStore, SqlTokenRecordStore
from bearer_auth.services._shared.ports import CredentialStore, TokenRecordStore
from bearer_auth.services.auth.service import AuthService
from bearer_auth.services.tokens.dto import TokenSettings
from bearer_auth.services.tokens.service import TokenService

EXTENSION_KEY = "auth_service"
STORE_BACKENDS = ("sql", "redis")


def build_token_store(config: Mapping[str, Any], settings: TokenSettings) -> TokenRecordStore:
    """
    Select the token record store from ``TOKEN_STORE_BACKEND``.

    :raises RuntimeError: On an unknown backend or a missing Redis client.
    """
    backend = str(config.get("TOKEN_STORE_BACKEND", "sql")).strip().lower()
    if backend not in STORE_BACKENDS:
        raise RuntimeError(
            f"Unknown TOKEN_STORE_BACKEND {backend!r}; expected one of {STORE_BACKENDS}."
        )
    if backend == "redis":
        from bearer_auth.core.extensions import get_redis

        return RedisTokenRecordStore(r=get_redis())
    return SqlTokenRecordStore(retries=settings.issue_retries)


def build_auth_service(
    config: Mapping[str, Any],
    *,
    credentials: CredentialStore | None = None,
    token_store: TokenRecordStore | None = None,
) -> AuthService:
    """
    Build the :class:`AuthService` graph from configuration.

    :param config: Flask config (or any mapping with the same keys).
    :param credentials: Override for the credential store.
    :param token_store: Override for the token record store.
    """
    settings = TokenSettings.from_mapping(config)
    tokens = TokenService(
        store=token_store if token_store is not None else build_token_store(config, settings),
        provider=PyJWTTokenProvider(algorithm=settings.algorithm),
        settings=settings,
    )
    return AuthService(
        credentials=credentials if credentials is not None else SqlCredentialStore(),
        tokens=tokens,
    )


def init_app(app: Flask) -> None:
    """Build the service graph once and attach it to ``app.extensions``."""
    app.extensions[EXTENSION_KEY] = build_auth_service(app.config)


def get_auth_service() -> AuthService:
    """Return the :class:`AuthService` of the current application."""
    try:
        return cast(AuthService, current_app.extensions[EXTENSION_KEY])
    except KeyError:
        raise RuntimeError("Auth service is not initialized. Call init_app() first.") from None
