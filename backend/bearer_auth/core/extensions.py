"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

import redis  # type: ignore[import-untyped]
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
redis_client: redis.Redis | None = None


def init_app(app: Flask, *, redis_client_override: redis.Redis | None = None) -> None:
    """Initialize SQLAlchemy and, for the Redis token backend, the Redis client.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`bearer_auth.models` package so the metadata holds every table.
    redis_client_override: redis.Redis | None
        Ready-made client (e.g. ``fakeredis``) used instead of ``REDIS_URL``.
    """
    db.init_app(app)

    # Ensure models are imported so create_all() sees the metadata
    from bearer_auth import models as _models  # noqa: F401

    global redis_client
    if redis_client_override is not None:
        redis_client = redis_client_override
        app.extensions["redis_client"] = redis_client
        return

    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        if app.config.get("TOKEN_STORE_BACKEND") == "redis":
            raise RuntimeError("TOKEN_STORE_BACKEND=redis requires REDIS_URL.")
        redis_client = None
        app.extensions.pop("redis_client", None)
        return

    redis_client = redis.Redis.from_url(redis_url)
    try:
        redis_client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
    app.extensions["redis_client"] = redis_client


def get_redis() -> redis.Redis:
    """Return the initialized Redis client."""
    if redis_client is None:
        raise RuntimeError("Redis client is not initialized. Call init_app() first.")
    return redis_client
