"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from bearer_auth.api.deps import json_response, timing
from bearer_auth.core.extensions import db

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Return application, database and token-store health information."""

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.exception("healthcheck.db_error")
        db_status = "fail"
    finally:
        db.session.rollback()

    backend = current_app.config.get("TOKEN_STORE_BACKEND", "sql")
    store_status = db_status
    client = current_app.extensions.get("redis_client")
    if backend == "redis":
        try:
            store_status = "ok" if client is not None and client.ping() else "fail"
        except RedisError:
            current_app.logger.exception("healthcheck.redis_error")
            store_status = "fail"

    healthy = db_status == "ok" and store_status == "ok"
    payload = {
        "status": "ok" if healthy else "degraded",
        "db": db_status,
        "token_store": {"backend": backend, "status": store_status},
        "version": current_app.config.get("APP_VERSION", "dev"),
    }
    return json_response(payload, status=200 if healthy else 503)
