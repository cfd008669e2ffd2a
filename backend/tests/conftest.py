"""Global pytest fixtures for the bearer-auth service."""

from __future__ import annotations

from collections.abc import Generator
from typing import Any

import fakeredis
import pytest
from flask import Flask
from flask.testing import FlaskClient, FlaskCliRunner

from bearer_auth import create_app
from bearer_auth.core.config import TestingConfig
from bearer_auth.core.extensions import db as _db


@pytest.fixture()
def app_overrides() -> dict[str, Any]:
    """Config keys applied on top of :class:`TestingConfig`.

    Test modules override this fixture to switch mode, TTLs or backend.
    """
    return {}


@pytest.fixture()
def fake_redis() -> fakeredis.FakeRedis:
    """Provide a fresh FakeRedis instance for each test."""
    r = fakeredis.FakeRedis()
    r.flushall()
    return r


@pytest.fixture()
def app(
    app_overrides: dict[str, Any], request: pytest.FixtureRequest
) -> Generator[Flask, None, None]:
    """Create a Flask application bound to a fresh in-memory database.

    Yields
    ------
    flask.Flask
        Application with an active app context and created schema.

    Notes
    -----
    A new app (and therefore a new SQLite ``:memory:`` engine) is built per
    test, so committed rows never leak between tests. When the overrides
    select the Redis backend the ``fake_redis`` fixture is injected.
    """
    redis_client = None
    if app_overrides.get("TOKEN_STORE_BACKEND") == "redis":
        redis_client = request.getfixturevalue("fake_redis")

    application = create_app(TestingConfig, overrides=app_overrides, redis_client=redis_client)
    with application.app_context():
        _db.create_all()
        try:
            yield application
        finally:
            _db.session.remove()
            _db.drop_all()


@pytest.fixture()
def db(app: Flask):
    """Expose the Flask-SQLAlchemy extension bound to ``app``."""
    return _db


@pytest.fixture()
def session(db) -> Generator[Any, None, None]:
    """Provide the Flask-scoped session and wire Factory Boy to it."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(db.session)
    try:
        yield db.session
    finally:
        SQLAlchemySession.set(None)


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a Flask test client."""
    return app.test_client()


@pytest.fixture()
def runner(app: Flask) -> FlaskCliRunner:
    """Return a Click runner bound to the application CLI."""
    return app.test_cli_runner()


@pytest.fixture()
def auth_service(app: Flask):
    """Return the service graph wired into ``app``."""
    from bearer_auth.services.wiring import get_auth_service

    return get_auth_service()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk
