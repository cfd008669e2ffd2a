"""Application factory wiring Flask extensions, services and blueprints."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import redis  # type: ignore[import-untyped]
from flask import Flask

from bearer_auth.core.config import BaseConfig, ensure_production_secrets, get_config
from bearer_auth.core.logger import configure_logging, init_app as init_logging


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
    redis_client: redis.Redis | None = None,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    :param config: Config class/object/import path; defaults to ``APP_ENV``.
    :param overrides: Keys applied after the config object (tests, scripts).
    :param redis_client: Ready-made Redis client for the Redis token store.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)
    if overrides:
        app.config.update(overrides)

    ensure_production_secrets(app.config)
    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from bearer_auth.core import extensions

    extensions.init_app(app, redis_client_override=redis_client)

    init_logging(app)

    from bearer_auth.core import cors

    cors.init_app(app)

    from bearer_auth.services import wiring

    wiring.init_app(app)

    from bearer_auth.api import init_app as init_api

    init_api(app)

    from bearer_auth.core import errors

    errors.init_app(app)

    from bearer_auth import cli as app_cli

    app_cli.init_app(app)

    return app
