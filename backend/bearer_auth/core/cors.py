"""CORS configuration helper for API resources."""

from __future__ import annotations

from flask import Flask
from flask_cors import CORS


def init_app(app: Flask) -> None:
    """Configure CORS for API endpoints based on application config.

    Parameters
    ----------
    app: flask.Flask
        Application whose ``CORS_ORIGINS`` and ``CORS_MAX_AGE`` settings are
        consulted. When ``CORS_ORIGINS`` is blank or ``"*"`` the policy allows
        any origin but disables credential support.

    Notes
    -----
    The reissued-token header (``NEW_TOKEN_HEADER``) is exposed so browser
    clients can read it and swap their stored token.
    """
    raw_origins = app.config.get("CORS_ORIGINS") or ""
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    wildcard = len(origins) == 0 or origins == ["*"]

    CORS(
        app,
        resources={r"/api/*": {"origins": "*" if wildcard else origins}},
        supports_credentials=not wildcard,
        expose_headers=[app.config.get("NEW_TOKEN_HEADER", "X-New-Token"), "X-Request-ID"],
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )
