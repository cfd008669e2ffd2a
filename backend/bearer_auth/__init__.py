"""Bearer-token lifecycle service.

Provide convenient access to :func:`bearer_auth.factory.create_app` so callers
can ``from bearer_auth import create_app``.
"""

from __future__ import annotations

from .factory import create_app

__all__ = ["create_app"]
