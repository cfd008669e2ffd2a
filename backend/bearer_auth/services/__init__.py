"""Service layer public API.

Re-exports
----------
- :class:`TokenService` (from ``bearer_auth.services.tokens``)
- :class:`AuthService` (from ``bearer_auth.services.auth``)

Process-level wiring of concrete stores lives in ``bearer_auth.services.wiring``.
"""

from __future__ import annotations

from .auth.service import AuthService
from .tokens.service import TokenService

__all__ = ["AuthService", "TokenService"]
