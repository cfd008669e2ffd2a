"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    CredentialsSchema,
    LogoutSchema,
    RefreshSchema,
    TokenResponseSchema,
    WhoAmISchema,
)

__all__ = [
    "CredentialsSchema",
    "LogoutSchema",
    "RefreshSchema",
    "TokenResponseSchema",
    "WhoAmISchema",
]
