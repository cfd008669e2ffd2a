"""Public import surface for ORM models."""

from __future__ import annotations

from .base import PKMixin, ReprMixin, TimestampMixin
from .user import User
from .user_token import UserToken

__all__ = ["PKMixin", "ReprMixin", "TimestampMixin", "User", "UserToken"]
