"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from bearer_auth.repositories.base import BaseRepository
from bearer_auth.repositories.user import UserRepository
from bearer_auth.repositories.user_token import UserTokenRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "UserTokenRepository",
]
