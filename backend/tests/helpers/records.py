"""Assertions over token record stores."""

from __future__ import annotations

from bearer_auth.services._shared.ports import TokenRecordStore
from bearer_auth.services.tokens.dto import TokenPurpose


def count_active(store: TokenRecordStore, user_id: str, purpose: TokenPurpose) -> int:
    """Number of active records ``store`` holds for ``(user_id, purpose)``."""
    return sum(1 for record in store.list_for_user(user_id, purpose) if record.active)
