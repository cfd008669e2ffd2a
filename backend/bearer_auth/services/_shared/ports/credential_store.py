from __future__ import annotations

import threading
from typing import Protocol

from werkzeug.security import check_password_hash, generate_password_hash

from bearer_auth.services._shared.errors import ConflictError, NotFoundError
from bearer_auth.services.auth.dto import UserRecord, normalize_email


class CredentialStore(Protocol):
    """
    Port for user credentials.

    Implementations own password hashing; callers only ever hand over raw
    passwords and get booleans back.
    """

    def find_by_email(self, email: str) -> UserRecord:
        """:raises NotFoundError: When no user has this email."""

    def create(self, email: str, password: str) -> UserRecord:
        """:raises ConflictError: When the email is already registered."""

    def verify_password(self, email: str, password: str) -> bool:
        """:raises NotFoundError: When no user has this email."""


class InMemoryCredentialStore(CredentialStore):
    """Dictionary-backed credential store for unit tests."""

    def __init__(self) -> None:
        self._hashes: dict[str, str] = {}
        self._ids: dict[str, int] = {}
        self._lock = threading.Lock()

    def find_by_email(self, email: str) -> UserRecord:
        key = normalize_email(email)
        if key not in self._hashes:
            raise NotFoundError("User", key)
        return UserRecord(email=key, id=self._ids[key])

    def create(self, email: str, password: str) -> UserRecord:
        key = normalize_email(email)
        with self._lock:
            if key in self._hashes:
                raise ConflictError("User", "email already in use")
            self._hashes[key] = generate_password_hash(password)
            self._ids[key] = len(self._ids) + 1
        return UserRecord(email=key, id=self._ids[key])

    def verify_password(self, email: str, password: str) -> bool:
        key = normalize_email(email)
        stored = self._hashes.get(key)
        if stored is None:
            raise NotFoundError("User", key)
        return bool(check_password_hash(stored, password))

    def delete(self, email: str) -> None:
        """Drop a user; only used by tests that simulate account removal."""
        key = normalize_email(email)
        self._hashes.pop(key, None)
        self._ids.pop(key, None)

    def password_hash(self, email: str) -> str:
        return self._hashes[normalize_email(email)]
