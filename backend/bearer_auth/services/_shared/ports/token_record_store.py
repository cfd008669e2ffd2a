from __future__ import annotations

import threading
from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Protocol

from bearer_auth.services._shared.errors import NotFoundError
from bearer_auth.services.tokens.dto import (
    NewTokenRecord,
    RevocationReason,
    TokenPurpose,
    TokenRecord,
    token_digest,
)


class TokenRecordStore(Protocol):
    """
    Persisted, append-only store of issued tokens.

    Invariant every implementation MUST keep: for a given ``(user_id, purpose)``
    at most one record has ``revoked = False`` at any time. Records are never
    deleted; they are only revoked.
    """

    def replace_active(self, record: NewTokenRecord) -> int:
        """
        Atomically revoke every active record of ``(record.user_id, record.purpose)``
        (reason ``SUPERSEDED``) and insert ``record`` as the new active one.

        :returns: Number of records revoked by this call.
        """

    def insert(self, record: NewTokenRecord) -> TokenRecord:
        """
        Insert ``record`` as active without touching older records.

        Callers are responsible for the invariant; prefer :meth:`replace_active`.
        """

    def revoke_all(
        self,
        user_id: str,
        purpose: TokenPurpose | None = None,
        *,
        reason: RevocationReason = RevocationReason.SUPERSEDED,
    ) -> int:
        """
        Revoke every active record of ``user_id`` (optionally one purpose only).

        :returns: Number of records revoked.
        """

    def find_by_token(self, token: str) -> TokenRecord:
        """:raises NotFoundError: When the token was never issued by this store."""

    def mark_revoked(self, token: str, *, reason: RevocationReason) -> bool:
        """
        Conditionally revoke one record.

        Only an active record is updated, so concurrent callers cannot overwrite
        each other's reason.

        :returns: ``True`` if this call performed the revocation.
        """

    def list_for_user(
        self, user_id: str, purpose: TokenPurpose | None = None
    ) -> Sequence[TokenRecord]:
        """Return the audit trail of ``user_id`` in creation order."""


class InMemoryTokenRecordStore(TokenRecordStore):
    """
    In-memory token record store.

    .. note::
       A single lock makes every operation atomic, which is enough to exercise
       the invariant in unit tests.
    """

    def __init__(self) -> None:
        self._records: list[TokenRecord] = []
        self._by_digest: dict[str, int] = {}
        self._lock = threading.Lock()

    # ------------------------- helpers -------------------------

    @staticmethod
    def _now() -> datetime:
        return datetime.now(UTC)

    def _append(self, record: NewTokenRecord) -> TokenRecord:
        digest = record.digest
        if digest in self._by_digest:
            raise ValueError("Token already recorded.")
        row = TokenRecord(
            seq=len(self._records) + 1,
            user_id=record.user_id,
            purpose=record.purpose,
            token=record.token,
            revoked=False,
            created_at=self._now(),
        )
        self._by_digest[digest] = len(self._records)
        self._records.append(row)
        return row

    def _revoke_at(self, index: int, reason: RevocationReason) -> None:
        row = self._records[index]
        self._records[index] = TokenRecord(
            seq=row.seq,
            user_id=row.user_id,
            purpose=row.purpose,
            token=row.token,
            revoked=True,
            revoked_reason=reason,
            created_at=row.created_at,
            revoked_at=self._now(),
        )

    def _revoke_matching(
        self, user_id: str, purpose: TokenPurpose | None, reason: RevocationReason
    ) -> int:
        count = 0
        for i, row in enumerate(self._records):
            if row.revoked or row.user_id != user_id:
                continue
            if purpose is not None and row.purpose is not purpose:
                continue
            self._revoke_at(i, reason)
            count += 1
        return count

    # -------------------------- API ----------------------------

    def replace_active(self, record: NewTokenRecord) -> int:
        with self._lock:
            revoked = self._revoke_matching(
                record.user_id, record.purpose, RevocationReason.SUPERSEDED
            )
            self._append(record)
            return revoked

    def insert(self, record: NewTokenRecord) -> TokenRecord:
        with self._lock:
            return self._append(record)

    def revoke_all(
        self,
        user_id: str,
        purpose: TokenPurpose | None = None,
        *,
        reason: RevocationReason = RevocationReason.SUPERSEDED,
    ) -> int:
        with self._lock:
            return self._revoke_matching(user_id, purpose, reason)

    def find_by_token(self, token: str) -> TokenRecord:
        index = self._by_digest.get(token_digest(token))
        if index is None:
            raise NotFoundError("Token", "no matching record")
        return self._records[index]

    def mark_revoked(self, token: str, *, reason: RevocationReason) -> bool:
        with self._lock:
            index = self._by_digest.get(token_digest(token))
            if index is None or self._records[index].revoked:
                return False
            self._revoke_at(index, reason)
            return True

    def list_for_user(
        self, user_id: str, purpose: TokenPurpose | None = None
    ) -> list[TokenRecord]:
        return [
            row
            for row in self._records
            if row.user_id == user_id and (purpose is None or row.purpose is purpose)
        ]
