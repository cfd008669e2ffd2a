# bearer_auth/infra/sql/token_record_store.py
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError

from bearer_auth.models.user_token import ACTIVE_TOKEN_INDEX, UserToken
from bearer_auth.services._shared.errors import ConflictError, NotFoundError, violates
from bearer_auth.services._shared.ports import TokenRecordStore
from bearer_auth.services.tokens.dto import (
    NewTokenRecord,
    RevocationReason,
    TokenPurpose,
    TokenRecord,
    token_digest,
)
from bearer_auth.uow import (
    SessionProvider,
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
    flask_session,
)

log = logging.getLogger(__name__)


def _lost_active_race(exc: IntegrityError) -> bool:
    # PostgreSQL names the index; SQLite lists the indexed columns.
    return violates(exc, ACTIVE_TOKEN_INDEX) or violates(
        exc, "user_tokens.user_email, user_tokens.purpose"
    )


@dataclass(slots=True)
class SqlTokenRecordStore(TokenRecordStore):
    """
    Token record store backed by the ``user_tokens`` table.

    ``replace_active`` runs the revoke-then-insert in one transaction. The
    partial unique index on active ``(user_email, purpose)`` rows makes a
    concurrent loser fail with ``IntegrityError``; the transaction is then
    retried up to ``retries`` times.

    :param session_provider: Returns the session each unit of work runs on.
    :param retries: Attempts for ``replace_active`` under contention.
    """

    session_provider: SessionProvider = flask_session
    retries: int = 3

    @staticmethod
    def _now() -> datetime:
        return datetime.now(UTC)

    def _rw(self) -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(self.session_provider())

    def _ro(self) -> SQLAlchemyReadOnlyUnitOfWork:
        return SQLAlchemyReadOnlyUnitOfWork(self.session_provider())

    @staticmethod
    def _to_row(record: NewTokenRecord) -> UserToken:
        return UserToken(
            user_email=record.user_id,
            purpose=record.purpose,
            token=record.token,
            token_digest=record.digest,
            revoked=False,
            expires_at=record.expires_at,
        )

    # -------------------------- API ----------------------------

    def replace_active(self, record: NewTokenRecord) -> int:
        for attempt in range(1, self.retries + 1):
            try:
                with self._rw() as uow:
                    revoked = uow.tokens.revoke_active(
                        record.user_id,
                        record.purpose,
                        reason=RevocationReason.SUPERSEDED,
                        now=self._now(),
                    )
                    uow.tokens.add(self._to_row(record))
                return revoked
            except IntegrityError as exc:
                if not _lost_active_race(exc):
                    raise
                log.warning(
                    "token.issue_contention attempt=%s",
                    attempt,
                    extra={"purpose": record.purpose.value},
                )
        raise ConflictError("Token", "concurrent issuance did not settle")

    def insert(self, record: NewTokenRecord) -> TokenRecord:
        with self._rw() as uow:
            row = uow.tokens.add(self._to_row(record))
            return row.to_record()

    def revoke_all(
        self,
        user_id: str,
        purpose: TokenPurpose | None = None,
        *,
        reason: RevocationReason = RevocationReason.SUPERSEDED,
    ) -> int:
        with self._rw() as uow:
            return uow.tokens.revoke_active(user_id, purpose, reason=reason, now=self._now())

    def find_by_token(self, token: str) -> TokenRecord:
        with self._ro() as uow:
            row = uow.tokens.get_by_digest(token_digest(token))
            if row is None:
                raise NotFoundError("Token", "no matching record")
            return row.to_record()

    def mark_revoked(self, token: str, *, reason: RevocationReason) -> bool:
        with self._rw() as uow:
            return uow.tokens.revoke_by_digest(token_digest(token), reason=reason, now=self._now())

    def list_for_user(
        self, user_id: str, purpose: TokenPurpose | None = None
    ) -> Sequence[TokenRecord]:
        with self._ro() as uow:
            return [row.to_record() for row in uow.tokens.list_for_user(user_id, purpose)]
