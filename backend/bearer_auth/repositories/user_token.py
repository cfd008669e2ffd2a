"""Repository for issued-token records."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any, cast

from sqlalchemy import select, update
from sqlalchemy.engine import CursorResult

from bearer_auth.models.user_token import UserToken
from bearer_auth.repositories.base import BaseRepository
from bearer_auth.services.tokens.dto import RevocationReason, TokenPurpose


class UserTokenRepository(BaseRepository[UserToken]):
    """Persistence-only repository for :class:`UserToken`.

    Revocations are guarded ``UPDATE ... WHERE revoked = false`` statements:
    the returned row count tells the caller whether *it* changed anything.
    """

    model = UserToken

    def get_by_digest(self, digest: str) -> UserToken | None:
        stmt = select(UserToken).where(UserToken.token_digest == digest)
        return cast(UserToken | None, self.session.execute(stmt).scalars().first())

    def list_for_user(
        self, user_email: str, purpose: TokenPurpose | None = None
    ) -> Sequence[UserToken]:
        """Return every record of ``user_email`` in creation order."""
        stmt = select(UserToken).where(UserToken.user_email == user_email)
        if purpose is not None:
            stmt = stmt.where(UserToken.purpose == purpose)
        return self.session.execute(stmt.order_by(UserToken.id.asc())).scalars().all()

    def revoke_active(
        self,
        user_email: str,
        purpose: TokenPurpose | None,
        *,
        reason: RevocationReason,
        now: datetime,
    ) -> int:
        """Revoke every active record of ``user_email`` (optionally one purpose).

        :returns: Number of rows revoked by this statement.
        """
        stmt = update(UserToken).where(
            UserToken.user_email == user_email,
            UserToken.revoked.is_(False),
        )
        if purpose is not None:
            stmt = stmt.where(UserToken.purpose == purpose)
        return self._execute_update(stmt, reason=reason, now=now)

    def revoke_by_digest(self, digest: str, *, reason: RevocationReason, now: datetime) -> bool:
        """Revoke one record only if it is still active.

        :returns: ``True`` when this call performed the revocation.
        """
        stmt = update(UserToken).where(
            UserToken.token_digest == digest,
            UserToken.revoked.is_(False),
        )
        return self._execute_update(stmt, reason=reason, now=now) == 1

    def _execute_update(self, stmt: Any, *, reason: RevocationReason, now: datetime) -> int:
        stmt = stmt.values(revoked=True, revoked_reason=reason, revoked_at=now).execution_options(
            synchronize_session=False
        )
        result = cast(CursorResult[Any], self.session.execute(stmt))
        return int(result.rowcount or 0)
