# tests/unit/repositories/test_repository_user_token.py
from __future__ import annotations

from datetime import UTC, datetime

import pytest

from bearer_auth.repositories import UserTokenRepository
from bearer_auth.services.tokens.dto import RevocationReason, TokenPurpose, token_digest
from tests.factories.user_token import UserTokenFactory

OWNER = "owner@example.com"


@pytest.fixture()
def repo(session) -> UserTokenRepository:
    return UserTokenRepository(session)


def test_get_by_digest(repo):
    row = UserTokenFactory(user_email=OWNER, token="abc")

    assert repo.get_by_digest(token_digest("abc")).id == row.id
    assert repo.get_by_digest(token_digest("zzz")) is None


def test_list_for_user_in_creation_order(repo):
    a = UserTokenFactory(user_email=OWNER, revoked=True)
    r = UserTokenFactory(user_email=OWNER, purpose=TokenPurpose.REFRESH)
    b = UserTokenFactory(user_email=OWNER)
    UserTokenFactory(user_email="someone@example.com")

    assert [t.id for t in repo.list_for_user(OWNER)] == [a.id, r.id, b.id]
    assert [t.id for t in repo.list_for_user(OWNER, TokenPurpose.ACCESS)] == [a.id, b.id]


def test_revoke_active_only_touches_active_rows(repo, session):
    UserTokenFactory(user_email=OWNER, revoked=True, revoked_reason=RevocationReason.EXPIRED)
    UserTokenFactory(user_email=OWNER)
    UserTokenFactory(user_email=OWNER, purpose=TokenPurpose.REFRESH)

    now = datetime.now(UTC)
    revoked = repo.revoke_active(
        OWNER, TokenPurpose.ACCESS, reason=RevocationReason.LOGOUT, now=now
    )
    assert revoked == 1
    assert repo.revoke_active(OWNER, None, reason=RevocationReason.LOGOUT, now=now) == 1
    assert repo.revoke_active(OWNER, None, reason=RevocationReason.LOGOUT, now=now) == 0
    session.commit()

    reasons = [t.revoked_reason for t in repo.list_for_user(OWNER)]
    assert reasons == [RevocationReason.EXPIRED, RevocationReason.LOGOUT, RevocationReason.LOGOUT]


def test_revoke_by_digest_is_guarded(repo, session):
    UserTokenFactory(user_email=OWNER, token="abc")
    now = datetime.now(UTC)

    assert repo.revoke_by_digest(token_digest("abc"), reason=RevocationReason.INVALID, now=now)
    assert not repo.revoke_by_digest(token_digest("abc"), reason=RevocationReason.LOGOUT, now=now)
    session.commit()

    assert repo.get_by_digest(token_digest("abc")).revoked_reason is RevocationReason.INVALID
