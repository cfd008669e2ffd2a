# tests/unit/infra/test_sql_token_record_store.py
from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from bearer_auth.infra.sql import SqlTokenRecordStore
from bearer_auth.infra.sql.token_record_store import _lost_active_race
from bearer_auth.repositories import UserTokenRepository
from bearer_auth.services._shared.errors import ConflictError, NotFoundError
from bearer_auth.services.tokens.dto import NewTokenRecord, RevocationReason, TokenPurpose
from tests.helpers.records import count_active

USER = "ana@example.com"


def _record(token: str, user: str = USER, purpose: TokenPurpose = TokenPurpose.ACCESS):
    return NewTokenRecord(
        user_id=user,
        purpose=purpose,
        token=token,
        expires_at=datetime.now(UTC) + timedelta(minutes=5),
    )


@pytest.fixture()
def store(session) -> SqlTokenRecordStore:
    return SqlTokenRecordStore(retries=2)


def test_replace_active_supersedes_previous(store):
    assert store.replace_active(_record("t1")) == 0
    assert store.replace_active(_record("t2")) == 1

    first, second = store.list_for_user(USER)
    assert first.token == "t1" and first.revoked
    assert first.revoked_reason is RevocationReason.SUPERSEDED
    assert first.revoked_at is not None
    assert second.active and second.seq > first.seq


def test_one_active_row_per_user_and_purpose(store):
    for i in range(5):
        store.replace_active(_record(f"t{i}"))
    store.replace_active(_record("r0", purpose=TokenPurpose.REFRESH))

    assert count_active(store, USER, TokenPurpose.ACCESS) == 1
    assert count_active(store, USER, TokenPurpose.REFRESH) == 1


def test_partial_index_rejects_second_active_row(store):
    store.replace_active(_record("t1"))

    with pytest.raises(IntegrityError) as excinfo:
        store.insert(_record("t2"))

    assert _lost_active_race(excinfo.value)
    # The failed insert was rolled back; t1 is untouched.
    assert store.find_by_token("t1").active
    with pytest.raises(NotFoundError):
        store.find_by_token("t2")


def test_insert_allowed_once_previous_is_revoked(store):
    store.replace_active(_record("t1"))
    store.mark_revoked("t1", reason=RevocationReason.LOGOUT)

    row = store.insert(_record("t2"))
    assert row.active and row.token == "t2"


def test_replace_active_gives_up_under_persistent_contention(store, monkeypatch):
    """A writer that keeps re-inserting an active row exhausts the retries."""
    store.replace_active(_record("t1"))
    monkeypatch.setattr(UserTokenRepository, "revoke_active", lambda self, *a, **kw: 0)

    with pytest.raises(ConflictError):
        store.replace_active(_record("t2"))

    assert store.find_by_token("t1").active


def test_find_by_token_unknown(store):
    with pytest.raises(NotFoundError):
        store.find_by_token("never-issued")


def test_mark_revoked_is_conditional(store):
    store.replace_active(_record("t1"))

    assert store.mark_revoked("t1", reason=RevocationReason.INVALID) is True
    assert store.mark_revoked("t1", reason=RevocationReason.LOGOUT) is False
    assert store.mark_revoked("unknown", reason=RevocationReason.LOGOUT) is False
    assert store.find_by_token("t1").revoked_reason is RevocationReason.INVALID


def test_revoke_all(store):
    store.replace_active(_record("a1"))
    store.replace_active(_record("r1", purpose=TokenPurpose.REFRESH))
    store.replace_active(_record("b1", user="bob@example.com"))

    assert store.revoke_all(USER, TokenPurpose.ACCESS, reason=RevocationReason.LOGOUT) == 1
    assert store.revoke_all(USER, reason=RevocationReason.LOGOUT) == 1
    assert store.find_by_token("b1").active


def test_list_for_user_filters_purpose(store):
    store.replace_active(_record("a1"))
    store.replace_active(_record("r1", purpose=TokenPurpose.REFRESH))

    assert [r.token for r in store.list_for_user(USER, TokenPurpose.REFRESH)] == ["r1"]
    assert store.list_for_user("nobody@example.com") == []
