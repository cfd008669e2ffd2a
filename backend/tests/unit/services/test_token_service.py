# tests/unit/services/test_token_service.py
from __future__ import annotations

from datetime import timedelta

import pytest
from freezegun import freeze_time

from bearer_auth.services._shared.errors import (
    NotFoundError,
    PurposeNotConfiguredError,
    TokenExpiredError,
    TokenRevokedError,
    TokenVerificationError,
)
from bearer_auth.services._shared.ports import InMemoryTokenRecordStore
from bearer_auth.services.tokens.dto import RevocationReason, TokenMode, TokenPurpose
from tests.helpers.auth import (
    ISSUER,
    access_claims,
    build_token_service,
    plant,
    signed,
)

USER = "ana@example.com"


# ------------------------------ Fixtures ---------------------------------- #
@pytest.fixture()
def store() -> InMemoryTokenRecordStore:
    return InMemoryTokenRecordStore()


@pytest.fixture()
def service(store):
    return build_token_service(store)


# -------------------------------- Issuance -------------------------------- #
def test_generate_then_verify_returns_claims(service):
    token = service.generate(USER)

    payload = service.verify(token)

    assert payload.subject == USER
    assert payload.purpose is TokenPurpose.ACCESS
    assert payload.issuer == ISSUER
    assert payload.expires_at - payload.issued_at == 300
    assert payload.token_id


def test_generate_supersedes_previous_token(service, store):
    """Only the newest token of a (user, purpose) pair stays active."""
    first = service.generate(USER)
    second = service.generate(USER)

    records = service.history(USER)
    assert [r.token for r in records] == [first, second]
    assert records[0].revoked_reason is RevocationReason.SUPERSEDED
    assert [r.active for r in records] == [False, True]

    with pytest.raises(TokenRevokedError):
        service.verify(first)
    assert service.verify(second).subject == USER


def test_generate_keeps_users_independent(service):
    a = service.generate("a@example.com")
    b = service.generate("b@example.com")

    assert service.verify(a).subject == "a@example.com"
    assert service.verify(b).subject == "b@example.com"


def test_generate_pair_single_mode_has_no_refresh(service):
    tokens = service.generate_pair(USER)
    assert tokens.refresh_token is None
    assert service.verify(tokens.access_token, TokenPurpose.ACCESS).subject == USER


def test_generate_pair_dual_mode_issues_both_purposes(store):
    service = build_token_service(store, mode=TokenMode.DUAL)

    tokens = service.generate_pair(USER)

    assert tokens.refresh_token is not None
    assert service.verify(tokens.access_token, TokenPurpose.ACCESS).purpose is TokenPurpose.ACCESS
    assert (
        service.verify(tokens.refresh_token, TokenPurpose.REFRESH).purpose is TokenPurpose.REFRESH
    )
    # One active record per purpose.
    active = [r for r in service.history(USER) if r.active]
    assert sorted(r.purpose.value for r in active) == ["access", "refresh"]


def test_generate_refresh_in_single_mode_is_rejected(service, store):
    with pytest.raises(PurposeNotConfiguredError, match="refresh"):
        service.generate(USER, TokenPurpose.REFRESH)

    assert store.list_for_user(USER) == []


# ------------------------------ Verification ------------------------------ #
def test_verify_unknown_token_raises_not_found(service):
    with pytest.raises(NotFoundError):
        service.verify(signed(access_claims(USER)))


def test_verify_expired_token_revokes_it(service):
    with freeze_time("2026-03-01 10:00:00") as frozen:
        token = service.generate(USER)
        frozen.tick(delta=timedelta(seconds=301))

        with pytest.raises(TokenExpiredError):
            service.verify(token)

        (record,) = service.history(USER)
        assert record.revoked_reason is RevocationReason.EXPIRED

        # Once revoked, the record answers before the signature is looked at.
        with pytest.raises(TokenRevokedError):
            service.verify(token)


def test_verify_expires_exactly_at_ttl(service):
    with freeze_time("2026-03-01 10:00:00") as frozen:
        token = service.generate(USER)

        frozen.tick(delta=timedelta(seconds=299))
        assert service.verify(token).subject == USER

        frozen.tick(delta=timedelta(seconds=1))
        with pytest.raises(TokenExpiredError):
            service.verify(token)

        (record,) = service.history(USER)
        assert record.revoked_reason is RevocationReason.EXPIRED


def test_verify_bad_signature_revokes_as_invalid(service, store):
    forged = signed(access_claims(USER), secret="not-the-access-secret-0123456789")
    plant(store, forged, USER, TokenPurpose.ACCESS)

    with pytest.raises(TokenVerificationError):
        service.verify(forged)

    assert store.find_by_token(forged).revoked_reason is RevocationReason.INVALID


def test_verify_foreign_issuer_revokes_as_invalid(service, store):
    foreign = signed(access_claims(USER, iss="someone-else"))
    plant(store, foreign, USER, TokenPurpose.ACCESS)

    with pytest.raises(TokenVerificationError):
        service.verify(foreign)
    assert store.find_by_token(foreign).revoked


def test_verify_subject_mismatch_with_record(service, store):
    token = signed(access_claims("mallory@example.com"))
    plant(store, token, USER, TokenPurpose.ACCESS)

    with pytest.raises(TokenVerificationError):
        service.verify(token)
    assert store.find_by_token(token).revoked_reason is RevocationReason.INVALID


def test_verify_missing_purpose_claim(service, store):
    claims = access_claims(USER)
    del claims["purpose"]
    token = signed(claims)
    plant(store, token, USER, TokenPurpose.ACCESS)

    with pytest.raises(TokenVerificationError):
        service.verify(token)


def test_verify_wrong_expected_purpose_does_not_revoke(store):
    service = build_token_service(store, mode=TokenMode.DUAL)
    refresh = service.generate(USER, TokenPurpose.REFRESH)

    with pytest.raises(TokenVerificationError):
        service.verify(refresh, expected_purpose=TokenPurpose.ACCESS)

    assert store.find_by_token(refresh).active
    assert service.verify(refresh, TokenPurpose.REFRESH).subject == USER


def test_refresh_record_left_over_from_dual_mode_is_invalid(store):
    dual = build_token_service(store, mode=TokenMode.DUAL)
    refresh = dual.generate(USER, TokenPurpose.REFRESH)
    single = build_token_service(store)

    with pytest.raises(TokenVerificationError):
        single.verify(refresh)
    assert store.find_by_token(refresh).revoked_reason is RevocationReason.INVALID


def test_user_id_from_expired_token(service):
    with freeze_time("2026-03-01 10:00:00") as frozen:
        token = service.generate(USER)
        frozen.tick(delta=timedelta(hours=1))
        assert service.user_id_from_token(token) == USER


# ------------------------------ Revocation -------------------------------- #
def test_revoke_is_conditional(service):
    token = service.generate(USER)

    assert service.revoke(token) is True
    assert service.revoke(token) is False
    (record,) = service.history(USER)
    assert record.revoked_reason is RevocationReason.LOGOUT


def test_revoke_all_covers_every_purpose(store):
    service = build_token_service(store, mode=TokenMode.DUAL)
    service.generate_pair(USER)
    service.generate_pair("other@example.com")

    assert service.revoke_all(USER) == 2
    assert all(r.revoked for r in service.history(USER))
    assert any(r.active for r in service.history("other@example.com"))


def test_revoke_all_single_purpose(store):
    service = build_token_service(store, mode=TokenMode.DUAL)
    service.generate_pair(USER)

    assert service.revoke_all(USER, TokenPurpose.REFRESH) == 1
    active = [r.purpose for r in service.history(USER) if r.active]
    assert active == [TokenPurpose.ACCESS]


def test_history_filters_by_purpose(store):
    service = build_token_service(store, mode=TokenMode.DUAL)
    service.generate_pair(USER)
    service.generate_pair(USER)

    refresh = service.history(USER, TokenPurpose.REFRESH)
    assert len(refresh) == 2
    assert {r.purpose for r in refresh} == {TokenPurpose.REFRESH}
