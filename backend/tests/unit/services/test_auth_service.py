# tests/unit/services/test_auth_service.py
from __future__ import annotations

from datetime import timedelta

import pytest
from freezegun import freeze_time

from bearer_auth.services._shared.errors import (
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    TokenRevokedError,
    TokenVerificationError,
)
from bearer_auth.services._shared.ports import InMemoryCredentialStore, InMemoryTokenRecordStore
from bearer_auth.services.auth.dto import CredentialsIn, LogoutIn
from bearer_auth.services.tokens.dto import RevocationReason, TokenMode, TokenPurpose
from tests.helpers.auth import PASSWORD, build_auth_service

EMAIL = "ana@example.com"


# ------------------------------ Fixtures ---------------------------------- #
@pytest.fixture()
def credentials() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture()
def store() -> InMemoryTokenRecordStore:
    return InMemoryTokenRecordStore()


@pytest.fixture()
def service(credentials, store):
    """AuthService in single mode over in-memory doubles."""
    return build_auth_service(credentials=credentials, store=store)


@pytest.fixture()
def dual(credentials, store):
    return build_auth_service(credentials=credentials, store=store, mode=TokenMode.DUAL)


def _creds(email: str = EMAIL, password: str = PASSWORD) -> CredentialsIn:
    return CredentialsIn(email=email, password=password)


# ------------------------------ Signup/Login ------------------------------ #
def test_signup_creates_user_and_issues_access_token(service, credentials):
    tokens = service.signup(_creds(email="  Ana@Example.com "))

    assert tokens.refresh_token is None
    assert credentials.find_by_email(EMAIL).email == EMAIL
    assert credentials.password_hash(EMAIL) != PASSWORD
    assert service.tokens.verify(tokens.access_token).subject == EMAIL


def test_signup_dual_mode_returns_refresh_token(dual):
    tokens = dual.signup(_creds())
    assert tokens.refresh_token is not None


def test_signup_duplicate_email_keeps_existing_account(service, credentials):
    service.signup(_creds())
    original_hash = credentials.password_hash(EMAIL)

    with pytest.raises(ConflictError):
        service.signup(_creds(password="a-different-password"))

    assert credentials.password_hash(EMAIL) == original_hash
    assert len(service.tokens.history(EMAIL)) == 1


def test_login_supersedes_previous_token(service):
    first = service.signup(_creds()).access_token

    second = service.login(_creds()).access_token

    assert second != first
    with pytest.raises(TokenRevokedError):
        service.tokens.verify(first)
    assert service.tokens.history(EMAIL)[0].revoked_reason is RevocationReason.SUPERSEDED


def test_login_wrong_password_issues_nothing(service):
    service.signup(_creds())

    with pytest.raises(InvalidCredentialsError):
        service.login(_creds(password="wrong-password-123"))

    assert len(service.tokens.history(EMAIL)) == 1


def test_login_unknown_email(service):
    with pytest.raises(NotFoundError):
        service.login(_creds(email="ghost@example.com"))


# ------------------------------ Authenticate ------------------------------ #
def test_authenticate_valid_token(service):
    token = service.signup(_creds()).access_token

    result = service.authenticate(token)

    assert result.refreshed is False
    assert result.token == token
    assert result.user_id == EMAIL


def test_authenticate_reissues_expired_token(credentials, store):
    """Access TTL of one second; the client comes back two seconds later."""
    service = build_auth_service(credentials=credentials, store=store, access_ttl=1)

    with freeze_time("2026-03-01 10:00:00") as frozen:
        original = service.signup(_creds()).access_token
        frozen.tick(delta=timedelta(seconds=2))

        result = service.authenticate(original)

        assert result.refreshed is True
        assert result.token != original
        assert result.user_id == EMAIL

        old, new = service.tokens.history(EMAIL)
        assert old.revoked_reason is RevocationReason.EXPIRED
        assert new.active and new.token == result.token

        # The expired token is now dead; the new one works without reissue.
        with pytest.raises(TokenRevokedError):
            service.authenticate(original)
        again = service.authenticate(result.token)
        assert again.refreshed is False


def test_authenticate_revoked_token_is_not_reissued(service):
    token = service.signup(_creds()).access_token
    service.tokens.revoke(token)

    with pytest.raises(TokenRevokedError):
        service.authenticate(token)
    assert len(service.tokens.history(EMAIL)) == 1


def test_authenticate_after_account_removal(service, credentials):
    token = service.signup(_creds()).access_token
    credentials.delete(EMAIL)

    with pytest.raises(NotFoundError):
        service.authenticate(token)


def test_authenticate_rejects_refresh_token(dual, store):
    tokens = dual.signup(_creds())

    with pytest.raises(TokenVerificationError):
        dual.authenticate(tokens.refresh_token)
    assert store.find_by_token(tokens.refresh_token).active


# -------------------------------- Refresh --------------------------------- #
def test_refresh_single_mode_with_valid_access_token(service):
    old = service.signup(_creds()).access_token

    tokens = service.refresh(old)

    assert tokens.refresh_token is None
    assert service.tokens.verify(tokens.access_token).subject == EMAIL
    with pytest.raises(TokenRevokedError):
        service.tokens.verify(old)


def test_refresh_single_mode_with_expired_access_token(service):
    with freeze_time("2026-03-01 10:00:00") as frozen:
        old = service.signup(_creds()).access_token
        frozen.tick(delta=timedelta(minutes=10))

        tokens = service.refresh(old)

        assert service.tokens.verify(tokens.access_token).subject == EMAIL


def test_refresh_dual_mode_rotates_both_tokens(dual):
    first = dual.signup(_creds())

    second = dual.refresh(first.refresh_token)

    assert second.refresh_token not in (None, first.refresh_token)
    for stale in (first.access_token, first.refresh_token):
        with pytest.raises(TokenRevokedError):
            dual.tokens.verify(stale)


def test_refresh_dual_mode_rejects_access_token(dual):
    tokens = dual.signup(_creds())

    with pytest.raises(TokenVerificationError):
        dual.refresh(tokens.access_token)


def test_refresh_revoked_token(service):
    token = service.signup(_creds()).access_token
    service.tokens.revoke(token)

    with pytest.raises(TokenRevokedError):
        service.refresh(token)


# --------------------------- Logout / whoami ------------------------------ #
def test_logout_revokes_presented_token(service):
    token = service.signup(_creds()).access_token

    assert service.logout(LogoutIn(token=token)) == 1

    with pytest.raises(TokenRevokedError):
        service.authenticate(token)
    assert service.tokens.history(EMAIL)[-1].revoked_reason is RevocationReason.LOGOUT


def test_logout_all_sessions_revokes_every_purpose(dual):
    tokens = dual.signup(_creds())

    assert dual.logout(LogoutIn(token=tokens.access_token, all_sessions=True)) == 2
    with pytest.raises(TokenRevokedError):
        dual.refresh(tokens.refresh_token)


def test_whoami(service):
    service.signup(_creds())
    assert service.whoami(EMAIL).email == EMAIL

    with pytest.raises(NotFoundError):
        service.whoami("ghost@example.com")


def test_mode_follows_token_service(service, dual):
    assert service.mode is TokenMode.SINGLE
    assert dual.mode is TokenMode.DUAL
    assert dual.tokens.history(EMAIL, TokenPurpose.REFRESH) == []


def test_sessions_are_isolated_between_users(service, faker):
    emails = [faker.unique.email() for _ in range(3)]
    tokens = {email: service.signup(_creds(email=email)).access_token for email in emails}

    service.login(_creds(email=emails[0]))

    with pytest.raises(TokenRevokedError):
        service.authenticate(tokens[emails[0]])
    for email in emails[1:]:
        assert service.authenticate(tokens[email]).user_id == email.lower()
