from __future__ import annotations

import pytest

from bearer_auth.models.user import User
from bearer_auth.uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork


def _count(session) -> int:
    return session.query(User).count()


def test_writer_commits_on_success(session):
    with SQLAlchemyUnitOfWork(session) as uow:
        uow.users.create("w@example.com", "password-123")

    session.expire_all()
    assert _count(session) == 1


def test_writer_rolls_back_on_error(session):
    with pytest.raises(RuntimeError):
        with SQLAlchemyUnitOfWork(session) as uow:
            uow.users.create("w@example.com", "password-123")
            raise RuntimeError("boom")

    assert _count(session) == 0


def test_readonly_always_rolls_back(session):
    with SQLAlchemyReadOnlyUnitOfWork(session) as uow:
        uow.users.create("r@example.com", "password-123")
        assert uow.users.exists_by_email("r@example.com")

    assert _count(session) == 0


def test_readonly_refuses_commit(session):
    with SQLAlchemyReadOnlyUnitOfWork(session) as uow:
        with pytest.raises(RuntimeError):
            uow.commit()


def test_default_session_is_flask_scoped(session):
    assert SQLAlchemyUnitOfWork().session is session
