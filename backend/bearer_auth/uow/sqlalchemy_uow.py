"""
SQLAlchemy implementation of UnitOfWork for Flask.
"""

from __future__ import annotations

from collections.abc import Callable

from sqlalchemy.orm import Session

from bearer_auth.core.extensions import db
from bearer_auth.repositories import UserRepository, UserTokenRepository
from bearer_auth.uow.base import UnitOfWork

SessionProvider = Callable[[], Session]


def flask_session() -> Session:
    """Return the Flask-scoped session (requires an app context)."""
    return db.session  # type: ignore[return-value]


class SQLAlchemyRepositoryContainer:
    """Provide repository instances that share a SQLAlchemy session."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=self.session)
        self.tokens = UserTokenRepository(session=self.session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-write UoW: commit on success, rollback on error.

    :param session: Session to use; defaults to the Flask-scoped session.
    """

    def __init__(self, session: Session | None = None) -> None:
        super().__init__(session=session if session is not None else flask_session())

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        # No-op: the session is lazily started on the first statement.
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            try:
                self.commit()
            except Exception:
                self.rollback()
                raise
        else:
            self.rollback()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only UoW: always rolls back on exit and refuses ``commit()``.

    Callers must copy what they need out of ORM instances before leaving the
    block, since the rollback expires them.
    """

    def __init__(self, session: Session | None = None) -> None:
        super().__init__(session=session if session is not None else flask_session())

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.rollback()

    def commit(self) -> None:
        """
        :raises RuntimeError: always, to prevent accidental writes.
        """
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()
