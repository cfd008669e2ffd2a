# bearer_auth/infra/sql/credential_store.py
from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from bearer_auth.services._shared.errors import ConflictError, NotFoundError, violates
from bearer_auth.services._shared.ports import CredentialStore
from bearer_auth.services.auth.dto import UserRecord, normalize_email
from bearer_auth.uow import (
    SessionProvider,
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
    flask_session,
)


@dataclass(slots=True)
class SqlCredentialStore(CredentialStore):
    """
    Credential store backed by the ``users`` table.

    :param session_provider: Returns the session each unit of work runs on.
    """

    session_provider: SessionProvider = flask_session

    def find_by_email(self, email: str) -> UserRecord:
        key = normalize_email(email)
        with SQLAlchemyReadOnlyUnitOfWork(self.session_provider()) as uow:
            user = uow.users.get_by_email(key)
            if user is None:
                raise NotFoundError("User", key)
            return UserRecord(email=user.email, id=user.id)

    def create(self, email: str, password: str) -> UserRecord:
        key = normalize_email(email)
        try:
            with SQLAlchemyUnitOfWork(self.session_provider()) as uow:
                if uow.users.exists_by_email(key):
                    raise ConflictError("User", "email already in use")
                user = uow.users.create(key, password)
                record = UserRecord(email=user.email, id=user.id)
        except IntegrityError as exc:
            # Lost a race against a concurrent signup for the same email.
            if violates(exc, "uq_users_email") or violates(exc, "users.email"):
                raise ConflictError("User", "email already in use") from exc
            raise
        return record

    def verify_password(self, email: str, password: str) -> bool:
        key = normalize_email(email)
        with SQLAlchemyReadOnlyUnitOfWork(self.session_provider()) as uow:
            user = uow.users.get_by_email(key)
            if user is None:
                raise NotFoundError("User", key)
            return user.verify_password(password)
