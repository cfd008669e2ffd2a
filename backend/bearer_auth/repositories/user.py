"""User repository for account persistence."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select

from bearer_auth.models.user import User
from bearer_auth.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It NEVER handles tokens; only DB-level user management.
    """

    model = User

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == email.lower().strip())
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def exists_by_email(self, email: str) -> bool:
        stmt = select(User.id).where(User.email == email.lower().strip())
        return bool(self.session.execute(stmt).first())

    def create(self, email: str, password: str) -> User:
        """Stage a new user; the model hashes ``password``.

        :raises IntegrityError: On flush when the email is already taken.
        """
        user = User(email=email)
        user.password = password
        return self.add(user)
