"""Generic repository base for SQLAlchemy 2.x.

Repositories stay persistence-only:

- They never implement use cases or domain policies.
- They never call commit/rollback; the Unit of Work owns the transaction.
- Multi-row state changes are issued as single ``UPDATE`` statements with a
  guard in the ``WHERE`` clause so concurrent writers cannot lose updates.
"""

from __future__ import annotations

from typing import Generic, TypeVar, cast

from sqlalchemy.orm import Session

from bearer_auth.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


class BaseRepository(Generic[E]):
    """Generic, persistence-only repository for a single aggregate.

    Subclasses MUST define ``model``: the SQLAlchemy mapped class.

    This class NEVER opens, commits or rolls back transactions.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """Initialise the repository with an optional SQLAlchemy session.

        When no explicit session is provided the repository falls back to the
        Flask-scoped session exposed by ``bearer_auth.core.extensions``.

        :param session: Session shared across the Unit of Work scope.
        :type session: :class:`sqlalchemy.orm.Session` | None
        """
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Return the injected session, or the Flask-scoped one."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    # --------------------------------- CRUD ----------------------------------

    def add(self, instance: E) -> E:
        """Stage a new entity for persistence and flush to materialize the PK.

        :param instance: New entity instance.
        :type instance: E
        :returns: The same instance after ``flush()``.
        :rtype: E
        """
        self.session.add(instance)
        self.flush()
        return instance

    def flush(self) -> None:
        """Flush pending changes to the database without committing."""
        self.session.flush()
