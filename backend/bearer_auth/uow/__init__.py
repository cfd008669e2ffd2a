"""Unit of Work abstractions and concrete implementations."""

from .base import UnitOfWork
from .sqlalchemy_uow import (
    SessionProvider,
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
    flask_session,
)

__all__ = [
    "SessionProvider",
    "UnitOfWork",
    "SQLAlchemyUnitOfWork",
    "SQLAlchemyReadOnlyUnitOfWork",
    "flask_session",
]
