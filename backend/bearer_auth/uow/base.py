"""Transaction boundary shared by the SQL-backed stores."""

from __future__ import annotations

from abc import ABC, abstractmethod


class UnitOfWork(ABC):
    """
    One database transaction around a store operation.

    Repositories opened inside the block share its session. Exceptions raised
    inside the block roll back and propagate; what happens on a normal exit
    (commit, or rollback for read-only work) is up to the subclass.
    """

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...
    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...
    @abstractmethod
    def commit(self) -> None: ...
    @abstractmethod
    def rollback(self) -> None: ...
