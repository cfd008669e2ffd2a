"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic**: they never import Flask or HTTP
helpers. They are the stable contract between stores, the token service and
the auth service. Translation to RFC 7807 responses happens in
``bearer_auth/core/errors.py``.

The token errors are deliberately distinct classes: the auth service reacts to
:class:`TokenExpiredError` (transparent reissue) differently from every other
verification failure (reject).
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    PostgreSQL includes the constraint name in the message; SQLite reports the
    offending columns instead, so callers usually check both.

    :param exc: The exception raised by SQLAlchemy during flush/commit.
    :param constraint_name: Constraint name or column fragment to look for.
    :returns: ``True`` if the message mentions ``constraint_name``.
    """
    message = str(exc.orig).lower() if exc.orig else str(exc).lower()
    return constraint_name.lower() in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    These are *not* HTTP errors; the boundary maps them to status codes.
    """


# --------------------------------------------------------------------------- #
# Lookup / write errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True, eq=False)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in a store.

    :param entity: Entity name (e.g., "User", "Token").
    :param key: Identifier or search key. Never a raw token string.
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True, eq=False)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :param detail: Short human-readable explanation.
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"


class InvalidCredentialsError(ServiceError):
    """Raised when a password does not match the stored hash."""

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


# --------------------------------------------------------------------------- #
# Token verification errors
# --------------------------------------------------------------------------- #


class TokenError(ServiceError):
    """Base class for token verification failures."""

    default_message = "Token verification failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class TokenExpiredError(TokenError):
    """The token signature is valid but ``now >= exp``."""

    default_message = "Token has expired"


class TokenRevokedError(TokenError):
    """The token record exists but has been revoked."""

    default_message = "Token has been revoked"


class TokenVerificationError(TokenError):
    """Signature, issuer, purpose or claim shape did not check out."""


@dataclass(slots=True, eq=False)
class PurposeNotConfiguredError(ServiceError):
    """
    Raised when a token is requested for a purpose the current mode lacks.

    Issuing a refresh token in single mode is a wiring mistake in the caller,
    never a client error.

    :param purpose: The purpose that has no secret/TTL configured.
    """

    purpose: str

    def __str__(self) -> str:
        return f"Token purpose not configured: {self.purpose}"
