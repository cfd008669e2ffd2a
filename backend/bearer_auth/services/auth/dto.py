# bearer_auth/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass

from bearer_auth.services.tokens.dto import IssuedTokens, TokenPayload

# ---------------------------- Helpers ------------------------------------- #


def normalize_email(email: str) -> str:
    """Return the canonical (trimmed, lowercase) form of an email address."""
    return email.strip().lower()


# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class CredentialsIn:
    """
    Input DTO for signup and login.

    :param email: User email (normalized on construction by the service).
    :type email: str
    :param password: Raw password.
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param token: Encoded token being presented.
    :type token: str
    :param all_sessions: Revoke every purpose for the owner, not just this token.
    :type all_sessions: bool
    """

    token: str
    all_sessions: bool = False


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserRecord:
    """
    Public-safe view of a stored user.

    :param email: Unique identifier of the user.
    :type email: str
    :param id: Surrogate key when the store has one.
    :type id: int | None
    """

    email: str
    id: int | None = None


@dataclass(frozen=True, slots=True)
class AuthResult:
    """
    Outcome of :meth:`AuthService.authenticate`.

    :param token: Token the caller should keep using. Differs from the
        presented token when ``refreshed`` is ``True``.
    :param payload: Verified claims of ``token``.
    :param refreshed: ``True`` when an expired token was transparently reissued.
    """

    token: str
    payload: TokenPayload
    refreshed: bool = False

    @property
    def user_id(self) -> str:
        return self.payload.subject


__all__ = [
    "AuthResult",
    "CredentialsIn",
    "IssuedTokens",
    "LogoutIn",
    "UserRecord",
    "normalize_email",
]
