"""
DTOs and value objects for the token lifecycle.

Everything here is plain Python so ports, adapters and models can share the
same vocabulary without importing Flask or SQLAlchemy.
"""

from __future__ import annotations

import hashlib
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

# --------------------------------------------------------------------------- #
# Enumerations
# --------------------------------------------------------------------------- #


class TokenPurpose(str, Enum):
    """Functional role of a token."""

    ACCESS = "access"
    REFRESH = "refresh"


class RevocationReason(str, Enum):
    """Why a token record left the active state."""

    SUPERSEDED = "superseded"
    EXPIRED = "expired"
    INVALID = "invalid"
    LOGOUT = "logout"


class TokenMode(str, Enum):
    """Deployment mode: access tokens only, or access + refresh pairs."""

    SINGLE = "single"
    DUAL = "dual"


def token_digest(token: str) -> str:
    """Return the SHA-256 hex digest used to index a token string."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


# --------------------------------------------------------------------------- #
# Records & payloads
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class NewTokenRecord:
    """
    Write model handed to a token record store on issuance.

    :param user_id: Owner identifier (normalized email).
    :param purpose: Token purpose.
    :param token: Encoded, signed token string.
    :param expires_at: Expiry copied from the payload (UTC).
    """

    user_id: str
    purpose: TokenPurpose
    token: str
    expires_at: datetime

    @property
    def digest(self) -> str:
        return token_digest(self.token)


@dataclass(frozen=True, slots=True)
class TokenRecord:
    """
    Read model for a persisted token record.

    :ivar seq: Monotonic creation order.
    :ivar user_id: Owner identifier.
    :ivar purpose: Token purpose.
    :ivar token: Encoded token string.
    :ivar revoked: Whether the record has been revoked.
    :ivar revoked_reason: Reason recorded at revocation time.
    :ivar created_at: Issuance timestamp (UTC).
    :ivar revoked_at: Revocation timestamp (UTC) when revoked.
    """

    seq: int
    user_id: str
    purpose: TokenPurpose
    token: str
    revoked: bool
    revoked_reason: RevocationReason | None = None
    created_at: datetime | None = None
    revoked_at: datetime | None = None

    @property
    def active(self) -> bool:
        return not self.revoked


@dataclass(frozen=True, slots=True)
class TokenPayload:
    """Decoded claims of a signed token."""

    issuer: str
    subject: str
    purpose: TokenPurpose
    expires_at: int
    issued_at: int | None = None
    token_id: str | None = None

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> TokenPayload:
        """
        Build a payload from raw JWT claims.

        :raises ValueError: When a mandatory claim is missing or malformed.
        """
        try:
            return cls(
                issuer=str(claims["iss"]),
                subject=str(claims["sub"]),
                purpose=TokenPurpose(claims["purpose"]),
                expires_at=int(claims["exp"]),
                issued_at=int(claims["iat"]) if "iat" in claims else None,
                token_id=claims.get("jti"),
            )
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed token claims: {exc}") from exc

    def to_claims(self) -> dict[str, Any]:
        claims: dict[str, Any] = {
            "iss": self.issuer,
            "sub": self.subject,
            "purpose": self.purpose.value,
            "exp": self.expires_at,
        }
        if self.issued_at is not None:
            claims["iat"] = self.issued_at
        if self.token_id is not None:
            claims["jti"] = self.token_id
        return claims


# --------------------------------------------------------------------------- #
# Configuration
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class PurposeSettings:
    """
    Signing settings for one purpose.

    :param secret: HMAC secret used to sign and verify.
    :param ttl_seconds: Lifetime from issuance to expiry.
    """

    secret: str
    ttl_seconds: int


@dataclass(frozen=True, slots=True)
class TokenSettings:
    """
    Token emission configuration.

    :param issuer: ``iss`` claim written and enforced on every token.
    :param purposes: Per-purpose signing settings.
    :param mode: Single (access only) or dual (access + refresh).
    :param algorithm: JWS algorithm.
    :param issue_retries: Attempts for the revoke-then-insert transaction.
    """

    issuer: str
    purposes: Mapping[TokenPurpose, PurposeSettings]
    mode: TokenMode = TokenMode.SINGLE
    algorithm: str = "HS256"
    issue_retries: int = 3

    def for_purpose(self, purpose: TokenPurpose) -> PurposeSettings:
        try:
            return self.purposes[purpose]
        except KeyError:
            raise ValueError(f"Token purpose not configured: {purpose.value}") from None

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> TokenSettings:
        """Build settings from a Flask config mapping."""
        mode = TokenMode(str(config.get("AUTH_TOKEN_MODE", "single")).strip().lower())
        purposes: dict[TokenPurpose, PurposeSettings] = {
            TokenPurpose.ACCESS: PurposeSettings(
                secret=str(config["JWT_ACCESS_SECRET"]),
                ttl_seconds=int(config.get("JWT_ACCESS_TTL_SECONDS", 300)),
            )
        }
        if mode is TokenMode.DUAL:
            purposes[TokenPurpose.REFRESH] = PurposeSettings(
                secret=str(config["JWT_REFRESH_SECRET"]),
                ttl_seconds=int(config.get("JWT_REFRESH_TTL_SECONDS", 1_209_600)),
            )
        return cls(
            issuer=str(config["JWT_ISSUER"]),
            purposes=purposes,
            mode=mode,
            algorithm=str(config.get("JWT_ALGORITHM", "HS256")),
            issue_retries=max(1, int(config.get("TOKEN_ISSUE_RETRIES", 3))),
        )


# --------------------------------------------------------------------------- #
# Output DTOs
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class IssuedTokens:
    """
    Tokens handed to the client after signup, login or refresh.

    ``refresh_token`` is only set in dual mode.
    """

    access_token: str
    refresh_token: str | None = None
