"""Issued-token record model (append-only audit trail)."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Index, String, Text, func, text
from sqlalchemy.orm import Mapped, mapped_column

from bearer_auth.core.extensions import db
from bearer_auth.services.tokens.dto import RevocationReason, TokenPurpose, TokenRecord

from .base import PKMixin, ReprMixin

ACTIVE_TOKEN_INDEX = "uq_user_tokens_active"


class UserToken(PKMixin, ReprMixin, db.Model):
    """
    One issued, signed token.

    Rows are never deleted; leaving the active state means ``revoked = True``.
    A partial unique index allows at most one active row per
    ``(user_email, purpose)``, so two concurrent issuers cannot both commit.

    Fields
    ------
    user_email : str
        Owner identifier (normalized email).
    purpose : TokenPurpose
        ``access`` or ``refresh``.
    token : str
        Encoded token string as handed to the client.
    token_digest : str
        SHA-256 hex of ``token``; unique lookup key.
    revoked : bool
        Revocation flag (default ``False``).
    revoked_reason : RevocationReason | None
        Why the row was revoked.
    expires_at : datetime
        Expiry copied from the token payload.
    created_at / revoked_at : datetime
        Audit timestamps.
    """

    __tablename__ = "user_tokens"

    user_email: Mapped[str] = mapped_column(String(254), nullable=False)
    purpose: Mapped[TokenPurpose] = mapped_column(
        Enum(
            TokenPurpose,
            name="token_purpose",
            values_callable=lambda e: [m.value for m in e],
            validate_strings=True,
        ),
        nullable=False,
    )
    token: Mapped[str] = mapped_column(Text, nullable=False)
    token_digest: Mapped[str] = mapped_column(String(64), nullable=False)
    revoked: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=text("false")
    )
    revoked_reason: Mapped[RevocationReason | None] = mapped_column(
        Enum(
            RevocationReason,
            name="token_revocation_reason",
            values_callable=lambda e: [m.value for m in e],
            validate_strings=True,
        ),
        nullable=True,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("uq_user_tokens_token_digest", "token_digest", unique=True),
        Index("ix_user_tokens_user_email_purpose", "user_email", "purpose"),
        Index(
            ACTIVE_TOKEN_INDEX,
            "user_email",
            "purpose",
            unique=True,
            sqlite_where=text("revoked = 0"),
            postgresql_where=text("revoked = false"),
        ),
    )

    def to_record(self) -> TokenRecord:
        """Return the framework-free read model of this row."""
        return TokenRecord(
            seq=self.id,
            user_id=self.user_email,
            purpose=self.purpose,
            token=self.token,
            revoked=self.revoked,
            revoked_reason=self.revoked_reason,
            created_at=self.created_at,
            revoked_at=self.revoked_at,
        )
