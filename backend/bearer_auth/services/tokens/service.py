# bearer_auth/services/tokens/service.py
from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import uuid4

from bearer_auth.services._shared.errors import (
    PurposeNotConfiguredError,
    TokenExpiredError,
    TokenRevokedError,
    TokenVerificationError,
)
from bearer_auth.services._shared.ports import TokenProvider, TokenRecordStore
from bearer_auth.services.tokens.dto import (
    IssuedTokens,
    NewTokenRecord,
    PurposeSettings,
    RevocationReason,
    TokenMode,
    TokenPayload,
    TokenPurpose,
    TokenRecord,
    TokenSettings,
)

log = logging.getLogger(__name__)


class TokenService:
    """
    Token lifecycle: issuance, verification and revocation.

    Every issued token is persisted through a :class:`TokenRecordStore`. A
    token is only valid while its record is active, so the store is the
    source of truth and the signature is a second, independent check.

    Invariant: for a given ``(user_id, purpose)`` at most one record is
    active. :meth:`generate` relies on :meth:`TokenRecordStore.replace_active`
    to revoke the previous records and insert the new one atomically.
    """

    def __init__(
        self,
        *,
        store: TokenRecordStore,
        provider: TokenProvider,
        settings: TokenSettings,
    ) -> None:
        """
        :param store: Persistence for token records.
        :param provider: Signing/decoding adapter.
        :param settings: Issuer, per-purpose secrets/TTLs and mode.
        """
        self.store = store
        self.provider = provider
        self.settings = settings

    @property
    def mode(self) -> TokenMode:
        return self.settings.mode

    # ------------------------------------------------------------------ #
    # Issuance
    # ------------------------------------------------------------------ #

    def generate(self, user_id: str, purpose: TokenPurpose = TokenPurpose.ACCESS) -> str:
        """
        Sign a new token and make it the only active one for ``(user_id, purpose)``.

        :param user_id: Owner identifier (normalized email).
        :param purpose: Token purpose.
        :returns: Encoded token string.
        :raises ConflictError: When concurrent issuance kept winning the race.
        :raises PurposeNotConfiguredError: When ``purpose`` is not enabled by the mode.
        """
        try:
            cfg = self.settings.for_purpose(purpose)
        except ValueError as exc:
            raise PurposeNotConfiguredError(purpose.value) from exc
        now = int(datetime.now(UTC).timestamp())
        payload = TokenPayload(
            issuer=self.settings.issuer,
            subject=user_id,
            purpose=purpose,
            expires_at=now + cfg.ttl_seconds,
            issued_at=now,
            token_id=uuid4().hex,
        )
        token = self.provider.encode(payload, secret=cfg.secret)

        superseded = self.store.replace_active(
            NewTokenRecord(
                user_id=user_id,
                purpose=purpose,
                token=token,
                expires_at=datetime.fromtimestamp(payload.expires_at, tz=UTC),
            )
        )
        log.info(
            "token.issued",
            extra={"purpose": purpose.value, "revoked": superseded},
        )
        return token

    def generate_pair(self, user_id: str) -> IssuedTokens:
        """
        Issue the tokens a client receives after signup, login or refresh.

        In single mode only an access token is issued; in dual mode a refresh
        token is issued as well.
        """
        access = self.generate(user_id, TokenPurpose.ACCESS)
        if self.mode is TokenMode.DUAL:
            return IssuedTokens(
                access_token=access,
                refresh_token=self.generate(user_id, TokenPurpose.REFRESH),
            )
        return IssuedTokens(access_token=access)

    # ------------------------------------------------------------------ #
    # Verification
    # ------------------------------------------------------------------ #

    def verify(self, token: str, expected_purpose: TokenPurpose | None = None) -> TokenPayload:
        """
        Verify ``token`` against its record and its signature.

        A token failing the cryptographic check has its record revoked
        (``EXPIRED`` or ``INVALID``) before the error is raised, so it can never
        be accepted again.

        :param token: Encoded token string presented by a client.
        :param expected_purpose: Reject tokens issued for another purpose.
        :returns: Verified payload.
        :raises NotFoundError: When the token was never issued.
        :raises TokenRevokedError: When the record is revoked.
        :raises TokenExpiredError: When ``now >= exp``.
        :raises TokenVerificationError: On any other failure.
        """
        record = self.store.find_by_token(token)
        if record.revoked:
            raise TokenRevokedError()
        if expected_purpose is not None and record.purpose is not expected_purpose:
            raise TokenVerificationError(
                f"Expected a {expected_purpose.value} token, got {record.purpose.value}"
            )

        try:
            payload = self.provider.decode(
                token,
                secret=self._settings_for(record.purpose).secret,
                issuer=self.settings.issuer,
            )
            if payload.subject != record.user_id or payload.purpose is not record.purpose:
                raise TokenVerificationError("Token claims do not match the issued record")
        except TokenExpiredError:
            self._revoke_defensively(token, record, RevocationReason.EXPIRED)
            raise
        except TokenVerificationError:
            self._revoke_defensively(token, record, RevocationReason.INVALID)
            raise
        return payload

    def inspect(self, token: str) -> TokenPayload:
        """Decode ``token`` without checking signature, expiry or the store."""
        return self.provider.peek(token)

    def user_id_from_token(self, token: str) -> str:
        """
        Return the owner of ``token`` without verifying it.

        Only meant for locating the user behind an access token that already
        failed verification because it expired.
        """
        return self.inspect(token).subject

    # ------------------------------------------------------------------ #
    # Revocation & audit
    # ------------------------------------------------------------------ #

    def revoke(self, token: str) -> bool:
        """Revoke a single token (logout). Returns ``False`` if it was not active."""
        revoked = self.store.mark_revoked(token, reason=RevocationReason.LOGOUT)
        log.info("token.revoked", extra={"reason": RevocationReason.LOGOUT.value})
        return revoked

    def revoke_all(self, user_id: str, purpose: TokenPurpose | None = None) -> int:
        """Revoke every active token of ``user_id`` (optionally one purpose)."""
        count = self.store.revoke_all(user_id, purpose, reason=RevocationReason.LOGOUT)
        log.info(
            "token.revoked_all",
            extra={
                "purpose": purpose.value if purpose else None,
                "revoked": count,
                "reason": RevocationReason.LOGOUT.value,
            },
        )
        return count

    def history(self, user_id: str, purpose: TokenPurpose | None = None) -> list[TokenRecord]:
        return list(self.store.list_for_user(user_id, purpose))

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _settings_for(self, purpose: TokenPurpose) -> PurposeSettings:
        # A record may outlive a mode switch (e.g. refresh tokens after going
        # back to single mode); such tokens can no longer be verified.
        try:
            return self.settings.for_purpose(purpose)
        except ValueError as exc:
            raise TokenVerificationError(str(exc)) from exc

    def _revoke_defensively(
        self, token: str, record: TokenRecord, reason: RevocationReason
    ) -> None:
        changed = self.store.mark_revoked(token, reason=reason)
        log.warning(
            "token.rejected",
            extra={
                "purpose": record.purpose.value,
                "reason": reason.value,
                "revoked": int(changed),
            },
        )
