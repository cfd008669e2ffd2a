# bearer_auth/infra/redis/redis_token_record_store.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import redis  # type: ignore[import-untyped]

from bearer_auth.services._shared.errors import NotFoundError
from bearer_auth.services._shared.ports import TokenRecordStore
from bearer_auth.services.tokens.dto import (
    NewTokenRecord,
    RevocationReason,
    TokenPurpose,
    TokenRecord,
    token_digest,
)

log = logging.getLogger(__name__)


def _s(value: Any, default: str = "") -> str:
    """Decode a Redis reply (bytes or str) to ``str``."""
    if value is None:
        return default
    if isinstance(value, bytes | bytearray):
        return value.decode()
    return str(value)


@dataclass(slots=True)
class RedisTokenRecordStore(TokenRecordStore):
    """
    Redis-backed token record store.

    Layout
    ------
    ``tok:{digest}``
        Hash with the record fields (``revoked`` is ``"0"``/``"1"``).
    ``tok:active:{user}:{purpose}``
        Digest of the single active record for that pair, if any.
    ``tok:u:{user}``
        List of digests in creation order (audit trail).
    ``tok:seq``
        Monotonic creation counter.

    Every state change that touches the active pointer runs under
    WATCH/MULTI/EXEC and is retried when a concurrent writer interferes.

    :param r: A Redis client (already connected).
    :param prefix: Key namespace.
    """

    r: redis.Redis
    prefix: str = "tok"

    # -------------------- helpers --------------------

    def _k(self, digest: str) -> str:
        return f"{self.prefix}:{digest}"

    def _ka(self, user_id: str, purpose: TokenPurpose) -> str:
        return f"{self.prefix}:active:{user_id}:{purpose.value}"

    def _ku(self, user_id: str) -> str:
        return f"{self.prefix}:u:{user_id}"

    @property
    def _kseq(self) -> str:
        return f"{self.prefix}:seq"

    @staticmethod
    def _now_ts() -> int:
        return int(datetime.now(UTC).timestamp())

    @staticmethod
    def _to_ts(dt: datetime) -> int:
        return int(dt.timestamp()) if dt.tzinfo else int(dt.replace(tzinfo=UTC).timestamp())

    def _new_mapping(self, record: NewTokenRecord, seq: int) -> dict[str, str]:
        return {
            "seq": str(seq),
            "user_id": record.user_id,
            "purpose": record.purpose.value,
            "token": record.token,
            "revoked": "0",
            "expires_at": str(self._to_ts(record.expires_at)),
            "created_at": str(self._now_ts()),
        }

    def _revoked_fields(self, reason: RevocationReason) -> dict[str, str]:
        return {"revoked": "1", "reason": reason.value, "revoked_at": str(self._now_ts())}

    @staticmethod
    def _view(h: Mapping[Any, Any]) -> TokenRecord:
        fields = {_s(k): _s(v) for k, v in h.items()}
        reason = fields.get("reason")
        revoked_at = fields.get("revoked_at")
        return TokenRecord(
            seq=int(fields.get("seq", "0")),
            user_id=fields["user_id"],
            purpose=TokenPurpose(fields["purpose"]),
            token=fields["token"],
            revoked=fields.get("revoked", "0") == "1",
            revoked_reason=RevocationReason(reason) if reason else None,
            created_at=datetime.fromtimestamp(int(fields.get("created_at", "0")), tz=UTC),
            revoked_at=datetime.fromtimestamp(int(revoked_at), tz=UTC) if revoked_at else None,
        )

    def _revoke_pair(
        self, user_id: str, purpose: TokenPurpose, reason: RevocationReason
    ) -> int:
        """Revoke the active record of one ``(user, purpose)`` pair, if any."""
        k_active = self._ka(user_id, purpose)
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(k_active)
                    current = p.get(k_active)
                    if current is None:
                        p.unwatch()
                        return 0
                    k_cur = self._k(_s(current))
                    p.watch(k_cur)
                    active = _s(p.hget(k_cur, "revoked"), "1") == "0"

                    p.multi()
                    if active:
                        p.hset(k_cur, mapping=self._revoked_fields(reason))
                    p.delete(k_active)
                    p.execute()
                return int(active)
            except redis.WatchError:
                continue

    # -------------------- API ------------------------

    def replace_active(self, record: NewTokenRecord) -> int:
        """
        Atomically revoke the current active record and publish ``record``.

        The active pointer is watched, so two concurrent issuers for the same
        ``(user, purpose)`` cannot both commit; the loser re-reads and retries.
        """
        k_active = self._ka(record.user_id, record.purpose)
        k_new = self._k(record.digest)

        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(k_active)
                    current = p.get(k_active)
                    k_cur = self._k(_s(current)) if current is not None else None
                    superseded = False
                    if k_cur is not None:
                        p.watch(k_cur)
                        superseded = _s(p.hget(k_cur, "revoked"), "1") == "0"
                    seq = int(self.r.incr(self._kseq))

                    p.multi()
                    if k_cur is not None and superseded:
                        p.hset(k_cur, mapping=self._revoked_fields(RevocationReason.SUPERSEDED))
                    p.hset(k_new, mapping=self._new_mapping(record, seq))
                    p.rpush(self._ku(record.user_id), record.digest)
                    p.set(k_active, record.digest)
                    p.execute()
                return int(superseded)
            except redis.WatchError:
                log.debug("token.issue_contention", extra={"purpose": record.purpose.value})
                continue

    def insert(self, record: NewTokenRecord) -> TokenRecord:
        seq = int(self.r.incr(self._kseq))
        mapping = self._new_mapping(record, seq)
        with self.r.pipeline(transaction=True) as p:
            p.hset(self._k(record.digest), mapping=mapping)
            p.rpush(self._ku(record.user_id), record.digest)
            p.setnx(self._ka(record.user_id, record.purpose), record.digest)
            p.execute()
        return self._view(mapping)

    def revoke_all(
        self,
        user_id: str,
        purpose: TokenPurpose | None = None,
        *,
        reason: RevocationReason = RevocationReason.SUPERSEDED,
    ) -> int:
        purposes = [purpose] if purpose is not None else list(TokenPurpose)
        return sum(self._revoke_pair(user_id, p, reason) for p in purposes)

    def find_by_token(self, token: str) -> TokenRecord:
        h = self.r.hgetall(self._k(token_digest(token)))
        if not h:
            raise NotFoundError("Token", "no matching record")
        return self._view(h)

    def mark_revoked(self, token: str, *, reason: RevocationReason) -> bool:
        digest = token_digest(token)
        key = self._k(digest)
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(key)
                    h = p.hgetall(key)
                    view = self._view(h) if h else None
                    if view is None or view.revoked:
                        p.unwatch()
                        return False
                    k_active = self._ka(view.user_id, view.purpose)
                    p.watch(k_active)
                    points_here = _s(p.get(k_active)) == digest

                    p.multi()
                    p.hset(key, mapping=self._revoked_fields(reason))
                    if points_here:
                        p.delete(k_active)
                    p.execute()
                return True
            except redis.WatchError:
                continue

    def list_for_user(
        self, user_id: str, purpose: TokenPurpose | None = None
    ) -> list[TokenRecord]:
        out: list[TokenRecord] = []
        for member in self.r.lrange(self._ku(user_id), 0, -1):
            h = self.r.hgetall(self._k(_s(member)))
            if not h:
                continue
            view = self._view(h)
            if purpose is None or view.purpose is purpose:
                out.append(view)
        return out

    def ping(self) -> bool:
        return bool(self.r.ping())
