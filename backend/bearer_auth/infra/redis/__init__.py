"""Redis-backed adapters."""

from .redis_token_record_store import RedisTokenRecordStore

__all__ = ["RedisTokenRecordStore"]
