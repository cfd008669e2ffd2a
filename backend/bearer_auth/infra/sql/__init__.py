"""SQL-backed adapters for the credential and token record ports."""

from .credential_store import SqlCredentialStore
from .token_record_store import SqlTokenRecordStore

__all__ = ["SqlCredentialStore", "SqlTokenRecordStore"]
