"""
bearer_auth.services._shared.ports
==================================

Collection of *ports* (hexagonal interfaces) the token and auth services
depend on.

Modules
-------
- :mod:`credential_store`:
    Defines :class:`~.CredentialStore`: user lookup, creation and password
    verification.

- :mod:`token_record_store`:
    Defines :class:`~.TokenRecordStore`: append-only persistence of issued
    tokens with the single-active-token invariant.

- :mod:`token_provider`:
    Defines :class:`~.TokenProvider`: signing and decoding of tokens.

Concrete adapters (SQL, Redis, PyJWT) live under ``bearer_auth.infra``. The
in-memory doubles are exported here for unit tests.
"""

from __future__ import annotations

from .credential_store import CredentialStore, InMemoryCredentialStore
from .token_provider import TokenProvider
from .token_record_store import InMemoryTokenRecordStore, TokenRecordStore

__all__ = [
    "CredentialStore",
    "InMemoryCredentialStore",
    "InMemoryTokenRecordStore",
    "TokenProvider",
    "TokenRecordStore",
]
