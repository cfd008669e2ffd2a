from __future__ import annotations

from typing import Protocol

from bearer_auth.services.tokens.dto import TokenPayload


class TokenProvider(Protocol):
    """Port for signing and decoding bearer tokens."""

    def encode(self, payload: TokenPayload, *, secret: str) -> str:
        """Sign ``payload`` with ``secret`` and return the compact token."""

    def decode(self, token: str, *, secret: str, issuer: str) -> TokenPayload:
        """
        Verify signature, issuer and expiry, then return the payload.

        :raises TokenExpiredError: When ``now >= exp``.
        :raises TokenVerificationError: On any other failure.
        """

    def peek(self, token: str) -> TokenPayload:
        """
        Decode without checking signature or expiry.

        Only for locating the owner of a token that already failed verification
        because of its age.

        :raises TokenVerificationError: When the token cannot be parsed.
        """
