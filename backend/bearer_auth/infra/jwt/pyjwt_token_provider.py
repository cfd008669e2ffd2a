# bearer_auth/infra/jwt/pyjwt_token_provider.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, cast

import jwt

from bearer_auth.services._shared.errors import TokenExpiredError, TokenVerificationError
from bearer_auth.services._shared.ports import TokenProvider
from bearer_auth.services.tokens.dto import TokenPayload

# Claims every token must carry to be accepted.
REQUIRED_CLAIMS = ["iss", "sub", "exp", "purpose"]


@dataclass(slots=True)
class PyJWTTokenProvider(TokenProvider):
    """
    Adapter for PyJWT (HMAC-signed JWS).

    The secret is passed per call so each purpose can be signed with its own
    key; the adapter itself holds only the algorithm.

    :param algorithm: JWS algorithm name (``HS256`` by default).
    :param leeway: Clock skew tolerance in seconds applied to ``exp``.
    """

    algorithm: str = "HS256"
    leeway: int = 0

    def encode(self, payload: TokenPayload, *, secret: str) -> str:
        return jwt.encode(payload.to_claims(), secret, algorithm=self.algorithm)

    def decode(self, token: str, *, secret: str, issuer: str) -> TokenPayload:
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                issuer=issuer,
                leeway=self.leeway,
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError() from exc
        except jwt.InvalidTokenError as exc:
            raise TokenVerificationError(f"Invalid token: {exc}") from exc
        return self._to_payload(claims)

    def peek(self, token: str) -> TokenPayload:
        try:
            claims = jwt.decode(token, options={"verify_signature": False})
        except jwt.InvalidTokenError as exc:
            raise TokenVerificationError(f"Unreadable token: {exc}") from exc
        return self._to_payload(claims)

    @staticmethod
    def _to_payload(claims: dict[str, Any]) -> TokenPayload:
        try:
            return TokenPayload.from_claims(cast(dict[str, Any], claims))
        except ValueError as exc:
            raise TokenVerificationError(str(exc)) from exc
