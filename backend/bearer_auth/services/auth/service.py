# bearer_auth/services/auth/service.py
from __future__ import annotations

import logging

from bearer_auth.services._shared.errors import InvalidCredentialsError, TokenExpiredError
from bearer_auth.services._shared.ports import CredentialStore
from bearer_auth.services.auth.dto import (
    AuthResult,
    CredentialsIn,
    IssuedTokens,
    LogoutIn,
    UserRecord,
    normalize_email,
)
from bearer_auth.services.tokens.dto import TokenMode, TokenPurpose
from bearer_auth.services.tokens.service import TokenService

log = logging.getLogger(__name__)


class AuthService:
    """
    Authentication lifecycle service (signup / login / authenticate / refresh).

    Credentials are checked through a :class:`CredentialStore`; tokens are
    issued and verified through a :class:`TokenService`. Expired access tokens
    are reissued transparently by :meth:`authenticate`, so callers never see
    an expiry error for an otherwise legitimate token.
    """

    def __init__(self, *, credentials: CredentialStore, tokens: TokenService) -> None:
        """
        Initialize the service with its dependencies.

        :param credentials: User lookup, creation and password checks.
        :param tokens: Token lifecycle service.
        """
        self.credentials = credentials
        self.tokens = tokens

    @property
    def mode(self) -> TokenMode:
        return self.tokens.mode

    # ------------------------------------------------------------------ #
    # Signup / Login
    # ------------------------------------------------------------------ #

    def signup(self, dto: CredentialsIn) -> IssuedTokens:
        """
        Register a user and issue their first tokens.

        The user is created before any token is issued and is kept even if
        issuance fails afterwards; a later login recovers from that state.

        :raises ConflictError: If the email is already registered.
        """
        user = self.credentials.create(normalize_email(dto.email), dto.password)
        log.info("auth.signup")
        return self.tokens.generate_pair(user.email)

    def login(self, dto: CredentialsIn) -> IssuedTokens:
        """
        Authenticate credentials and issue fresh tokens, superseding older ones.

        :raises NotFoundError: If no user has this email.
        :raises InvalidCredentialsError: If the password does not match.
        """
        user = self.credentials.find_by_email(normalize_email(dto.email))
        if not self.credentials.verify_password(user.email, dto.password):
            log.warning("auth.login_failed")
            raise InvalidCredentialsError()
        log.info("auth.login")
        return self.tokens.generate_pair(user.email)

    # ------------------------------------------------------------------ #
    # Per-request authentication
    # ------------------------------------------------------------------ #

    def authenticate(self, token: str) -> AuthResult:
        """
        Validate an access token presented on a request.

        On expiry a new access token is issued for the same user and returned
        with ``refreshed=True``; any other failure propagates unchanged.

        :param token: Bearer token from the ``Authorization`` header.
        :returns: The token to keep using and its payload.
        :raises NotFoundError: Unknown token, or the owner no longer exists.
        :raises TokenRevokedError: The token was revoked.
        :raises TokenVerificationError: Bad signature, issuer, purpose or claims.
        """
        try:
            payload = self.tokens.verify(token, expected_purpose=TokenPurpose.ACCESS)
        except TokenExpiredError:
            return self._reissue(token)

        self.credentials.find_by_email(payload.subject)
        return AuthResult(token=token, payload=payload)

    def refresh(self, token: str) -> IssuedTokens:
        """
        Explicitly exchange a token for new ones.

        * single mode: ``token`` is an access token, valid or expired.
        * dual mode: ``token`` is a refresh token; both tokens are rotated.
        """
        if self.mode is TokenMode.DUAL:
            payload = self.tokens.verify(token, expected_purpose=TokenPurpose.REFRESH)
            user = self.credentials.find_by_email(payload.subject)
            log.info("auth.refresh", extra={"purpose": TokenPurpose.REFRESH.value})
            return self.tokens.generate_pair(user.email)

        try:
            user_id = self.tokens.verify(token, expected_purpose=TokenPurpose.ACCESS).subject
        except TokenExpiredError:
            user_id = self.tokens.user_id_from_token(token)
        user = self.credentials.find_by_email(user_id)
        log.info("auth.refresh", extra={"purpose": TokenPurpose.ACCESS.value})
        return IssuedTokens(access_token=self.tokens.generate(user.email, TokenPurpose.ACCESS))

    # ------------------------------------------------------------------ #
    # Logout / identity
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> int:
        """
        Revoke the presented token, or every token of its owner.

        :returns: Number of records revoked.
        """
        payload = self.tokens.verify(dto.token)
        if dto.all_sessions:
            return self.tokens.revoke_all(payload.subject)
        return int(self.tokens.revoke(dto.token))

    def whoami(self, user_id: str) -> UserRecord:
        """:raises NotFoundError: If the user no longer exists."""
        return self.credentials.find_by_email(user_id)

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _reissue(self, expired_token: str) -> AuthResult:
        user = self.credentials.find_by_email(self.tokens.user_id_from_token(expired_token))
        token = self.tokens.generate(user.email, TokenPurpose.ACCESS)
        log.info("auth.reissued", extra={"purpose": TokenPurpose.ACCESS.value})
        return AuthResult(token=token, payload=self.tokens.inspect(token), refreshed=True)
