"""
Session manager: token pair issuance, rotation and revocation
"""

import logging
from typing import Any, Dict, Optional

from ..conf import auth_settings
from ..constants import (
    REFRESH_TOKEN_KEY_FORMAT,
    REVOKED_TOKEN_KEY_FORMAT,
    REVOKED_MARKER,
    TOKEN_TYPE_ACCESS,
    TOKEN_TYPE_REFRESH,
    DEFAULT_ACCESS_TOKEN_LIFETIME,
    DEFAULT_REFRESH_TOKEN_LIFETIME,
    STEP_RECORD_REFRESH_TOKEN,
    STEP_WRITE_REVOKED_MARKER,
)
from ..domain import TokenPair, UserProfile, UserRecord
from ..exceptions import (
    ConflictError,
    DependencyError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
    PartialFailureError,
    UnauthorizedError,
)
from ..security import DjangoPasswordHasher, JWTTokenSigner
from ..stores import CredentialStore, DjangoCredentialStore, TokenCache, token_cache_from_settings


logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
INVALID_REFRESH_TOKEN = "Invalid refresh token"


class SessionManager:
    """
    Token pair lifecycle

    Refresh tokens live in the token cache in exactly one of three states:
      active   refresh_token:<token> -> user id
      revoked  revoked_token:<token> -> marker
      absent   expired or never issued
    Access tokens are stateless and are not revocable.
    """

    def __init__(
        self,
        credential_store: CredentialStore,
        token_cache: TokenCache,
        hasher=None,
        signer=None,
        access_token_lifetime: int = DEFAULT_ACCESS_TOKEN_LIFETIME,
        refresh_token_lifetime: int = DEFAULT_REFRESH_TOKEN_LIFETIME,
    ):
        self.credential_store = credential_store
        self.token_cache = token_cache
        self.hasher = hasher or DjangoPasswordHasher()
        self.signer = signer or JWTTokenSigner.from_settings()
        self.access_token_lifetime = access_token_lifetime
        self.refresh_token_lifetime = refresh_token_lifetime

    @classmethod
    def from_settings(cls, credential_store=None, token_cache=None) -> 'SessionManager':
        auth_settings.validate()
        return cls(
            credential_store=credential_store or DjangoCredentialStore(),
            token_cache=token_cache or token_cache_from_settings(),
            hasher=DjangoPasswordHasher(),
            signer=JWTTokenSigner.from_settings(),
            access_token_lifetime=int(auth_settings.ACCESS_TOKEN_LIFETIME),
            refresh_token_lifetime=int(auth_settings.REFRESH_TOKEN_LIFETIME),
        )

    @staticmethod
    def refresh_key(token: str) -> str:
        return REFRESH_TOKEN_KEY_FORMAT.format(token=token)

    @staticmethod
    def revoked_key(token: str) -> str:
        return REVOKED_TOKEN_KEY_FORMAT.format(token=token)

    def register(self, name: str, email: str, raw_password: str) -> str:
        """
        Create a user

        Args:
            name: display name
            email: unique, compared case-sensitively
            raw_password: hashed before storage, never logged

        Returns:
            str: the new user id

        Raises:
            ConflictError: email already registered
        """
        if self.credential_store.find_user_by_email(email) is not None:
            raise ConflictError("Email already exists")

        user_id = self.credential_store.create_user(UserRecord(
            id=None,
            name=name,
            email=email,
            password_hash=self.hasher.hash(raw_password),
        ))

        logger.info(f"User registered: {user_id}")
        return user_id

    def authenticate(self, email: str, raw_password: str) -> TokenPair:
        """
        Check credentials and issue a token pair

        Unknown email and wrong password raise the same error with the same
        message, and both run one password verification.

        Raises:
            InvalidCredentialsError: unknown email or wrong password
        """
        user = self.credential_store.find_user_by_email(email)
        if user is None:
            verify_dummy = getattr(self.hasher, 'verify_dummy', None)
            if verify_dummy is not None:
                verify_dummy(raw_password)
            logger.warning("Sign-in rejected: unknown account")
            raise InvalidCredentialsError(INVALID_CREDENTIALS)

        if not self.hasher.verify(raw_password, user.password_hash):
            logger.warning(f"Sign-in rejected: wrong password for user {user.id}")
            raise InvalidCredentialsError(INVALID_CREDENTIALS)

        pair = self._issue(user.id, user.email)
        self.token_cache.set(self.refresh_key(pair.refresh_token), user.id, self.refresh_token_lifetime)

        logger.info(f"User signed in: {user.id}")
        return pair

    def rotate(self, old_refresh_token: str) -> TokenPair:
        """
        Exchange an active refresh token for a new pair

        The old token is consumed by deleting its active record; whoever
        deletes it wins, so a second rotation of the same token fails.

        Raises:
            InvalidTokenError: revoked, absent, expired or badly signed
            PartialFailureError: old token consumed but the new one was not
                recorded; the client has to sign in again
        """
        claims = self._verify_refresh(old_refresh_token)
        user_id = claims['sub']

        if self.token_cache.get(self.revoked_key(old_refresh_token)) is not None:
            logger.warning(f"Rotation rejected: revoked token for user {user_id}")
            raise InvalidTokenError(INVALID_REFRESH_TOKEN)

        if not self.token_cache.delete(self.refresh_key(old_refresh_token)):
            logger.warning(f"Rotation rejected: token not active for user {user_id}")
            raise InvalidTokenError(INVALID_REFRESH_TOKEN)

        pair = self._issue(user_id, claims.get('email'))
        try:
            self.token_cache.set(self.refresh_key(pair.refresh_token), user_id, self.refresh_token_lifetime)
        except DependencyError as e:
            logger.error(
                f"Rotation incomplete for user {user_id}: "
                f"step={STEP_RECORD_REFRESH_TOKEN}"
            )
            raise PartialFailureError(
                "Token refresh did not complete, sign in again",
                step=STEP_RECORD_REFRESH_TOKEN,
                detail={'user_id': user_id},
            ) from e

        logger.info(f"Refresh token rotated for user {user_id}")
        return pair

    def revoke(self, refresh_token: str, owner_id: Optional[str] = None) -> None:
        """
        Revoke an active refresh token

        Args:
            refresh_token: the token to revoke
            owner_id: when given, the token must belong to this user

        Raises:
            InvalidTokenError: not verifiable, not owned, or no longer active
            PartialFailureError: active record removed but marker not written
        """
        claims = self._verify_refresh(refresh_token)
        user_id = claims['sub']

        if owner_id is not None and user_id != owner_id:
            logger.warning(f"Revocation rejected: user {owner_id} does not own the token")
            raise InvalidTokenError(INVALID_REFRESH_TOKEN)

        if self.token_cache.get(self.revoked_key(refresh_token)) is not None:
            raise InvalidTokenError(INVALID_REFRESH_TOKEN)

        if not self.token_cache.delete(self.refresh_key(refresh_token)):
            logger.warning(f"Revocation rejected: token not active for user {user_id}")
            raise InvalidTokenError(INVALID_REFRESH_TOKEN)

        try:
            self.token_cache.set(self.revoked_key(refresh_token), REVOKED_MARKER, self.refresh_token_lifetime)
        except DependencyError as e:
            logger.error(
                f"Revocation incomplete for user {user_id}: "
                f"step={STEP_WRITE_REVOKED_MARKER}"
            )
            raise PartialFailureError(
                "Token revocation did not complete",
                step=STEP_WRITE_REVOKED_MARKER,
                detail={'user_id': user_id},
            ) from e

        logger.info(f"Refresh token revoked for user {user_id}")

    def current_user(self, access_token: str) -> str:
        """
        Resolve an access token to a user id

        Signature and expiry only; the token cache is not consulted.

        Raises:
            UnauthorizedError: invalid, expired, or not an access token
        """
        try:
            claims = self.signer.verify(access_token)
        except InvalidTokenError:
            raise UnauthorizedError("Invalid or expired access token")

        if claims.get('type') != TOKEN_TYPE_ACCESS:
            raise UnauthorizedError("Not an access token")

        return claims['sub']

    def profile(self, user_id: str) -> UserProfile:
        """User record without the password hash"""
        user = self.credential_store.find_user_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return UserProfile.from_record(user)

    def _issue(self, user_id: str, email: Optional[str]) -> TokenPair:
        access_token = self.signer.sign(
            {'sub': user_id, 'email': email, 'type': TOKEN_TYPE_ACCESS},
            self.access_token_lifetime,
        )
        refresh_token = self.signer.sign(
            {'sub': user_id, 'email': email, 'type': TOKEN_TYPE_REFRESH},
            self.refresh_token_lifetime,
        )
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    def _verify_refresh(self, token: str) -> Dict[str, Any]:
        try:
            claims = self.signer.verify(token)
        except InvalidTokenError:
            raise InvalidTokenError(INVALID_REFRESH_TOKEN)

        if claims.get('type') != TOKEN_TYPE_REFRESH:
            raise InvalidTokenError(INVALID_REFRESH_TOKEN)

        return claims
