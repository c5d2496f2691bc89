"""
Password hashing and token signing capabilities

Both are injected into SessionManager. The defaults use Django's password
hashers (PBKDF2 unless PASSWORD_HASHERS says otherwise) and PyJWT.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from django.contrib.auth.hashers import check_password, make_password

from .conf import auth_settings
from .exceptions import InvalidTokenError


class DjangoPasswordHasher:
    """Slow salted one-way hash through django.contrib.auth.hashers"""

    def hash(self, raw: str) -> str:
        return make_password(raw)

    def verify(self, raw: str, digest: str) -> bool:
        return check_password(raw, digest)

    def verify_dummy(self, raw: str) -> bool:
        """
        Burn one hash of the supplied password with the current default hasher

        Called when the account does not exist so an unknown email costs as
        much time as a wrong password, whatever PASSWORD_HASHERS says.
        """
        make_password(raw)
        return False


class JWTTokenSigner:
    """
    Signs and verifies JWTs

    HS* algorithms use one shared secret; RS*/ES*/PS* use a private key to
    sign and a public key to verify (requires ``cryptography``).
    """

    REQUIRED_CLAIMS = ['exp', 'iat', 'sub', 'jti']

    def __init__(self, signing_key: str, verifying_key: Optional[str] = None, algorithm: str = 'HS256'):
        self.signing_key = signing_key
        self.verifying_key = verifying_key or signing_key
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls) -> 'JWTTokenSigner':
        return cls(
            signing_key=auth_settings.signing_key,
            verifying_key=auth_settings.verifying_key,
            algorithm=auth_settings.JWT_ALGORITHM,
        )

    def sign(self, claims: Dict[str, Any], ttl: int) -> str:
        """
        Sign ``claims`` with an expiry ``ttl`` seconds from now

        A random ``jti`` makes every token unique, even two signed for the
        same subject within the same second.
        """
        now = datetime.now(timezone.utc)
        payload = {
            **claims,
            'jti': uuid.uuid4().hex,
            'iat': now,
            'exp': now + timedelta(seconds=ttl),
        }
        return jwt.encode(payload, self.signing_key, algorithm=self.algorithm)

    def verify(self, token: str) -> Dict[str, Any]:
        """
        Return the claims of a valid token

        Raises:
            InvalidTokenError: bad signature, malformed, or expired
        """
        try:
            return jwt.decode(
                token,
                self.verifying_key,
                algorithms=[self.algorithm],
                options={'require': self.REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError:
            raise InvalidTokenError("Token has expired")
        except jwt.InvalidTokenError:
            raise InvalidTokenError("Invalid token")
