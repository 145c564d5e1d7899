"""Bearer token verification and minting.

Tokens are HS256 JWTs signed with the process-wide secret and carry
``{user_id, user_login, iat, exp}``. Any other signing algorithm is refused,
including ``none`` and asymmetric algorithms, whatever the header claims.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from nembus.core.exceptions import AuthenticationError, JWTSecretNotConfiguredError

TOKEN_ALGORITHM = "HS256"
TOKEN_LIFETIME = timedelta(hours=24)
BEARER_PREFIX = "Bearer "

# Fixed messages returned to clients
MISSING_HEADER = "Authorization header required"
BAD_SCHEME = "Authorization header must be in format: Bearer <token>"
INVALID_TOKEN = "Invalid token"
INVALID_CLAIMS = "Invalid token claims"


class TokenService:
    """Verifies and mints bearer tokens.

    Args:
        secret: HMAC secret; an empty or missing secret makes every call
            raise ``JWTSecretNotConfiguredError``
        lifetime: Validity window of minted tokens
    """

    def __init__(self, secret: str | None, lifetime: timedelta = TOKEN_LIFETIME):
        self._secret = secret or None
        self.lifetime = lifetime

    @property
    def configured(self) -> bool:
        return self._secret is not None

    def _require_secret(self) -> str:
        if self._secret is None:
            raise JWTSecretNotConfiguredError()
        return self._secret

    def verify(self, authorization: str | None) -> dict[str, Any]:
        """Verify an Authorization header value and return its claims.

        Only ``Bearer <token>`` is accepted: the scheme is case-sensitive and
        separated from the token by exactly one space.

        Args:
            authorization: Raw Authorization header value

        Returns:
            Verified claims; ``user_id`` is guaranteed to be a string

        Raises:
            AuthenticationError: If the header or token is not acceptable
            JWTSecretNotConfiguredError: If no secret is configured
        """
        if not authorization:
            raise AuthenticationError(MISSING_HEADER)
        if not authorization.startswith(BEARER_PREFIX):
            raise AuthenticationError(BAD_SCHEME)
        token = authorization[len(BEARER_PREFIX):]
        if not token or token != token.strip():
            raise AuthenticationError(BAD_SCHEME)

        secret = self._require_secret()
        claims = self.decode(token, secret)

        if not isinstance(claims.get("user_id"), str):
            raise AuthenticationError(INVALID_CLAIMS)
        return claims

    @staticmethod
    def decode(token: str, secret: str) -> dict[str, Any]:
        """Decode a token, mapping library errors to fixed categories.

        Raises:
            AuthenticationError: With ``details`` naming the failure category
        """
        try:
            claims = jwt.decode(token, secret, algorithms=[TOKEN_ALGORITHM])
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError(INVALID_TOKEN, "token expired") from e
        except jwt.InvalidAlgorithmError as e:
            raise AuthenticationError(INVALID_TOKEN, "unexpected signing method") from e
        except jwt.InvalidSignatureError as e:
            raise AuthenticationError(INVALID_TOKEN, "signature is invalid") from e
        except jwt.DecodeError as e:
            raise AuthenticationError(INVALID_TOKEN, "token is malformed") from e
        except jwt.InvalidTokenError as e:
            raise AuthenticationError(INVALID_TOKEN, "token is not valid yet") from e

        if not isinstance(claims, dict):
            raise AuthenticationError(INVALID_CLAIMS)
        return claims

    def mint(self, user_id: str, user_login: str, now: datetime | None = None) -> str:
        """Sign a token for a user.

        Args:
            user_id: Subject identifier stored in ``user_id``
            user_login: Login name stored in ``user_login``
            now: Issue time (default: current UTC time)

        Returns:
            Compact JWT string

        Raises:
            JWTSecretNotConfiguredError: If no secret is configured
        """
        secret = self._require_secret()
        issued = now or datetime.now(UTC)
        iat = int(issued.timestamp())
        payload = {
            "user_id": user_id,
            "user_login": user_login,
            "exp": iat + int(self.lifetime.total_seconds()),
            "iat": iat,
        }
        return jwt.encode(payload, secret, algorithm=TOKEN_ALGORITHM)
