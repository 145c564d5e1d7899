"""Password login against a tenant's user table."""

import asyncio
from functools import lru_cache

import bcrypt

from nembus.core.exceptions import InvalidCredentialsError
from nembus.core.logging import get_logger
from nembus.core.security import TokenService
from nembus.db.data_access import TenantDataAccess
from nembus.db.repositories.user import UserRepository

logger = get_logger(__name__)

BCRYPT_ROUNDS = 10


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    """Hash a password with bcrypt (used for seeding and tests)."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=rounds)).decode()


def check_password(password: str, password_hash: str) -> bool:
    """Compare a password to a bcrypt hash.

    Malformed hashes and over-long passwords compare as a mismatch.
    """
    try:
        return bcrypt.checkpw(password.encode(), password_hash.encode())
    except ValueError:
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return hash_password("nembus-dummy-password")


class AuthService:
    """Exchanges a tenant user's login and password for a bearer token.

    Every failure raises the same ``InvalidCredentialsError``. When there is
    no usable hash to compare against, a comparison against a dummy hash still
    runs so the response time does not reveal which case occurred.
    """

    def __init__(self, data_access: TenantDataAccess, tokens: TokenService):
        self.data_access = data_access
        self.tokens = tokens

    async def login(self, user_login: str, password: str) -> str:
        """Authenticate a user of the bound tenant.

        Args:
            user_login: Username in the tenant ``users`` table
            password: Plain-text password

        Returns:
            Signed bearer token

        Raises:
            InvalidCredentialsError: If the credentials are not accepted
            JWTSecretNotConfiguredError: If tokens cannot be signed
        """
        async with self.data_access.session() as session:
            user = await UserRepository(session).get_by_username(user_login)

        password_hash = user.password_hash if user is not None else ""
        usable = user is not None and user.is_active is True and bool(password_hash)

        matched = await self._check(password, password_hash if usable else _dummy_hash())
        if not (usable and matched):
            logger.info("login_rejected", tenant_slug=self.data_access.slug)
            raise InvalidCredentialsError()

        logger.info("login_succeeded", tenant_slug=self.data_access.slug, user_id=str(user.id))
        return self.tokens.mint(str(user.id), user.username)

    @staticmethod
    async def _check(password: str, password_hash: str) -> bool:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, check_password, password, password_hash)
