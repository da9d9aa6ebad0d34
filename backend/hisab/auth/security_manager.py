"""Password and JWT utility functions.

Includes password rules and hashing, the interactive admin prompt, and JWT
token creation and verification.
"""

import getpass
import logging
import os
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import jwt
from bcrypt import checkpw, gensalt, hashpw

from hisab.common import User

LOGGER = logging.getLogger(__name__)

TOKEN_TYPE = "access_token"


@dataclass(frozen=True)
class AdminAccount:
    """Credentials typed in for a new administrator."""

    username: str
    password: str
    name: str


@dataclass
class SecurityManager:
    """Manager for security configurations and validations.

    :param str secret_key: Secret key for JWT signing (generated if not provided)
    :param str algorithm: JWT signing algorithm
    :param int expire_minutes: Token expiration time in minutes
    :param int password_min_length: Minimum length for passwords
    """

    DEFAULT_JWT_ALGORITHM = "HS512"
    DEFAULT_TOKEN_EXPIRE_MINUTES = 60 * 24
    DEFAULT_PASSWORD_MIN_LENGTH = 8
    MINIMUM_JWT_SECRET_KEY_LENGTH = 32

    secret_key: str | None = None
    algorithm: str = DEFAULT_JWT_ALGORITHM
    expire_minutes: int = DEFAULT_TOKEN_EXPIRE_MINUTES
    password_min_length: int = DEFAULT_PASSWORD_MIN_LENGTH

    def __post_init__(self) -> None:
        """Generate secret key if not provided or too short."""
        if (
            self.secret_key is None
            or len(self.secret_key) < self.MINIMUM_JWT_SECRET_KEY_LENGTH
        ):
            LOGGER.warning("SECRET_KEY missing or too short, using a random key")
            self.secret_key = os.urandom(64).hex()

    def validate_password(self, password: str) -> str | None:
        """Check a password against the length rule.

        :param str password: The password to validate
        :return: An Arabic error message if the password is too short,
            None otherwise
        """
        if len(password) >= self.password_min_length:
            return None
        return f"كلمة المرور يجب أن تحتوي على الأقل {self.password_min_length} أحرف"

    @staticmethod
    def hash_password(password: str) -> bytes:
        return hashpw(password.encode(), gensalt())

    @staticmethod
    def check_password(password: str, hashed_password: bytes) -> bool:
        return checkpw(password.encode(), hashed_password)

    def prompt_admin_account(self, default_name: str = "") -> AdminAccount:
        """Ask for an administrator account on the command line.

        The password is asked twice and re-asked until it is long enough and
        both entries match.

        :param default_name: Display name used when none is typed
        :return: The entered account
        """
        username = ""
        while not username:
            username = input("Admin username: ").strip()
        name = input(f"Display name [{default_name}]: ").strip() or default_name

        while True:
            password = getpass.getpass("Admin password: ")
            error = self.validate_password(password)
            if error:
                LOGGER.error(error)
            elif password != getpass.getpass("Repeat the password: "):
                LOGGER.error("Passwords do not match, please try again")
            else:
                return AdminAccount(username, password, name)

    def create_access_token(self, user: User) -> str:
        """Create a new JWT access token for the user.

        :param User user: The User object for whom to create the token
        :return: A JWT access token as a string
        """
        issued_at = datetime.now(UTC)
        claims = {
            "sub": user.username,
            "uid": user.id,
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=self.expire_minutes),
            "type": TOKEN_TYPE,
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: str) -> str | None:
        """Verify and decode a JWT token, returning the username it was issued to.

        Role and permissions are not carried in the token; callers reload the
        user so that changes apply to tokens already issued.

        :param token: The JWT token string to verify
        :return: The username if the token is valid, None otherwise
        """
        try:
            claims = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
            )
        except jwt.ExpiredSignatureError:
            LOGGER.debug("Rejected expired token")
            return None
        except jwt.InvalidTokenError:
            return None

        if claims.get("type") != TOKEN_TYPE:
            return None
        return claims.get("sub")
