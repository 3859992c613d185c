"""
Account signup and login.

Passwords are hashed with bcrypt; only the hash is stored. Login only
confirms the credentials. No token or session is issued.
"""

import asyncio
import logging
from typing import Optional, Protocol

import bcrypt

from .analysis.models import UserAccount
from .errors import GuardianError

logger = logging.getLogger(__name__)


class AccountError(GuardianError):
    """Base class for signup/login failures the caller can act on."""
    pass


class UserAlreadyExistsError(AccountError):
    pass


class UserNotFoundError(AccountError):
    pass


class InvalidCredentialsError(AccountError):
    pass


class UserStore(Protocol):
    """Document store for user accounts. Blocking; run off the event loop."""

    def get_by_email(self, email: str) -> Optional[UserAccount]:
        ...

    def create(self, user: UserAccount) -> bool:
        """Insert unless the email exists. False means it already did."""
        ...


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


class AccountService:
    """Signup and login against an injected user store."""

    def __init__(self, users: UserStore) -> None:
        self._users = users

    async def signup(self, email: str, password: str) -> UserAccount:
        """
        Register a new account.

        Raises:
            UserAlreadyExistsError: If the email is already registered
        """
        existing = await asyncio.to_thread(self._users.get_by_email, email)
        if existing is not None:
            raise UserAlreadyExistsError("User with this email already exists")

        password_hash = await asyncio.to_thread(hash_password, password)
        user = UserAccount(email=email, password_hash=password_hash)
        created = await asyncio.to_thread(self._users.create, user)
        if not created:
            # lost a race with a concurrent signup for the same email
            raise UserAlreadyExistsError("User with this email already exists")

        logger.info("User signed up")
        return user

    async def login(self, email: str, password: str) -> UserAccount:
        """
        Check credentials for an existing account.

        Raises:
            UserNotFoundError: If no account has this email
            InvalidCredentialsError: If the password does not match
        """
        user = await asyncio.to_thread(self._users.get_by_email, email)
        if user is None:
            raise UserNotFoundError("User not found")

        matches = await asyncio.to_thread(verify_password, password, user.password_hash)
        if not matches:
            logger.warning("Login rejected: invalid credentials")
            raise InvalidCredentialsError("Invalid credentials")

        logger.info("User logged in")
        return user
