"""Tests for password hashing and the signup/login flow."""

import pytest

from guardian.core.accounts import (
    AccountService,
    InvalidCredentialsError,
    UserAlreadyExistsError,
    UserNotFoundError,
    hash_password,
    verify_password,
)
from guardian.core.analysis.models import UserAccount
from guardian.infrastructure.snowflake.repositories import UserRepository


class TestPasswordHashing:
    def test_hash_verifies_and_hides_plaintext(self):
        hashed = hash_password("correct horse")

        assert hashed != "correct horse"
        assert hashed.startswith("$2")
        assert verify_password("correct horse", hashed)
        assert not verify_password("wrong horse", hashed)

    def test_malformed_hash_never_verifies(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestAccountService:
    @pytest.fixture()
    def accounts(self, provider):
        return AccountService(UserRepository(provider))

    async def test_signup_stores_only_the_hash(self, accounts, provider):
        await accounts.signup("Bob@Example.com", "hunter22")

        [(email, password_hash, _)] = provider.mock_connection.users.values()
        assert email == "bob@example.com"
        assert password_hash != "hunter22"

    async def test_duplicate_signup_is_rejected(self, accounts):
        await accounts.signup("bob@example.com", "hunter22")

        with pytest.raises(UserAlreadyExistsError, match="already exists"):
            await accounts.signup("BOB@example.com", "other")

    async def test_login_checks_the_password(self, accounts):
        await accounts.signup("bob@example.com", "hunter22")

        user = await accounts.login("bob@example.com", "hunter22")
        assert user.email == "bob@example.com"

        with pytest.raises(InvalidCredentialsError):
            await accounts.login("bob@example.com", "hunter23")

    async def test_login_for_unknown_user(self, accounts):
        with pytest.raises(UserNotFoundError, match="User not found"):
            await accounts.login("ghost@example.com", "whatever")

    async def test_signup_that_loses_the_insert_race_is_rejected(self, provider):
        class RacingUsers(UserRepository):
            """Another signup commits between the lookup and the insert."""

            def get_by_email(self, email):
                return None

        repo = RacingUsers(provider)
        repo.create(UserAccount(email="bob@example.com", password_hash="theirs"))

        with pytest.raises(UserAlreadyExistsError):
            await AccountService(repo).signup("bob@example.com", "hunter22")

        [(_, password_hash, _)] = provider.mock_connection.users.values()
        assert password_hash == "theirs"
