"""
Snowflake repository for user accounts.

Only lookups by email and inserts are needed. Signup creates an account
if the email is free; login fetches the stored hash.
"""

import logging
from typing import Optional

from guardian.core.analysis.models import UserAccount

from ..client import SnowflakeConnectionProvider

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user account persistence."""

    def __init__(self, provider: SnowflakeConnectionProvider) -> None:
        self._provider = provider

    def get_by_email(self, email: str) -> Optional[UserAccount]:
        with self._provider.connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute("""
                    SELECT email, password_hash, created_at
                    FROM users
                    WHERE email = %s
                """, (email.strip().lower(),))

                row = cursor.fetchone()
            finally:
                cursor.close()

        if not row:
            return None

        return UserAccount(email=row[0], password_hash=row[1], created_at=row[2])

    def create(self, user: UserAccount) -> bool:
        """
        Insert the account unless the email is already taken.

        Snowflake does not enforce PRIMARY KEY, so uniqueness comes from the
        MERGE. Returns False when a row for the email already existed.
        """
        with self._provider.connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute("""
                    MERGE INTO users AS target
                    USING (SELECT %s AS email, %s AS password_hash, %s AS created_at) AS source
                    ON target.email = source.email
                    WHEN NOT MATCHED THEN
                        INSERT (email, password_hash, created_at)
                        VALUES (source.email, source.password_hash, source.created_at)
                """, (user.email, user.password_hash, user.created_at))
                inserted = cursor.rowcount == 1
                conn.commit()
            finally:
                cursor.close()

        if inserted:
            logger.info("Created user account")
        else:
            logger.warning("User account already existed")
        return inserted
