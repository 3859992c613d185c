"""
DDL for the Snowflake tables.

Run once per environment via scripts/create_tables.py. Every statement
is idempotent.
"""

import logging

from .client import SnowflakeConnection

logger = logging.getLogger(__name__)


SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS analyses (
        analysis_id VARCHAR(36) PRIMARY KEY,
        type VARCHAR(16) NOT NULL,
        file_name VARCHAR(512),
        input_text TEXT,
        storage_path VARCHAR(1024),
        result VARIANT NOT NULL,
        created_at TIMESTAMP_TZ NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS users (
        email VARCHAR(320) PRIMARY KEY,
        password_hash VARCHAR(128) NOT NULL,
        created_at TIMESTAMP_TZ NOT NULL
    )
    """,
]


def ensure_schema(conn: SnowflakeConnection) -> int:
    """Create any missing tables. Returns the number of statements run."""
    cursor = conn.cursor()
    try:
        for statement in SCHEMA_STATEMENTS:
            cursor.execute(statement)
        conn.commit()
    finally:
        cursor.close()

    logger.info("Snowflake schema ensured", extra={"statements": len(SCHEMA_STATEMENTS)})
    return len(SCHEMA_STATEMENTS)
