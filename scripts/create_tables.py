#!/usr/bin/env python3
"""
Create the Snowflake tables used by the API (analyses, users).

Every statement is CREATE TABLE IF NOT EXISTS, so re-running is harmless.

Usage:
    python scripts/create_tables.py
    python scripts/create_tables.py --dry-run

Requires:
    - .env file (or environment) with Snowflake credentials
"""

import argparse
import sys

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from guardian.config.settings import Settings  # noqa: E402
from guardian.infrastructure.snowflake.client import (  # noqa: E402
    SnowflakeConfig,
    SnowflakeConnectionError,
    get_snowflake_connection,
)
from guardian.infrastructure.snowflake.schema import SCHEMA_STATEMENTS, ensure_schema  # noqa: E402


def build_config(settings: Settings) -> SnowflakeConfig:
    return SnowflakeConfig(
        account=settings.snowflake_account,
        user=settings.snowflake_user,
        password=settings.snowflake_password or None,
        private_key_path=settings.snowflake_private_key_path,
        private_key_base64=settings.snowflake_private_key_base64,
        database=settings.snowflake_database,
        schema=settings.snowflake_schema,
        warehouse=settings.snowflake_warehouse,
        role=settings.snowflake_role,
    )


def create_tables(dry_run: bool = False) -> bool:
    settings = Settings()

    if dry_run:
        print("\n=== DRY RUN - No statements will be executed ===\n")
        for statement in SCHEMA_STATEMENTS:
            print(statement.strip())
            print()
        print(f"Total: {len(SCHEMA_STATEMENTS)} statements")
        return True

    if not settings.snowflake_account or not settings.snowflake_user:
        print("ERROR: Missing SNOWFLAKE_ACCOUNT or SNOWFLAKE_USER")
        return False

    print(f"Connecting to Snowflake account: {settings.snowflake_account}")
    print(f"Using database {settings.snowflake_database}, schema {settings.snowflake_schema}")

    try:
        with get_snowflake_connection(build_config(settings)) as conn:
            count = ensure_schema(conn)
    except SnowflakeConnectionError as e:
        print(f"ERROR connecting to Snowflake: {e}")
        return False

    print(f"\n=== Schema ready ({count} statements) ===")
    return True


def main():
    parser = argparse.ArgumentParser(description='Create Guardian tables in Snowflake')
    parser.add_argument('--dry-run', action='store_true', help='Print the DDL, don\'t execute it')
    args = parser.parse_args()

    success = create_tables(dry_run=args.dry_run)

    sys.exit(0 if success else 1)


if __name__ == '__main__':
    main()
