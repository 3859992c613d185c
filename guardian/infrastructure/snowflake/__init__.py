from .client import (
    MockSnowflakeConnection,
    SnowflakeConfig,
    SnowflakeConnectionError,
    SnowflakeConnectionProvider,
    get_snowflake_connection,
)
from .schema import SCHEMA_STATEMENTS, ensure_schema

__all__ = [
    "MockSnowflakeConnection",
    "SnowflakeConfig",
    "SnowflakeConnectionError",
    "SnowflakeConnectionProvider",
    "get_snowflake_connection",
    "SCHEMA_STATEMENTS",
    "ensure_schema",
]
