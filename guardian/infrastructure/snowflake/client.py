"""
Connections to the Snowflake document store.

Snowflake holds the records: analysis records keep their structured
result in a VARIANT column, so each record is one self-describing row.

Repositories ask a SnowflakeConnectionProvider for one connection per
unit of work. In mock mode the provider hands out a single in-memory
connection instead, so data survives between requests in one process.
"""

import base64
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generator, Optional, Protocol

from guardian.core.errors import PersistenceError

logger = logging.getLogger(__name__)


class SnowflakeConnectionError(PersistenceError):
    """Opening a connection to Snowflake failed."""


class SnowflakeConnection(Protocol):
    """The slice of the DB-API connection the repositories use."""

    def cursor(self): ...
    def commit(self) -> None: ...
    def close(self) -> None: ...


@dataclass
class SnowflakeConfig:
    """Connection parameters, built from Settings by the caller."""
    account: str
    user: str
    password: Optional[str] = None
    private_key_path: Optional[str] = None
    private_key_base64: Optional[str] = None
    database: str = "GUARDIAN"
    schema: str = "ANALYSIS"
    warehouse: str = "COMPUTE_WH"
    role: Optional[str] = None


def _load_private_key(config: SnowflakeConfig) -> bytes:
    """PKCS8 DER bytes for the configured PEM key (base64 value first, then file)."""
    from cryptography.hazmat.backends import default_backend
    from cryptography.hazmat.primitives import serialization

    if config.private_key_base64:
        pem = base64.b64decode(config.private_key_base64)
    else:
        with open(config.private_key_path, 'rb') as key_file:
            pem = key_file.read()

    private_key = serialization.load_pem_private_key(
        pem,
        password=None,
        backend=default_backend()
    )

    return private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )


def _connect(config: SnowflakeConfig) -> SnowflakeConnection:
    """Open a connection with key-pair auth if configured, else password."""
    import snowflake.connector

    connect_params = {
        'account': config.account,
        'user': config.user,
        'database': config.database,
        'schema': config.schema,
        'warehouse': config.warehouse,
        'role': config.role,
    }

    if config.private_key_path or config.private_key_base64:
        logger.info("Snowflake auth: key pair")
        connect_params['private_key'] = _load_private_key(config)
    elif config.password:
        logger.info("Snowflake auth: password")
        connect_params['password'] = config.password
    else:
        raise SnowflakeConnectionError(
            "Either password or a private key must be provided"
        )

    try:
        return snowflake.connector.connect(**connect_params)
    except snowflake.connector.errors.DatabaseError as e:
        logger.error(
            "Snowflake connection failed",
            extra={"error": str(e), "account": config.account}
        )
        raise SnowflakeConnectionError(f"Database connection failed: {e}") from e


@contextmanager
def get_snowflake_connection(config: SnowflakeConfig) -> Generator[SnowflakeConnection, None, None]:
    """
    Open a connection for the duration of a `with` block and close it after.

    Failure to connect raises SnowflakeConnectionError. Exceptions from the
    block itself propagate untouched.
    """
    conn = _connect(config)

    logger.debug(
        "Snowflake connection opened",
        extra={
            "account": config.account,
            "database": config.database,
            "schema": config.schema,
        }
    )

    try:
        yield conn
    finally:
        try:
            conn.close()
            logger.debug("Snowflake connection closed")
        except Exception as e:
            logger.warning(
                "Snowflake connection did not close cleanly",
                extra={"error": str(e)}
            )


# ---------------------------------------------------------------------------
# In-memory stand-in
# ---------------------------------------------------------------------------

class MockSnowflakeCursor:
    """
    Cursor over the in-memory tables.

    Understands just enough of the cursor interface to support the
    repositories: INSERT into analyses, MERGE into users, SELECT a user by email,
    and DDL (ignored).
    """

    def __init__(self, storage: dict) -> None:
        self._storage = storage
        self._results: list = []
        self._rowcount: int = 0

    def execute(self, query: str, params: Optional[tuple] = None) -> 'MockSnowflakeCursor':
        logger.debug(
            "Mock cursor execute",
            extra={"query": query[:100]}
        )

        query_upper = query.upper().strip()
        self._results = []
        self._rowcount = 0

        if 'INSERT INTO ANALYSES' in query_upper:
            self._storage['analyses'].append(params)
            self._rowcount = 1

        elif 'MERGE INTO USERS' in query_upper:
            email = params[0]
            if email not in self._storage['users']:
                self._storage['users'][email] = params
                self._rowcount = 1

        elif query_upper.startswith('SELECT') and 'FROM USERS' in query_upper:
            row = self._storage['users'].get(params[0]) if params else None
            self._results = [row] if row else []

        return self

    def fetchone(self):
        if not self._results:
            return None
        return self._results[0]

    def fetchall(self) -> list:
        return self._results

    def close(self) -> None:
        pass

    @property
    def rowcount(self) -> int:
        return self._rowcount


class MockSnowflakeConnection:
    """Connection whose tables live in two Python containers. Nothing is durable."""

    def __init__(self) -> None:
        # analyses are append-only rows; users are keyed by email
        self._storage: dict = {
            'analyses': [],
            'users': {},
        }

        logger.info("Snowflake mock mode: records kept in memory")

    def cursor(self) -> MockSnowflakeCursor:
        return MockSnowflakeCursor(self._storage)

    def commit(self) -> None:
        pass

    def rollback(self) -> None:
        pass

    def close(self) -> None:
        pass

    # read-only views for assertions
    @property
    def analyses(self) -> list:
        return self._storage['analyses']

    @property
    def users(self) -> dict:
        return self._storage['users']


# ---------------------------------------------------------------------------
# Provider
# ---------------------------------------------------------------------------

class SnowflakeConnectionProvider:
    """
    Hands out connections to repositories, one per unit of work.

    In mock mode every unit of work shares one in-memory connection, so
    data written by one request is visible to the next (signup, then
    login) for the lifetime of the provider.
    """

    def __init__(
        self,
        config: Optional[SnowflakeConfig] = None,
        mock_mode: bool = False,
    ) -> None:
        if not mock_mode and config is None:
            raise ValueError("config is required when not in mock mode")

        self._config = config
        self._mock_connection = MockSnowflakeConnection() if mock_mode else None

    @property
    def mock_connection(self) -> Optional[MockSnowflakeConnection]:
        return self._mock_connection

    @contextmanager
    def connection(self) -> Generator[SnowflakeConnection, None, None]:
        if self._mock_connection is not None:
            yield self._mock_connection
            return

        with get_snowflake_connection(self._config) as conn:
            yield conn
