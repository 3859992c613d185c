"""
Snowflake repository for analysis records.

This module implements the repository pattern for analysis data access.
The repository:
1. Translates between domain models and database representations
2. Encapsulates all SQL queries
3. Provides a clean interface for the application layer

Records are write-once: there is no update or delete path.
"""

import json
import logging
from uuid import uuid4

from guardian.core.analysis.models import AnalysisRecord
from guardian.core.errors import PersistenceError

from ..client import SnowflakeConnectionProvider

logger = logging.getLogger(__name__)


class AnalysisRepositoryError(PersistenceError):
    """Raised when an analysis record can't be written."""
    pass


class AnalysisRepository:
    """
    Repository for analysis persistence.

    Each call opens its own unit of work through the provider, so a
    database outage only surfaces when a record is actually written.
    """

    def __init__(self, provider: SnowflakeConnectionProvider) -> None:
        self._provider = provider

    def save_record(self, record: AnalysisRecord) -> str:
        """
        Insert one analysis record and return its generated id.

        The result goes into a VARIANT column via PARSE_JSON; Snowflake
        only allows that in INSERT ... SELECT, not in a VALUES clause.
        """
        analysis_id = str(uuid4())
        result_json = json.dumps(record.result.to_dict())

        try:
            with self._provider.connection() as conn:
                cursor = conn.cursor()
                try:
                    cursor.execute("""
                        INSERT INTO analyses (
                            analysis_id, type, file_name, input_text,
                            storage_path, result, created_at
                        )
                        SELECT %s, %s, %s, %s, %s, PARSE_JSON(%s), %s
                    """, (
                        analysis_id,
                        record.type.value,
                        record.file_name,
                        record.input_text,
                        record.storage_path,
                        result_json,
                        record.created_at,
                    ))
                    conn.commit()
                finally:
                    cursor.close()
        except PersistenceError:
            raise
        except Exception as e:
            logger.error(
                "Failed to save analysis record",
                extra={"analysis_id": analysis_id, "error": str(e)}
            )
            raise AnalysisRepositoryError(f"Insert failed: {e}") from e

        logger.info(
            "Saved analysis record",
            extra={"analysis_id": analysis_id, "type": record.type.value}
        )

        return analysis_id
