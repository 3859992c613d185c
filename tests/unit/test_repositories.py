"""Tests for the Snowflake repositories against the in-memory connection."""

import json
from contextlib import contextmanager

import pytest

from guardian.core.analysis.models import (
    AnalysisRecord,
    AnalysisResult,
    AnalysisType,
    UserAccount,
    Verdict,
)
from guardian.core.errors import PersistenceError
from guardian.infrastructure.snowflake.client import (
    MockSnowflakeConnection,
    SnowflakeConnectionError,
    SnowflakeConnectionProvider,
)
from guardian.infrastructure.snowflake.repositories import (
    AnalysisRepository,
    AnalysisRepositoryError,
    UserRepository,
)
from guardian.infrastructure.snowflake.schema import SCHEMA_STATEMENTS, ensure_schema


def _record() -> AnalysisRecord:
    return AnalysisRecord(
        type=AnalysisType.VIDEO,
        result=AnalysisResult(Verdict.MISINFORMATION, 0.8, "Lip sync drifts between frames."),
        file_name="clip.mp4",
        storage_path="gs://theog/videos/1-abcd1234-clip.mp4",
    )


class BrokenCursorConnection(MockSnowflakeConnection):
    def cursor(self):
        raise RuntimeError("warehouse suspended")


class UnreachableProvider:
    @contextmanager
    def connection(self):
        raise SnowflakeConnectionError("Database connection failed: 403")
        yield


class TestAnalysisRepository:
    def test_save_record_inserts_one_row(self, provider):
        repo = AnalysisRepository(provider)

        analysis_id = repo.save_record(_record())

        [row] = provider.mock_connection.analyses
        assert row[0] == analysis_id
        assert row[1:5] == ("video", "clip.mp4", None, "gs://theog/videos/1-abcd1234-clip.mp4")
        assert json.loads(row[5]) == {
            "verdict": "misinformation",
            "confidence": 0.8,
            "explanation": "Lip sync drifts between frames.",
        }

    def test_database_error_is_wrapped(self, provider, monkeypatch):
        monkeypatch.setattr(provider, "_mock_connection", BrokenCursorConnection())
        repo = AnalysisRepository(provider)

        with pytest.raises(AnalysisRepositoryError, match="warehouse suspended"):
            repo.save_record(_record())

    def test_connection_error_is_a_persistence_error(self):
        repo = AnalysisRepository(UnreachableProvider())

        with pytest.raises(PersistenceError):
            repo.save_record(_record())


class TestUserRepository:
    def test_create_then_lookup_is_case_insensitive(self, provider):
        repo = UserRepository(provider)
        repo.create(UserAccount(email="Alice@Example.com", password_hash="$2b$12$hash"))

        user = repo.get_by_email("ALICE@example.COM")

        assert user is not None
        assert user.email == "alice@example.com"
        assert user.password_hash == "$2b$12$hash"

    def test_second_create_for_same_email_is_refused(self, provider):
        repo = UserRepository(provider)

        assert repo.create(UserAccount(email="alice@example.com", password_hash="first")) is True
        assert repo.create(UserAccount(email="ALICE@example.com", password_hash="second")) is False

        assert len(provider.mock_connection.users) == 1
        assert repo.get_by_email("alice@example.com").password_hash == "first"

    def test_unknown_email_returns_none(self, provider):
        assert UserRepository(provider).get_by_email("nobody@example.com") is None


class TestConnectionProvider:
    def test_mock_mode_shares_one_connection(self):
        provider = SnowflakeConnectionProvider(mock_mode=True)

        with provider.connection() as first, provider.connection() as second:
            assert first is second

    def test_requires_config_outside_mock_mode(self):
        with pytest.raises(ValueError):
            SnowflakeConnectionProvider()


class TestSchema:
    def test_ensure_schema_runs_every_statement(self):
        assert ensure_schema(MockSnowflakeConnection()) == len(SCHEMA_STATEMENTS)

    def test_statements_are_idempotent(self):
        assert all("IF NOT EXISTS" in statement for statement in SCHEMA_STATEMENTS)
