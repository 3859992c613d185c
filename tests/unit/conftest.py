"""
Shared fixtures for the unit tests.

Prefer the real in-memory implementations (mock clients, mock Snowflake
connection) over ad-hoc mocks; the failing collaborators below cover
the error paths those don't exercise.
"""

from pathlib import Path

import pytest

from guardian.core.analysis.analyzer import MisinformationAnalyzer
from guardian.core.analysis.service import AnalysisService
from guardian.core.errors import ExtractionError, PersistenceError
from guardian.infrastructure.anthropic.client import MockVisionClient
from guardian.infrastructure.snowflake.client import SnowflakeConnectionProvider
from guardian.infrastructure.snowflake.repositories import AnalysisRepository
from guardian.infrastructure.storage.client import MockStorageClient, StorageError
from guardian.infrastructure.video.processor import MockFrameSampler


# ---------------------------------------------------------------------------
# Failing collaborators
# ---------------------------------------------------------------------------

class FailingSampler:
    """Sampler that fails the way FFmpeg does, remembering the paths it got."""

    def __init__(self) -> None:
        self.seen: tuple[Path, Path] | None = None

    async def sample(self, video_path: Path, output_dir: Path) -> list[Path]:
        self.seen = (video_path, output_dir)
        raise ExtractionError("ffmpeg exited with code 1")


class FailingStorage(MockStorageClient):
    async def upload_media(self, data: bytes, key: str, content_type: str) -> str:
        raise StorageError("bucket unavailable")


class FailingRecords:
    def save_record(self, record) -> None:
        raise PersistenceError("database unavailable")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def vision_client():
    return MockVisionClient()


@pytest.fixture()
def storage():
    return MockStorageClient(bucket_name="theog")


@pytest.fixture()
def provider():
    return SnowflakeConnectionProvider(mock_mode=True)


@pytest.fixture()
def sampler():
    return MockFrameSampler(frame_count=8)


@pytest.fixture()
def scratch(tmp_path):
    root = tmp_path / "scratch"
    root.mkdir()
    return root


@pytest.fixture()
def service(vision_client, storage, provider, sampler, scratch):
    return AnalysisService(
        analyzer=MisinformationAnalyzer(vision_client),
        storage=storage,
        records=AnalysisRepository(provider),
        sampler=sampler,
        scratch_root=scratch,
    )
