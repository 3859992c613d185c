"""
FastAPI dependency injection.

Long-lived collaborators (model client, storage client, frame sampler,
Snowflake connection provider) are built once into a ServiceContainer
stored on `app.state.services`. Per-request services are cheap wrappers
assembled from it. Using dependency injection means:
- Routes don't instantiate their own dependencies (easier to test)
- Tests swap in fakes by passing their own container to create_app
- Configuration is centralized
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated

from fastapi import Depends, Request

from ..config.settings import Settings
from ..core.accounts import AccountService
from ..core.analysis.analyzer import MisinformationAnalyzer, VisionModelClient
from ..core.analysis.frames import FrameSampler
from ..core.analysis.service import AnalysisService
from ..infrastructure.anthropic.client import AnthropicConfig, create_vision_client
from ..infrastructure.snowflake.client import SnowflakeConfig, SnowflakeConnectionProvider
from ..infrastructure.snowflake.repositories import AnalysisRepository, UserRepository
from ..infrastructure.storage.client import StorageClient, StorageConfig, create_storage_client
from ..infrastructure.video.processor import create_frame_sampler

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Collaborators shared by every request for the lifetime of the app."""
    settings: Settings
    vision_client: VisionModelClient
    storage: StorageClient
    sampler: FrameSampler
    snowflake: SnowflakeConnectionProvider


def build_services(settings: Settings) -> ServiceContainer:
    """
    Construct the real (or mock, per settings) collaborators.

    Raises if a non-mock collaborator is misconfigured, e.g. FFmpeg is
    missing or the Anthropic key is empty.
    """
    anthropic_config = None
    if not settings.anthropic_mock_mode:
        anthropic_config = AnthropicConfig(
            api_key=settings.anthropic_api_key,
            model=settings.anthropic_model,
            max_tokens=settings.anthropic_max_tokens,
            temperature=settings.anthropic_temperature,
            timeout_seconds=settings.anthropic_timeout_seconds,
        )

    storage_config = StorageConfig(
        access_key_id=settings.storage_access_key_id,
        secret_access_key=settings.storage_secret_access_key,
        bucket_name=settings.storage_bucket_name,
        endpoint_url=settings.storage_endpoint_url,
        region=settings.storage_region,
        uri_scheme=settings.storage_uri_scheme,
    )

    snowflake_config = None
    if not settings.snowflake_mock_mode:
        snowflake_config = SnowflakeConfig(
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

    services = ServiceContainer(
        settings=settings,
        vision_client=create_vision_client(
            config=anthropic_config,
            mock_mode=settings.anthropic_mock_mode,
        ),
        storage=create_storage_client(
            config=storage_config,
            mock_mode=settings.storage_mock_mode,
        ),
        sampler=create_frame_sampler(
            mock_mode=settings.video_mock_mode,
            ffmpeg_path=settings.ffmpeg_path,
            ffprobe_path=settings.ffprobe_path,
            frame_count=settings.frame_count,
            frame_width=settings.frame_width,
            timeout_seconds=settings.ffmpeg_timeout_seconds,
        ),
        snowflake=SnowflakeConnectionProvider(
            config=snowflake_config,
            mock_mode=settings.snowflake_mock_mode,
        ),
    )

    logger.info(
        "Services initialized",
        extra={
            "mock_mode": {
                "anthropic": settings.anthropic_mock_mode,
                "storage": settings.storage_mock_mode,
                "snowflake": settings.snowflake_mock_mode,
                "video": settings.video_mock_mode,
            }
        }
    )

    return services


# ---------------------------------------------------------------------------
# Service Dependencies
# ---------------------------------------------------------------------------

def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_app_settings(
    services: Annotated[ServiceContainer, Depends(get_services)],
) -> Settings:
    return services.settings


def get_analysis_service(
    services: Annotated[ServiceContainer, Depends(get_services)],
) -> AnalysisService:
    """
    Provide an AnalysisService wired to the shared collaborators.

    The service is stateless, so we create a new instance per request.
    """
    scratch_dir = services.settings.scratch_dir

    return AnalysisService(
        analyzer=MisinformationAnalyzer(vision_client=services.vision_client),
        storage=services.storage,
        records=AnalysisRepository(services.snowflake),
        sampler=services.sampler,
        scratch_root=Path(scratch_dir) if scratch_dir else None,
    )


def get_account_service(
    services: Annotated[ServiceContainer, Depends(get_services)],
) -> AccountService:
    return AccountService(users=UserRepository(services.snowflake))


# ---------------------------------------------------------------------------
# Convenience Type Aliases
# ---------------------------------------------------------------------------

# These type aliases make route signatures cleaner
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
ServicesDep = Annotated[ServiceContainer, Depends(get_services)]
AnalysisServiceDep = Annotated[AnalysisService, Depends(get_analysis_service)]
AccountServiceDep = Annotated[AccountService, Depends(get_account_service)]
