"""
Liveness and readiness probes.

- GET /health answers as long as the process is up; it touches nothing.
- GET /health/ready also checks that configuration is complete and the
  document store answers a trivial query, and returns 503 otherwise.
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from ... import __version__
from ...config.settings import Settings
from ..dependencies import ServiceContainer, ServicesDep, SettingsDep

logger = logging.getLogger(__name__)

router = APIRouter()


class HealthResponse(BaseModel):
    ok: bool
    msg: str
    version: str
    mock_mode: dict[str, bool]


class ProbeResult(BaseModel):
    name: str
    ok: bool
    detail: Optional[str] = None


class ReadinessResponse(BaseModel):
    ready: bool
    version: str
    probes: list[ProbeResult]


# ---------------------------------------------------------------------------
# Probes
# ---------------------------------------------------------------------------

def _probe_configuration(settings: Settings) -> ProbeResult:
    missing = settings.validate_required_fields()
    if missing:
        return ProbeResult(name="configuration", ok=False, detail=f"missing: {', '.join(missing)}")
    return ProbeResult(name="configuration", ok=True)


def _select_one(services: ServiceContainer) -> None:
    with services.snowflake.connection() as conn:
        cursor = conn.cursor()
        try:
            cursor.execute("SELECT 1")
        finally:
            cursor.close()


async def _probe_database(services: ServiceContainer) -> ProbeResult:
    try:
        await asyncio.to_thread(_select_one, services)
    except Exception as e:
        logger.error("Document store probe failed", extra={"error": str(e)})
        return ProbeResult(name="database", ok=False, detail=str(e))

    detail = "in-memory" if services.settings.snowflake_mock_mode else None
    return ProbeResult(name="database", ok=True, detail=detail)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("", response_model=HealthResponse, summary="Liveness probe")
async def health_check(settings: SettingsDep) -> HealthResponse:
    return HealthResponse(
        ok=True,
        msg="Backend is working!",
        version=__version__,
        mock_mode={
            "anthropic": settings.anthropic_mock_mode,
            "storage": settings.storage_mock_mode,
            "snowflake": settings.snowflake_mock_mode,
            "video": settings.video_mock_mode,
        },
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness probe",
    responses={503: {"model": ReadinessResponse, "description": "A probe failed"}},
)
async def readiness_check(
    response: Response,
    settings: SettingsDep,
    services: ServicesDep,
) -> ReadinessResponse:
    probes = [
        _probe_configuration(settings),
        await _probe_database(services),
    ]
    ready = all(probe.ok for probe in probes)

    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning(
            "Not ready",
            extra={"failed": [probe.name for probe in probes if not probe.ok]}
        )

    return ReadinessResponse(ready=ready, version=__version__, probes=probes)
