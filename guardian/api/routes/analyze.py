"""
Misinformation analysis endpoints.

Three flows share one response envelope:
- POST /video: sampled frames from an uploaded video (multipart `file`)
- POST /image: one uploaded image (multipart `file`)
- POST /text: a JSON body `{"text": ...}`

Success is `{"success": true, "analysis": {...}}`; when the analysis
succeeded but could not be stored, the body also carries
`"persisted": false`. Failures are `{"success": false, "msg": ...}`.
"""

import logging
from typing import Awaitable, Optional, Union

from fastapi import APIRouter, File, UploadFile, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ...core.analysis.models import Upload
from ...core.analysis.service import AnalysisOutcome
from ...core.errors import GuardianError, InputError
from ..dependencies import AnalysisServiceDep, SettingsDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class TextAnalysisRequest(BaseModel):
    """Body for text analysis. `text` is optional so a missing value gets our 400."""
    text: Optional[str] = Field(default=None, description="Text to check for misinformation")


class AnalysisBody(BaseModel):
    """The model's verdict."""
    verdict: str = Field(description="safe, misinformation or caution")
    confidence: float = Field(ge=0, le=1, description="Confidence in [0, 1]")
    explanation: str = Field(description="Why the model reached this verdict")


class AnalysisResponse(BaseModel):
    """Response envelope shared by every analysis endpoint."""
    success: bool
    analysis: Optional[AnalysisBody] = None
    msg: Optional[str] = None
    persisted: Optional[bool] = Field(
        default=None,
        description="Present (false) only when the result could not be stored"
    )


_ERROR_RESPONSES = {
    400: {"model": AnalysisResponse, "description": "No usable input"},
    413: {"model": AnalysisResponse, "description": "Upload too large"},
    500: {"model": AnalysisResponse, "description": "Analysis failed"},
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class UploadTooLarge(Exception):
    """The multipart file is bigger than the configured upload limit."""


def _error(status_code: int, msg: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "msg": msg},
    )


def _too_large(settings) -> JSONResponse:
    return _error(
        status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        f"File exceeds the {settings.max_upload_size_mb} MB upload limit.",
    )


async def _read_upload(file: Optional[UploadFile], limit: int) -> Optional[Upload]:
    """
    Read the multipart file into memory, refusing anything over `limit` bytes.

    Starlette records the size while spooling the part, so an oversized
    file is rejected before any of it is read. When the size is unknown
    at most `limit + 1` bytes are read. A missing or nameless part means
    no upload.
    """
    if file is None or not file.filename:
        return None

    if file.size is not None and file.size > limit:
        raise UploadTooLarge(file.size)

    data = await file.read(limit + 1)
    if len(data) > limit:
        raise UploadTooLarge(len(data))

    return Upload(
        data=data,
        filename=file.filename,
        content_type=file.content_type or "application/octet-stream",
    )


async def _respond(
    flow: Awaitable[AnalysisOutcome],
    kind: str,
    failure_msg: str,
) -> Union[AnalysisResponse, JSONResponse]:
    """Run one analysis flow and map its outcome onto the envelope."""
    try:
        outcome = await flow
    except InputError as e:
        logger.warning("Rejected analysis request", extra={"type": kind, "reason": str(e)})
        return _error(status.HTTP_400_BAD_REQUEST, str(e))
    except (GuardianError, OSError) as e:
        logger.error(
            "Analysis failed",
            extra={"type": kind, "error": str(e)},
            exc_info=e,
        )
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, failure_msg)

    return AnalysisResponse(
        success=True,
        analysis=AnalysisBody(**outcome.result.to_dict()),
        persisted=None if outcome.persisted else False,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/video",
    response_model=AnalysisResponse,
    response_model_exclude_none=True,
    summary="Analyze a video",
    description="Samples frames from the uploaded video and asks the model for a misinformation verdict.",
    responses=_ERROR_RESPONSES,
)
async def analyze_video(
    service: AnalysisServiceDep,
    settings: SettingsDep,
    file: Optional[UploadFile] = File(default=None),
):
    try:
        upload = await _read_upload(file, settings.max_upload_size_bytes)
    except UploadTooLarge as e:
        logger.warning("Rejected oversized upload", extra={"size_bytes": e.args[0]})
        return _too_large(settings)

    return await _respond(service.analyze_video(upload), "video", "Error analyzing video")


@router.post(
    "/image",
    response_model=AnalysisResponse,
    response_model_exclude_none=True,
    summary="Analyze an image",
    responses=_ERROR_RESPONSES,
)
async def analyze_image(
    service: AnalysisServiceDep,
    settings: SettingsDep,
    file: Optional[UploadFile] = File(default=None),
):
    try:
        upload = await _read_upload(file, settings.max_upload_size_bytes)
    except UploadTooLarge as e:
        logger.warning("Rejected oversized upload", extra={"size_bytes": e.args[0]})
        return _too_large(settings)

    return await _respond(service.analyze_image(upload), "image", "Error analyzing image")


@router.post(
    "/text",
    response_model=AnalysisResponse,
    response_model_exclude_none=True,
    summary="Analyze text",
    responses=_ERROR_RESPONSES,
)
async def analyze_text(
    request: TextAnalysisRequest,
    service: AnalysisServiceDep,
):
    return await _respond(service.analyze_text(request.text), "text", "Error analyzing text")
