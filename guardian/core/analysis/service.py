"""
Analysis orchestration: text, image and video flows.

The video flow is the multi-step one:

    workspace setup -> frame sampling -> frame loading
        -> model submission -> persistence -> cleanup (always)

Every collaborator is injected. The service owns no clients and holds no
state between requests, so one instance per request is cheap.

Persistence is best-effort relative to the caller-visible result: once the
model has produced a valid AnalysisResult, storage or database failures
are logged and reported through `AnalysisOutcome.persisted` instead of
failing the request.
"""

import asyncio
import base64
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol
from uuid import uuid4

from ..errors import InputError, PersistenceError
from .analyzer import MisinformationAnalyzer
from .frames import FrameSampler, load_frames
from .models import (
    AnalysisRecord,
    AnalysisResult,
    AnalysisType,
    InlineMedia,
    Upload,
)
from .workspace import ScratchWorkspace, sanitize_filename

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class MediaStore(Protocol):
    """Object storage as seen by the analysis flows."""

    async def upload_media(self, data: bytes, key: str, content_type: str) -> str:
        """Store bytes under `key` and return the key actually used."""
        ...

    def uri_for(self, key: str) -> str:
        """Canonical URI for a stored key, e.g. gs://bucket/key."""
        ...


class AnalysisStore(Protocol):
    """Document store for analysis records. Blocking; run off the event loop."""

    def save_record(self, record: AnalysisRecord) -> None:
        ...


@dataclass(frozen=True)
class AnalysisOutcome:
    """What the caller gets back: the verdict plus whether it was persisted."""
    result: AnalysisResult
    persisted: bool = True


def build_storage_key(prefix: str, filename: str) -> str:
    """
    Collision-resistant object key: timestamp plus random suffix plus name.

    The timestamp keeps keys roughly sortable by upload time; the suffix
    covers uploads that land in the same millisecond.
    """
    stamp = int(datetime.now(tz=timezone.utc).timestamp() * 1000)
    return f"{prefix}/{stamp}-{uuid4().hex[:8]}-{sanitize_filename(filename)}"


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class AnalysisService:
    """Runs one analysis flow per call against injected collaborators."""

    def __init__(
        self,
        analyzer: MisinformationAnalyzer,
        storage: MediaStore,
        records: AnalysisStore,
        sampler: FrameSampler,
        scratch_root: Optional[Path] = None,
    ) -> None:
        self._analyzer = analyzer
        self._storage = storage
        self._records = records
        self._sampler = sampler
        self._scratch_root = scratch_root

    async def analyze_text(self, text: Optional[str]) -> AnalysisOutcome:
        if not text or not text.strip():
            raise InputError("Text is required")

        result = await self._analyzer.analyze_text(text)

        record = AnalysisRecord(type=AnalysisType.TEXT, result=result, input_text=text)
        persisted = await self._save_record(record)

        return AnalysisOutcome(result=result, persisted=persisted)

    async def analyze_image(self, upload: Optional[Upload]) -> AnalysisOutcome:
        if upload is None or not upload.data:
            raise InputError("No file uploaded.")

        image = InlineMedia(
            data=base64.b64encode(upload.data).decode("utf-8"),
            media_type=upload.content_type,
        )

        logger.info("Analyzing image", extra={"file_name": upload.filename})
        result = await self._analyzer.analyze_image(image)
        logger.info("Image analysis complete", extra={"verdict": result.verdict.value})

        persisted = await self._store_and_record(AnalysisType.IMAGE, "images", upload, result)

        return AnalysisOutcome(result=result, persisted=persisted)

    async def analyze_video(self, upload: Optional[Upload]) -> AnalysisOutcome:
        """
        Sample frames from the video, have the model judge them, persist.

        InputError is raised before any filesystem work. From workspace
        creation on, the workspace is released on every exit path.
        """
        if upload is None or not upload.data:
            raise InputError("No video file uploaded.")

        with ScratchWorkspace(self._scratch_root) as workspace:
            video_path = await asyncio.to_thread(workspace.create, upload.data, upload.filename)
            logger.info(
                "Video saved temporarily for frame extraction",
                extra={"workspace": workspace.token, "size_bytes": upload.size_bytes}
            )

            frame_paths = await self._sampler.sample(video_path, workspace.frame_dir)
            frames = await asyncio.to_thread(load_frames, frame_paths)
            logger.info(
                "Frames extracted",
                extra={"workspace": workspace.token, "frame_count": len(frames)}
            )

            result = await self._analyzer.analyze_frames(frames)
            logger.info(
                "Video analysis complete",
                extra={"workspace": workspace.token, "verdict": result.verdict.value}
            )

            persisted = await self._store_and_record(AnalysisType.VIDEO, "videos", upload, result)

        return AnalysisOutcome(result=result, persisted=persisted)

    # -----------------------------------------------------------------------
    # Persistence
    # -----------------------------------------------------------------------

    async def _store_and_record(
        self,
        kind: AnalysisType,
        prefix: str,
        upload: Upload,
        result: AnalysisResult,
    ) -> bool:
        """Upload the original bytes, then write the record pointing at them."""
        try:
            key = await self._storage.upload_media(
                data=upload.data,
                key=build_storage_key(prefix, upload.filename),
                content_type=upload.content_type,
            )
        except PersistenceError as e:
            logger.error(
                "Failed to store original media",
                extra={"type": kind.value, "file_name": upload.filename, "error": str(e)},
                exc_info=e,
            )
            return False

        record = AnalysisRecord(
            type=kind,
            result=result,
            file_name=upload.filename,
            storage_path=self._storage.uri_for(key),
        )
        return await self._save_record(record)

    async def _save_record(self, record: AnalysisRecord) -> bool:
        try:
            await asyncio.to_thread(self._records.save_record, record)
        except PersistenceError as e:
            logger.error(
                "Failed to save analysis record",
                extra={"type": record.type.value, "error": str(e)},
                exc_info=e,
            )
            return False

        logger.debug("Saved analysis record", extra={"type": record.type.value})
        return True
