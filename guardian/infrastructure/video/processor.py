"""
Frame sampling using FFmpeg.

Implements the FrameSampler protocol from core.analysis.frames:
1. Probe the video duration with FFprobe
2. Place N timestamps evenly across the duration
3. Extract one downscaled PNG per timestamp with FFmpeg

Why FFmpeg:
- Industry standard, battle-tested
- Handles any video format
- Available everywhere (including Docker)

Every subprocess call runs in a worker thread with a timeout, so an
unresponsive FFmpeg can't block the event loop or hold a request forever.
"""

import asyncio
import base64
import json
import logging
import subprocess
from pathlib import Path

from guardian.core.analysis.frames import evenly_spaced_timestamps, frame_filename
from guardian.core.errors import ExtractionError

logger = logging.getLogger(__name__)


class FFmpegFrameSampler:
    """
    Frame sampler backed by the ffmpeg/ffprobe binaries.

    Returns frame paths in temporal order. Frames FFmpeg did not produce
    (e.g. a timestamp past the end of a very short clip) are simply
    absent from the result.
    """

    def __init__(
        self,
        ffmpeg_path: str = "ffmpeg",
        ffprobe_path: str = "ffprobe",
        frame_count: int = 8,
        frame_width: int = 640,
        timeout_seconds: float = 120.0,
    ) -> None:
        if frame_count < 1:
            raise ValueError("frame_count must be positive")
        if frame_width < 2:
            raise ValueError("frame_width must be at least 2")

        self._ffmpeg = ffmpeg_path
        self._ffprobe = ffprobe_path
        self._frame_count = frame_count
        self._frame_width = frame_width
        self._timeout = timeout_seconds

        # verify ffmpeg is available
        try:
            result = subprocess.run(
                [self._ffmpeg, "-version"],
                capture_output=True,
                text=True,
                timeout=5
            )
            if result.returncode != 0:
                raise RuntimeError("FFmpeg not working properly")
            logger.info("FFmpeg frame sampler initialized")
        except FileNotFoundError:
            raise RuntimeError(
                "FFmpeg not found. Install with: apt-get install ffmpeg"
            )

    @property
    def frame_count(self) -> int:
        return self._frame_count

    async def sample(self, video_path: Path, output_dir: Path) -> list[Path]:
        duration = await self.probe_duration(video_path)
        timestamps = evenly_spaced_timestamps(duration, self._frame_count)

        logger.info(
            "Extracting frames",
            extra={
                "duration": duration,
                "frame_count": self._frame_count,
                "width": self._frame_width,
            }
        )

        frame_paths: list[Path] = []
        for index, ts in enumerate(timestamps, start=1):
            output_path = Path(output_dir) / frame_filename(index)

            # -ss before -i for fast seeking
            # scale=W:-2 keeps aspect ratio with an even height
            cmd = [
                self._ffmpeg,
                "-v", "error",
                "-ss", f"{ts:.3f}",
                "-i", str(video_path),
                "-frames:v", "1",
                "-vf", f"scale={self._frame_width}:-2",
                "-y",
                str(output_path),
            ]

            await self._run(cmd)

            if output_path.exists():
                frame_paths.append(output_path)
            else:
                logger.warning(
                    "FFmpeg produced no frame",
                    extra={"timestamp": ts, "index": index}
                )

        return frame_paths

    async def probe_duration(self, video_path: Path) -> float:
        """Video duration in seconds, from the container format."""
        cmd = [
            self._ffprobe,
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "json",
            str(video_path),
        ]

        result = await self._run(cmd)

        try:
            info = json.loads(result.stdout or "{}")
            return float(info.get("format", {}).get("duration", 0) or 0)
        except (ValueError, TypeError) as e:
            raise ExtractionError(f"Unreadable FFprobe output: {e}") from e

    async def _run(self, cmd: list[str]) -> subprocess.CompletedProcess:
        """Run one FFmpeg/FFprobe command; any failure is an ExtractionError."""
        try:
            result = await asyncio.to_thread(
                subprocess.run,
                cmd,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except FileNotFoundError as e:
            raise ExtractionError(f"{cmd[0]} not found") from e
        except subprocess.TimeoutExpired as e:
            logger.error("Transcoder timed out", extra={"binary": cmd[0], "timeout": self._timeout})
            raise ExtractionError(f"{cmd[0]} timed out after {self._timeout}s") from e

        if result.returncode != 0:
            logger.error(
                "Transcoder failed",
                extra={"binary": cmd[0], "returncode": result.returncode, "stderr": result.stderr[-500:]}
            )
            raise ExtractionError(f"{cmd[0]} exited with code {result.returncode}")

        return result


class MockFrameSampler:
    """
    Frame sampler for local development without FFmpeg.

    Writes placeholder 1x1 PNGs using the same naming convention as the
    real sampler, so everything downstream runs unchanged.
    """

    PLACEHOLDER_PNG = base64.b64decode(
        "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
    )

    def __init__(self, frame_count: int = 8) -> None:
        self._frame_count = frame_count
        logger.info("Initialized mock frame sampler")

    @property
    def frame_count(self) -> int:
        return self._frame_count

    async def sample(self, video_path: Path, output_dir: Path) -> list[Path]:
        paths = []
        for index in range(1, self._frame_count + 1):
            path = Path(output_dir) / frame_filename(index)
            path.write_bytes(self.PLACEHOLDER_PNG)
            paths.append(path)
        return paths


def create_frame_sampler(
    mock_mode: bool = False,
    ffmpeg_path: str = "ffmpeg",
    ffprobe_path: str = "ffprobe",
    frame_count: int = 8,
    frame_width: int = 640,
    timeout_seconds: float = 120.0,
):
    """
    Factory function for the frame sampler.

    Args:
        mock_mode: If True, return mock sampler (no FFmpeg required)

    Returns:
        FrameSampler implementation
    """
    if mock_mode:
        return MockFrameSampler(frame_count=frame_count)

    return FFmpegFrameSampler(
        ffmpeg_path=ffmpeg_path,
        ffprobe_path=ffprobe_path,
        frame_count=frame_count,
        frame_width=frame_width,
        timeout_seconds=timeout_seconds,
    )
