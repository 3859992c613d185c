"""
Frame sampling policy and frame loading.

The sampler contract is explicit about ordering: a FrameSampler returns
the paths of the frames it wrote, in temporal order. The loader encodes
them in exactly that order, so nothing downstream re-derives order from
a directory listing.

Timestamp placement follows the usual "N screenshots" policy: frames sit
at i / (N + 1) of the duration for i = 1..N, which keeps them away from
the first and last frame (often black or a fade).
"""

import base64
from pathlib import Path
from typing import Protocol

from ..errors import ExtractionError
from .models import InlineMedia

FRAME_MEDIA_TYPE = "image/png"


class FrameSampler(Protocol):
    """
    Interface for frame extraction.

    Implementations write still images into `output_dir` and return their
    paths in temporal order. Failures raise ExtractionError.
    """

    async def sample(self, video_path: Path, output_dir: Path) -> list[Path]:
        ...


def evenly_spaced_timestamps(duration_seconds: float, count: int) -> list[float]:
    """
    Timestamps (seconds) for `count` frames spread across the video.

    >>> evenly_spaced_timestamps(9.0, 2)
    [3.0, 6.0]
    """
    if count < 1:
        raise ValueError("count must be positive")
    if duration_seconds <= 0:
        return [0.0] * count

    step = duration_seconds / (count + 1)
    return [round(step * i, 3) for i in range(1, count + 1)]


def frame_filename(index: int) -> str:
    """Zero-padded, 1-based frame name so lexical order equals temporal order."""
    return f"frame-{index:03d}.png"


def load_frames(frame_paths: list[Path], media_type: str = FRAME_MEDIA_TYPE) -> list[InlineMedia]:
    """
    Read sampled frames and encode each as an inline media unit.

    Order of the result matches `frame_paths`. An empty list means the
    sampler produced nothing, which is an extraction failure rather than
    a reason to send the model an empty request.
    """
    if not frame_paths:
        raise ExtractionError("No frames were extracted from the video")

    units = []
    for path in frame_paths:
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise ExtractionError(f"Could not read frame {path}: {e}") from e

        units.append(InlineMedia(
            data=base64.b64encode(data).decode("utf-8"),
            media_type=media_type,
        ))

    return units
