"""
Video processing infrastructure.

Handles server-side frame sampling using FFmpeg: the analysis pipeline
hands over a temp video file and gets back ordered frame paths.
"""

from .processor import (
    FFmpegFrameSampler,
    MockFrameSampler,
    create_frame_sampler,
)

__all__ = [
    "FFmpegFrameSampler",
    "MockFrameSampler",
    "create_frame_sampler",
]
