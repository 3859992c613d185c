"""
Tests for the FFmpeg frame sampler.

subprocess.run is replaced with a fake that answers like ffprobe/ffmpeg,
so these tests run without the binaries installed.
"""

import json
import subprocess
from pathlib import Path

import pytest

from guardian.core.errors import ExtractionError
from guardian.infrastructure.video.processor import (
    FFmpegFrameSampler,
    MockFrameSampler,
    create_frame_sampler,
)


class FakeTranscoder:
    """Stands in for subprocess.run, recording every command."""

    def __init__(self, duration: float = 10.0, frames_available: int = 8) -> None:
        self.duration = duration
        self.frames_available = frames_available
        self.commands: list[list[str]] = []

    def __call__(self, cmd, capture_output=True, text=True, timeout=None):
        self.commands.append(cmd)

        if cmd[1] == "-version":
            return subprocess.CompletedProcess(cmd, 0, stdout="ffmpeg version 6.1", stderr="")

        if cmd[0] == "ffprobe":
            stdout = json.dumps({"format": {"duration": str(self.duration)}})
            return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr="")

        # seeking past the last decodable frame exits cleanly without output
        if len(self.extractions) <= self.frames_available:
            Path(cmd[-1]).write_bytes(b"\x89PNG")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    @property
    def extractions(self) -> list[list[str]]:
        return [c for c in self.commands if c[0] == "ffmpeg" and c[1] != "-version"]


@pytest.fixture()
def transcoder(monkeypatch):
    fake = FakeTranscoder()
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


class TestFFmpegFrameSampler:
    async def test_extracts_eight_scaled_frames_in_order(self, transcoder, tmp_path):
        sampler = FFmpegFrameSampler(frame_count=8, frame_width=640)

        paths = await sampler.sample(tmp_path / "clip.mp4", tmp_path)

        assert [p.name for p in paths] == [f"frame-00{i}.png" for i in range(1, 9)]
        assert all(p.exists() for p in paths)

        seeks = [float(cmd[cmd.index("-ss") + 1]) for cmd in transcoder.extractions]
        assert seeks == sorted(seeks)
        assert seeks[0] == pytest.approx(10.0 / 9, abs=1e-3)
        assert all(cmd[cmd.index("-vf") + 1] == "scale=640:-2" for cmd in transcoder.extractions)

    async def test_missing_frames_are_absent_not_invented(self, monkeypatch, tmp_path):
        fake = FakeTranscoder(frames_available=6)
        monkeypatch.setattr(subprocess, "run", fake)
        sampler = FFmpegFrameSampler(frame_count=8)

        paths = await sampler.sample(tmp_path / "short.mp4", tmp_path)

        assert len(paths) == 6
        assert paths[-1].name == "frame-006.png"

    async def test_nonzero_exit_is_an_extraction_error(self, monkeypatch, tmp_path):
        def failing_run(cmd, **kwargs):
            if cmd[1] == "-version":
                return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")
            return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="moov atom not found")

        monkeypatch.setattr(subprocess, "run", failing_run)
        sampler = FFmpegFrameSampler()

        with pytest.raises(ExtractionError, match="exited with code 1"):
            await sampler.sample(tmp_path / "broken.mp4", tmp_path)

    async def test_timeout_is_an_extraction_error(self, monkeypatch, tmp_path):
        def slow_run(cmd, **kwargs):
            if cmd[1] == "-version":
                return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")
            raise subprocess.TimeoutExpired(cmd, kwargs.get("timeout"))

        monkeypatch.setattr(subprocess, "run", slow_run)
        sampler = FFmpegFrameSampler(timeout_seconds=0.5)

        with pytest.raises(ExtractionError, match="timed out"):
            await sampler.sample(tmp_path / "clip.mp4", tmp_path)

    def test_missing_binary_fails_at_startup(self, monkeypatch):
        def no_ffmpeg(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        monkeypatch.setattr(subprocess, "run", no_ffmpeg)

        with pytest.raises(RuntimeError, match="FFmpeg not found"):
            FFmpegFrameSampler()

    def test_rejects_invalid_frame_count(self, transcoder):
        with pytest.raises(ValueError):
            FFmpegFrameSampler(frame_count=0)


class TestMockFrameSampler:
    async def test_writes_placeholder_pngs(self, tmp_path):
        paths = await MockFrameSampler(frame_count=3).sample(tmp_path / "clip.mp4", tmp_path)

        assert [p.name for p in paths] == ["frame-001.png", "frame-002.png", "frame-003.png"]
        assert all(p.read_bytes().startswith(b"\x89PNG") for p in paths)

    def test_factory_returns_mock_in_mock_mode(self):
        sampler = create_frame_sampler(mock_mode=True, frame_count=4)

        assert isinstance(sampler, MockFrameSampler)
        assert sampler.frame_count == 4
